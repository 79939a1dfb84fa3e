from sqlalchemy.orm import declarative_base

Base = declarative_base()

# Import the models so they are registered on Base.metadata
from agro_auth.models import user, password_reset  # noqa: E402,F401
