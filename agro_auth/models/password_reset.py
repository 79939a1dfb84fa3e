from sqlalchemy import Column, Integer, String, DateTime, Boolean
from datetime import datetime, timezone
from agro_auth.db.base import Base


class PasswordReset(Base):
    """
    Active reset code for an e-mail address.

    One row per e-mail: issuing a new code overwrites the row and bumps
    `version`, which every later write is conditioned on.
    """
    __tablename__ = "password_resets"

    id = Column(Integer, primary_key=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    code = Column(String(6), nullable=False)
    issued_at = Column(DateTime(timezone=True), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    consumed = Column(Boolean, default=False, nullable=False)
    attempt_count = Column(Integer, default=0, nullable=False)
    version = Column(Integer, default=1, nullable=False)

    updated_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    def __repr__(self):
        return f"<PasswordReset(email='{self.email}', version={self.version}, consumed={self.consumed})>"
