from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy.exc import SQLAlchemyError

from agro_auth.api.endpoints import auth
from agro_auth.core.errors import PasswordResetError, RateLimitExceeded
from agro_auth.core.logging import capture_error, init_sentry, setup_logging
from agro_auth.db.session import create_tables
from agro_auth.helpers.getters import isDebugMode
from agro_auth.middleware.logging import AccessLoggingMiddleware

# Initialize logging and error tracking
setup_logging()
init_sentry()


@asynccontextmanager
async def lifespan(app: FastAPI):
    await create_tables()
    yield


app = FastAPI(
    title="Pyramid Agro Export - Account API",
    description="""
## 🔑 Password reset

Dashboard accounts recover access with a 6-digit code sent by e-mail:

1. `POST /api/auth/forgot-password` with `{"email": "..."}`
2. `POST /api/auth/verify-otp` with `{"email": "...", "otp": "123456"}` (optional check)
3. `POST /api/auth/reset-password` with `{"email": "...", "otp": "123456", "newPassword": "..."}`

Codes expire after 10 minutes and can be used once. `POST /api/auth/resend-code`
issues a new code and invalidates the old one.
    """,
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(AccessLoggingMiddleware, enabled=not isDebugMode())


@app.exception_handler(PasswordResetError)
async def password_reset_error_handler(request: Request, exc: PasswordResetError):
    return JSONResponse(status_code=exc.status_code, content={"ok": False, "error": exc.code.value})


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(status_code=exc.status_code, content={"ok": False, "error": exc.code})


@app.exception_handler(SQLAlchemyError)
@app.exception_handler(RedisConnectionError)
async def infrastructure_error_handler(request: Request, exc: Exception):
    capture_error(
        exc,
        context={"request": {"path": request.url.path, "method": request.method}},
        tags={"request_id": getattr(request.state, "request_id", "")},
    )
    return JSONResponse(status_code=503, content={"ok": False, "error": "SERVICE_UNAVAILABLE"})


app.include_router(auth.router, prefix="/api/auth", tags=["auth"])


@app.get("/")
def root():
    return {"message": "Pyramid Agro Export account API. See /docs for the OpenAPI schema."}


@app.get("/health")
def health():
    return {"status": "ok"}
