"""
    Password Reset Endpoints
    One-time-code password recovery for dashboard accounts.
    Endpoints:
    - /forgot-password: Sends a 6-digit code to the account e-mail (valid for 10 minutes).
    - /resend-code: Issues a fresh code, invalidating the previous one.
    - /verify-otp: Checks a code without redeeming it.
    - /reset-password: Redeems the code and replaces the password.
    Failures are answered as {"ok": false, "error": "<CODE>"}; see
    agro_auth.core.errors for the codes. Unknown addresses get the same answer
    as known ones on /forgot-password and /resend-code.
"""
from fastapi import APIRouter, Depends, Request
from redis.asyncio import Redis

from agro_auth.api.dependencies import get_redis, get_reset_flow
from agro_auth.core.config import settings
from agro_auth.core.errors import RateLimitExceeded
from agro_auth.core.security import normalize_email
from agro_auth.helpers.rate_limit import allow, start_window
from agro_auth.schemas.auth import (
    ForgotPasswordIn,
    ResendCodeIn,
    VerifyOtpIn,
    ResetPasswordIn,
    ResetCodeSentOut,
    OkOut,
    ErrorOut,
)
from agro_auth.services.password_reset import PasswordResetFlow

router = APIRouter()

ERROR_RESPONSES = {
    400: {"model": ErrorOut},
    404: {"model": ErrorOut},
    429: {"model": ErrorOut},
    502: {"model": ErrorOut},
}

WINDOW_SEC = 900


def _client_ip(request: Request) -> str:
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


async def _limit(redis: Redis, scope: str, email: str, request: Request, max_attempts: int, window_sec: int = WINDOW_SEC):
    if not await allow(redis, scope, normalize_email(email), _client_ip(request), max_attempts=max_attempts, window_sec=window_sec):
        raise RateLimitExceeded(scope)


@router.post("/forgot-password", response_model=ResetCodeSentOut, responses=ERROR_RESPONSES)
async def forgot_password(
    payload: ForgotPasswordIn,
    request: Request,
    redis: Redis = Depends(get_redis),
    flow: PasswordResetFlow = Depends(get_reset_flow),
):
    await _limit(redis, "fp:start", payload.email, request, max_attempts=5)
    ack = await flow.request_reset(payload.email)
    # the resend cooldown runs from the moment a code is issued
    await start_window(
        redis, "fp:resend-cooldown", normalize_email(payload.email),
        window_sec=settings.RESEND_COOLDOWN_SECONDS,
    )
    return ResetCodeSentOut(expires_in=ack.expires_in)


@router.post("/resend-code", response_model=ResetCodeSentOut, responses=ERROR_RESPONSES)
async def resend_code(
    payload: ResendCodeIn,
    request: Request,
    redis: Redis = Depends(get_redis),
    flow: PasswordResetFlow = Depends(get_reset_flow),
):
    await _limit(redis, "fp:resend", payload.email, request, max_attempts=5)
    if not await allow(
        redis, "fp:resend-cooldown", normalize_email(payload.email),
        max_attempts=1, window_sec=settings.RESEND_COOLDOWN_SECONDS,
    ):
        raise RateLimitExceeded("fp:resend-cooldown")
    ack = await flow.resend_code(payload.email)
    return ResetCodeSentOut(expires_in=ack.expires_in)


@router.post("/verify-otp", response_model=OkOut, responses=ERROR_RESPONSES)
async def verify_otp(
    payload: VerifyOtpIn,
    request: Request,
    redis: Redis = Depends(get_redis),
    flow: PasswordResetFlow = Depends(get_reset_flow),
):
    await _limit(redis, "fp:verify", payload.email, request, max_attempts=10)
    await flow.verify_code(payload.email, payload.otp)
    return OkOut(message="OTP verified successfully")


@router.post("/reset-password", response_model=OkOut, responses=ERROR_RESPONSES)
async def reset_password(
    payload: ResetPasswordIn,
    request: Request,
    redis: Redis = Depends(get_redis),
    flow: PasswordResetFlow = Depends(get_reset_flow),
):
    await _limit(redis, "fp:reset", payload.email, request, max_attempts=10)
    await flow.reset_password(payload.email, payload.otp, payload.new_password)
    return OkOut(message="Password reset successfully")
