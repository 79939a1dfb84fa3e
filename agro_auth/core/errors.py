from enum import Enum


class ResetErrorCode(str, Enum):
    """Error identifiers returned to callers of the reset endpoints."""
    INVALID_EMAIL = "INVALID_EMAIL"
    DELIVERY_FAILED = "DELIVERY_FAILED"
    INVALID_CODE = "INVALID_CODE"
    CODE_EXPIRED = "CODE_EXPIRED"
    CODE_ALREADY_USED = "CODE_ALREADY_USED"
    WEAK_PASSWORD = "WEAK_PASSWORD"
    USER_NOT_FOUND = "USER_NOT_FOUND"


# HTTP status per error code
STATUS_BY_CODE = {
    ResetErrorCode.INVALID_EMAIL: 400,
    ResetErrorCode.WEAK_PASSWORD: 400,
    ResetErrorCode.INVALID_CODE: 400,
    ResetErrorCode.CODE_EXPIRED: 400,
    ResetErrorCode.CODE_ALREADY_USED: 400,
    ResetErrorCode.USER_NOT_FOUND: 404,
    ResetErrorCode.DELIVERY_FAILED: 502,
}


class PasswordResetError(Exception):
    """Raised by the reset flow; carries a caller-facing error code."""

    def __init__(self, code: ResetErrorCode, message: str = ""):
        self.code = code
        self.message = message or code.value
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return STATUS_BY_CODE.get(self.code, 400)

    def __repr__(self):
        return f"<PasswordResetError(code='{self.code.value}')>"


class RateLimitExceeded(Exception):
    """Too many reset requests for one address / client within the window."""

    code = "TOO_MANY_REQUESTS"
    status_code = 429

    def __init__(self, scope: str):
        self.scope = scope
        super().__init__(f"Rate limit exceeded for {scope}")
