"""
Credential helpers: password hashing, reset codes and input policies.
"""
import re
import secrets

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

OTP_LENGTH = 6

# local@domain.tld
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@.]+$")

PASSWORD_MIN_LENGTH = 8
PASSWORD_RULES = (
    re.compile(r"[a-z]"),
    re.compile(r"[A-Z]"),
    re.compile(r"\d"),
)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def generate_otp(length: int = OTP_LENGTH) -> str:
    """Uniformly random numeric code, left-zero-padded."""
    return str(secrets.randbelow(10 ** length)).zfill(length)


def normalize_email(email) -> str:
    if not isinstance(email, str):
        return ""
    return email.strip().lower()


def is_valid_email(email) -> bool:
    return bool(email) and isinstance(email, str) and EMAIL_PATTERN.match(email) is not None


def is_strong_password(password) -> bool:
    """
    At least 8 characters with one lowercase letter, one uppercase letter
    and one digit.
    """
    if not isinstance(password, str) or len(password) < PASSWORD_MIN_LENGTH:
        return False
    return all(rule.search(password) for rule in PASSWORD_RULES)


def mask_email(email: str) -> str:
    """j***@example.com, for log lines."""
    local, sep, domain = (email or "").partition("@")
    if not sep:
        return "***"
    return f"{local[:1]}***@{domain}"
