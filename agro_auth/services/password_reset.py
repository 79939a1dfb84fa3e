"""
Password reset by e-mailed one-time code.

    forgot-password / resend-code  ->  request_reset / resend_code
    verify-otp                     ->  verify_code
    reset-password                 ->  reset_password

A code is six digits, valid for RESET_CODE_TTL_MINUTES and redeemable
once. Issuing a new code replaces the previous one. Expiry is evaluated
lazily against the clock; nothing sweeps old records.
"""
import asyncio
import hmac
import math
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, Optional

from agro_auth.core.config import settings
from agro_auth.core.errors import PasswordResetError, ResetErrorCode
from agro_auth.core.logging import capture_error
from agro_auth.core.security import (
    generate_otp, get_password_hash, is_strong_password, is_valid_email, mask_email, normalize_email
)
from agro_auth.logging import get_logger
from agro_auth.services.clock import ClockSource, SystemClock
from agro_auth.services.mailer import CodeDeliveryChannel
from agro_auth.services.reset_store import ResetRequest, ResetStore
from agro_auth.services.user_directory import UserDirectory

logger = get_logger("password_reset")


def remaining_seconds(now: datetime, expires_at: datetime) -> int:
    """Whole seconds left before `expires_at`; 0 once the code has expired."""
    return max(0, math.ceil((expires_at - now).total_seconds()))


def format_countdown(seconds: int) -> str:
    minutes, seconds = divmod(max(0, int(seconds)), 60)
    return f"{minutes:02d}:{seconds:02d}"


def resend_available(now: datetime, expires_at: datetime) -> bool:
    return remaining_seconds(now, expires_at) == 0


def classify_code(
    record: Optional[ResetRequest],
    submitted: str,
    now: datetime,
    max_attempts: int = 0,
) -> Optional[ResetErrorCode]:
    """
    Returns None when `submitted` redeems `record` at `now`, otherwise the
    error to report. Used-up and expired codes are reported before a
    mismatch so the caller can offer a resend rather than a retype.
    """
    if record is None:
        return ResetErrorCode.INVALID_CODE
    if record.consumed:
        return ResetErrorCode.CODE_ALREADY_USED
    if now >= record.expires_at:
        return ResetErrorCode.CODE_EXPIRED
    if max_attempts and record.attempt_count >= max_attempts:
        return ResetErrorCode.CODE_EXPIRED
    if not isinstance(submitted, str) or not hmac.compare_digest(
        submitted.encode("utf-8"), record.code.encode("utf-8")
    ):
        return ResetErrorCode.INVALID_CODE
    return None


class KeyedLock:
    """asyncio.Lock per key, dropped again once nobody holds or waits on it."""

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}
        self._users: Dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, key: str):
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if not self._users[key]:
                del self._users[key]
                del self._locks[key]

    def __len__(self):
        return len(self._locks)


# Shared by every flow instance in the process; flows are built per request.
email_locks = KeyedLock()


@dataclass(frozen=True)
class ResetAck:
    expires_in: int


class PasswordResetFlow:
    def __init__(
        self,
        users: UserDirectory,
        delivery: CodeDeliveryChannel,
        store: ResetStore,
        clock: ClockSource = None,
        ttl: timedelta = None,
        max_attempts: int = None,
        locks: KeyedLock = None,
    ):
        self.users = users
        self.delivery = delivery
        self.store = store
        self.clock = clock or SystemClock()
        self.ttl = ttl or timedelta(minutes=settings.RESET_CODE_TTL_MINUTES)
        self.max_attempts = settings.RESET_MAX_ATTEMPTS if max_attempts is None else max_attempts
        self.locks = locks or email_locks

    @staticmethod
    def _clean_email(email) -> str:
        cleaned = normalize_email(email)
        if not is_valid_email(cleaned):
            raise PasswordResetError(ResetErrorCode.INVALID_EMAIL)
        return cleaned

    # ---------------- Code issuance ----------------

    async def request_reset(self, email: str) -> ResetAck:
        """
        Issue a new code for `email` and send it.

        Unknown addresses get the same acknowledgement as known ones, but
        nothing is stored or sent. If delivery fails the new record is
        removed again and DELIVERY_FAILED is raised.
        """
        email = self._clean_email(email)
        async with self.locks.hold(email):
            user = await self.users.find_by_email(email)
            if user is None:
                logger.info("Reset requested for unknown account", email=mask_email(email))
                return ResetAck(expires_in=int(self.ttl.total_seconds()))

            now = self.clock.now()
            record = await self.store.save(email, generate_otp(), now, now + self.ttl)
            try:
                delivered = await self.delivery.send(email, record.code)
            except Exception as e:
                await self.store.discard(email, record.version)
                capture_error(e, context={"reset": {"email": mask_email(email)}}, tags={"stage": "delivery"})
                raise PasswordResetError(ResetErrorCode.DELIVERY_FAILED) from e
            if not delivered:
                await self.store.discard(email, record.version)
                logger.warning("Reset code not delivered, record discarded", email=mask_email(email))
                raise PasswordResetError(ResetErrorCode.DELIVERY_FAILED)

        expires_in = remaining_seconds(now, record.expires_at)
        logger.info(
            "Reset code issued",
            email=mask_email(email),
            version=record.version,
            valid_for=format_countdown(expires_in),
        )
        return ResetAck(expires_in=expires_in)

    async def resend_code(self, email: str) -> ResetAck:
        # Same operation; the new record supersedes the old one.
        return await self.request_reset(email)

    # ---------------- Verification ----------------

    async def is_valid(self, email: str, code: str) -> bool:
        """Pure check, no attempt counting."""
        try:
            email = self._clean_email(email)
        except PasswordResetError:
            return False
        record = await self.store.get(email)
        return classify_code(record, code, self.clock.now(), self.max_attempts) is None

    async def _check(self, email: str, code: str) -> ResetRequest:
        # caller holds the email lock
        record = await self.store.get(email)
        error = classify_code(record, code, self.clock.now(), self.max_attempts)
        if error is None:
            return record
        if error is ResetErrorCode.INVALID_CODE and record is not None:
            await self.store.record_failed_attempt(email, record.version)
        logger.info("Reset code rejected", email=mask_email(email), reason=error.value)
        raise PasswordResetError(error)

    async def verify_code(self, email: str, code: str) -> None:
        """
        Confirms the code without redeeming it, so the client can move on to
        the new-password step. Raises PasswordResetError otherwise.
        """
        email = self._clean_email(email)
        async with self.locks.hold(email):
            await self._check(email, code)

    # ---------------- Password replacement ----------------

    async def reset_password(self, email: str, code: str, new_password: str) -> None:
        """
        Redeem `code` and replace the account password.

        The code is re-validated against a fresh read of the store, then
        claimed with a version-guarded compare-and-set before the password is
        written; of two racing submissions only one can win the claim.
        """
        email = self._clean_email(email)
        if not is_strong_password(new_password):
            raise PasswordResetError(ResetErrorCode.WEAK_PASSWORD)

        async with self.locks.hold(email):
            record = await self._check(email, code)

            user = await self.users.find_by_email(email)
            if user is None:
                raise PasswordResetError(ResetErrorCode.USER_NOT_FOUND)

            if not await self.store.mark_consumed(email, record.version):
                current = await self.store.get(email)
                error = classify_code(current, code, self.clock.now(), self.max_attempts)
                raise PasswordResetError(error or ResetErrorCode.CODE_ALREADY_USED)

            try:
                await self.users.set_password_hash(email, get_password_hash(new_password))
            except LookupError:
                await self.store.release(email, record.version)
                raise PasswordResetError(ResetErrorCode.USER_NOT_FOUND)
            except Exception:
                await self.store.release(email, record.version)
                raise

        logger.great("Password reset completed", email=mask_email(email))
