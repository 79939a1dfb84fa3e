"""
Storage for active password-reset codes.

Both stores keep at most one record per e-mail. Writes after issuance are
conditioned on the record `version` so a request that was superseded by a
resend can never consume, discard or count attempts against the new code.
"""
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Dict, Optional, Protocol

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from agro_auth.models.password_reset import PasswordReset


@dataclass(frozen=True)
class ResetRequest:
    email: str
    code: str
    issued_at: datetime
    expires_at: datetime
    consumed: bool = False
    attempt_count: int = 0
    version: int = 1


class ResetStore(Protocol):
    async def get(self, email: str) -> Optional[ResetRequest]: ...

    async def save(self, email: str, code: str, issued_at: datetime, expires_at: datetime) -> ResetRequest: ...

    async def discard(self, email: str, version: int) -> None: ...

    async def record_failed_attempt(self, email: str, version: int) -> None: ...

    async def mark_consumed(self, email: str, version: int) -> bool: ...

    async def release(self, email: str, version: int) -> None: ...


class InMemoryResetStore:
    """Dict-backed store for local runs and tests; single process only."""

    def __init__(self):
        self._records: Dict[str, ResetRequest] = {}

    async def get(self, email: str) -> Optional[ResetRequest]:
        return self._records.get(email)

    async def save(self, email, code, issued_at, expires_at) -> ResetRequest:
        previous = self._records.get(email)
        record = ResetRequest(
            email=email,
            code=code,
            issued_at=issued_at,
            expires_at=expires_at,
            version=previous.version + 1 if previous else 1,
        )
        self._records[email] = record
        return record

    async def discard(self, email, version) -> None:
        record = self._records.get(email)
        if record and record.version == version:
            del self._records[email]

    async def record_failed_attempt(self, email, version) -> None:
        record = self._records.get(email)
        if record and record.version == version:
            self._records[email] = replace(record, attempt_count=record.attempt_count + 1)

    async def mark_consumed(self, email, version) -> bool:
        record = self._records.get(email)
        if not record or record.version != version or record.consumed:
            return False
        self._records[email] = replace(record, consumed=True)
        return True

    async def release(self, email, version) -> None:
        record = self._records.get(email)
        if record and record.version == version:
            self._records[email] = replace(record, consumed=False)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _to_request(row: PasswordReset) -> ResetRequest:
    return ResetRequest(
        email=row.email,
        code=row.code,
        issued_at=_as_utc(row.issued_at),
        expires_at=_as_utc(row.expires_at),
        consumed=bool(row.consumed),
        attempt_count=row.attempt_count or 0,
        version=row.version,
    )


class SqlResetStore:
    """
    `password_resets` table store. Each write commits on its own so the
    compare-and-set in `mark_consumed` is what arbitrates between
    concurrent requests, including requests served by other workers.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _load(self, email: str) -> Optional[PasswordReset]:
        result = await self.db.execute(
            select(PasswordReset)
            .filter(PasswordReset.email == email)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get(self, email: str) -> Optional[ResetRequest]:
        row = await self._load(email)
        return _to_request(row) if row else None

    async def save(self, email, code, issued_at, expires_at) -> ResetRequest:
        try:
            row = await self._upsert(email, code, issued_at, expires_at)
            await self.db.commit()
        except IntegrityError:
            # another worker inserted the row first; overwrite it
            await self.db.rollback()
            row = await self._upsert(email, code, issued_at, expires_at)
            await self.db.commit()
        return _to_request(row)

    async def _upsert(self, email, code, issued_at, expires_at) -> PasswordReset:
        row = await self._load(email)
        if row is None:
            row = PasswordReset(email=email, version=1)
            self.db.add(row)
        else:
            row.version = row.version + 1
        row.code = code
        row.issued_at = issued_at
        row.expires_at = expires_at
        row.consumed = False
        row.attempt_count = 0
        await self.db.flush()
        return row

    async def discard(self, email, version) -> None:
        await self.db.execute(
            delete(PasswordReset)
            .where(PasswordReset.email == email, PasswordReset.version == version)
        )
        await self.db.commit()

    async def record_failed_attempt(self, email, version) -> None:
        await self.db.execute(
            update(PasswordReset)
            .where(PasswordReset.email == email, PasswordReset.version == version)
            .values(attempt_count=PasswordReset.attempt_count + 1)
        )
        await self.db.commit()

    async def mark_consumed(self, email, version) -> bool:
        result = await self.db.execute(
            update(PasswordReset)
            .where(
                PasswordReset.email == email,
                PasswordReset.version == version,
                PasswordReset.consumed.is_(False),
            )
            .values(consumed=True)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        return result.rowcount == 1

    async def release(self, email, version) -> None:
        # drop whatever the failed password write left pending in the session
        await self.db.rollback()
        await self.db.execute(
            update(PasswordReset)
            .where(PasswordReset.email == email, PasswordReset.version == version)
            .values(consumed=False)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
