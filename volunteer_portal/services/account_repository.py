"""Account lookups and LastUsed bookkeeping against ``tblUsers``."""
import asyncio
import logging
from datetime import date

from sqlalchemy import or_, select, update
from sqlalchemy.exc import DisconnectionError, InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from volunteer_portal.errors import (
    BookkeepingUpdateError,
    StorageConnectionError,
    StorageError,
    StorageQueryError,
)
from volunteer_portal.models.volunteer_account import VolunteerAccount

log = logging.getLogger(__name__)

_CONNECTION_ERRORS = (OperationalError, InterfaceError, DisconnectionError)


def _classify(exc: Exception, action: str) -> StorageError:
    if isinstance(exc, asyncio.TimeoutError):
        return StorageQueryError(f"{action} timed out")
    if isinstance(exc, _CONNECTION_ERRORS):
        return StorageConnectionError(f"{action} failed: {exc}")
    return StorageQueryError(f"{action} failed: {exc}")


class VolunteerRepository:
    """Reads accounts by email and moves LastUsed forward.

    Every statement is bounded by ``timeout`` seconds.
    """

    def __init__(self, db: AsyncSession, timeout: float = 5.0):
        self.db = db
        self.timeout = timeout

    async def get_by_email(self, email: str) -> VolunteerAccount | None:
        stmt = select(VolunteerAccount).where(VolunteerAccount.email == email).limit(1)
        try:
            result = await asyncio.wait_for(self.db.execute(stmt), self.timeout)
        except (SQLAlchemyError, asyncio.TimeoutError) as exc:
            raise _classify(exc, "Account lookup") from exc
        return result.scalar_one_or_none()

    async def touch_last_used(self, user_id: str, today: date) -> bool:
        """Set LastUsed to ``today`` unless it is already on or after it.

        Returns True when a row changed. Raises BookkeepingUpdateError on any
        storage failure, after a bounded attempt to roll the session back.
        """
        stmt = (
            update(VolunteerAccount)
            .where(VolunteerAccount.user_id == user_id)
            .where(or_(VolunteerAccount.last_used.is_(None), VolunteerAccount.last_used < today))
            .values(last_used=today)
        )
        try:
            result = await asyncio.wait_for(self.db.execute(stmt), self.timeout)
            await asyncio.wait_for(self.db.commit(), self.timeout)
        except (SQLAlchemyError, asyncio.TimeoutError) as exc:
            await self._rollback_quietly()
            raise BookkeepingUpdateError(str(_classify(exc, "LastUsed update"))) from exc
        return result.rowcount > 0

    async def _rollback_quietly(self) -> None:
        # The rollback gets the same bound as the statement it undoes
        try:
            await asyncio.wait_for(self.db.rollback(), self.timeout)
        except (SQLAlchemyError, asyncio.TimeoutError) as exc:
            log.warning("Rollback after failed LastUsed update also failed: %s", exc)
