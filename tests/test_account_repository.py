import asyncio
from datetime import date

import pytest
from sqlalchemy.exc import OperationalError, ProgrammingError

from volunteer_portal.errors import BookkeepingUpdateError, StorageConnectionError, StorageQueryError
from volunteer_portal.services.account_repository import VolunteerRepository


class BrokenSession:
    """Async session double whose statements fail or hang."""

    def __init__(self, exc=None, delay=None, rollback_exc=None, rollback_delay=None):
        self.exc = exc
        self.delay = delay
        self.rollback_exc = rollback_exc
        self.rollback_delay = rollback_delay
        self.rolled_back = False

    async def execute(self, stmt):
        if self.delay:
            await asyncio.sleep(self.delay)
        raise self.exc

    async def commit(self):
        pass

    async def rollback(self):
        self.rolled_back = True
        if self.rollback_delay:
            await asyncio.sleep(self.rollback_delay)
        if self.rollback_exc:
            raise self.rollback_exc


@pytest.mark.asyncio
async def test_get_by_email_exact_match(db_session, add_volunteer):
    await add_volunteer()
    await add_volunteer(user_id="U2", email="other@b.com", first_name="Sam", last_name="Roe")
    repo = VolunteerRepository(db_session)

    account = await repo.get_by_email("a@b.com")
    assert account.user_id == "U1"
    assert account.display_name == "Jane Doe"
    assert await repo.get_by_email("missing@b.com") is None


@pytest.mark.asyncio
async def test_touch_last_used_only_moves_forward(db_session, add_volunteer):
    await add_volunteer(last_used=date(2024, 3, 1))
    repo = VolunteerRepository(db_session)

    assert await repo.touch_last_used("U1", date(2024, 3, 4)) is True
    assert await repo.touch_last_used("U1", date(2024, 3, 4)) is False
    assert await repo.touch_last_used("U1", date(2024, 2, 1)) is False

    account = await repo.get_by_email("a@b.com")
    await db_session.refresh(account)
    assert account.last_used == date(2024, 3, 4)


@pytest.mark.asyncio
async def test_touch_last_used_from_null(db_session, add_volunteer):
    await add_volunteer(last_used=None)
    repo = VolunteerRepository(db_session)
    assert await repo.touch_last_used("U1", date(2024, 3, 4)) is True


@pytest.mark.asyncio
async def test_lookup_connection_error_is_classified():
    session = BrokenSession(OperationalError("SELECT", {}, Exception("connection refused")))
    repo = VolunteerRepository(session)
    with pytest.raises(StorageConnectionError) as exc_info:
        await repo.get_by_email("a@b.com")
    assert "connection refused" in str(exc_info.value)
    assert exc_info.value.client_message == "Database connection failed. Please try again later."


@pytest.mark.asyncio
async def test_lookup_query_error_is_classified():
    session = BrokenSession(ProgrammingError("SELECT", {}, Exception("no such column")))
    repo = VolunteerRepository(session)
    with pytest.raises(StorageQueryError):
        await repo.get_by_email("a@b.com")


@pytest.mark.asyncio
async def test_lookup_timeout():
    session = BrokenSession(RuntimeError("unreachable"), delay=1.0)
    repo = VolunteerRepository(session, timeout=0.01)
    with pytest.raises(StorageQueryError, match="timed out"):
        await repo.get_by_email("a@b.com")


@pytest.mark.asyncio
async def test_touch_failure_rolls_back():
    session = BrokenSession(OperationalError("UPDATE", {}, Exception("database is locked")))
    repo = VolunteerRepository(session)
    with pytest.raises(BookkeepingUpdateError, match="database is locked"):
        await repo.touch_last_used("U1", date(2024, 3, 4))
    assert session.rolled_back is True


@pytest.mark.asyncio
async def test_touch_with_hung_rollback_stays_bounded():
    session = BrokenSession(RuntimeError("unreachable"), delay=3600, rollback_delay=3600)
    repo = VolunteerRepository(session, timeout=0.05)
    with pytest.raises(BookkeepingUpdateError, match="timed out"):
        await asyncio.wait_for(repo.touch_last_used("U1", date(2024, 3, 4)), 2)
    assert session.rolled_back is True


@pytest.mark.asyncio
async def test_touch_with_failing_rollback_raises_bookkeeping_error():
    session = BrokenSession(
        OperationalError("UPDATE", {}, Exception("server has gone away")),
        rollback_exc=OperationalError("ROLLBACK", {}, Exception("server has gone away")),
    )
    repo = VolunteerRepository(session)
    with pytest.raises(BookkeepingUpdateError, match="server has gone away"):
        await repo.touch_last_used("U1", date(2024, 3, 4))
