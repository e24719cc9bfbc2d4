"""
Tests für StaleSessionService – vergessene Sitzungen schließen und markieren.
"""
import uuid
from datetime import timedelta

import pytest

from app.core.config import settings
from app.core.locks import EmployeeLockRegistry
from app.services.session_service import STATE_WORKING, SessionService
from app.services.stale_session_service import AUTO_CLOSE_NOTE, StaleSessionService
from app.utils.day_bounds import as_utc
from tests.conftest import BERLIN, FakeClock, add_entry, berlin


def make_service(db, clock, horizon_hours=16) -> StaleSessionService:
    return StaleSessionService(db, clock=clock, tz=BERLIN, horizon_hours=horizon_hours)


@pytest.mark.asyncio
async def test_closes_at_horizon(db, employee):
    entry = await add_entry(db, employee, berlin(2025, 3, 10, 6), None)
    clock = FakeClock(berlin(2025, 3, 11, 10))

    report = await make_service(db, clock).reconcile()

    assert report.closed_count == 1
    assert report.horizon_hours == 16
    closed = report.closed[0]
    assert closed.entry_id == entry.id
    assert closed.clock_out == berlin(2025, 3, 10, 22)
    assert closed.duration_minutes == 960

    await db.refresh(entry)
    assert entry.needs_review
    assert entry.duration_minutes == 960
    assert entry.notes == AUTO_CLOSE_NOTE


@pytest.mark.asyncio
async def test_close_capped_at_end_of_clock_in_day(db, employee):
    entry = await add_entry(db, employee, berlin(2025, 3, 10, 10), None, notes="Spätdienst")
    clock = FakeClock(berlin(2025, 3, 11, 10))

    report = await make_service(db, clock).reconcile()

    assert report.closed[0].clock_out == berlin(2025, 3, 11, 0)
    assert report.closed[0].duration_minutes == 840
    await db.refresh(entry)
    assert entry.notes == f"Spätdienst | {AUTO_CLOSE_NOTE}"
    assert as_utc(entry.clock_out) == berlin(2025, 3, 11, 0)


@pytest.mark.asyncio
async def test_recent_open_entry_untouched(db, employee):
    entry = await add_entry(db, employee, berlin(2025, 3, 11, 8), None)
    clock = FakeClock(berlin(2025, 3, 11, 10))

    report = await make_service(db, clock).reconcile()

    assert report.closed_count == 0
    await db.refresh(entry)
    assert entry.clock_out is None
    assert not entry.needs_review


@pytest.mark.asyncio
async def test_second_run_closes_nothing(db, employee):
    await add_entry(db, employee, berlin(2025, 3, 10, 6), None)
    svc = make_service(db, FakeClock(berlin(2025, 3, 11, 10)))

    first = await svc.reconcile()
    second = await svc.reconcile()

    assert first.closed_count == 1
    assert second.closed_count == 0
    assert second.skipped == 0


@pytest.mark.asyncio
async def test_closed_entries_are_ignored(db, employee):
    await add_entry(db, employee, berlin(2025, 3, 10, 8), berlin(2025, 3, 10, 16))
    report = await make_service(db, FakeClock(berlin(2025, 3, 12, 8))).reconcile()
    assert report.closed_count == 0


@pytest.mark.asyncio
async def test_reconcile_scoped_to_tenant(db, employee):
    await add_entry(db, employee, berlin(2025, 3, 10, 6), None)
    svc = make_service(db, FakeClock(berlin(2025, 3, 11, 10)))

    assert (await svc.reconcile(tenant_id=uuid.uuid4())).closed_count == 0
    assert (await svc.reconcile(tenant_id=employee.tenant_id)).closed_count == 1


@pytest.mark.asyncio
async def test_clock_in_closes_forgotten_session_first(db, employee):
    employee_id = employee.id
    old = await add_entry(db, employee, berlin(2025, 3, 10, 9), None)
    old_id = old.id
    clock = FakeClock(berlin(2025, 3, 11, 8))

    svc = SessionService(db, locks=EmployeeLockRegistry(), clock=clock, tz=BERLIN)
    session = await svc.clock_in(employee_id)

    assert session.state == STATE_WORKING
    assert session.entry_id != old_id
    assert session.clock_in_time == clock()

    await db.refresh(old)
    assert old.needs_review
    assert as_utc(old.clock_out) == berlin(2025, 3, 11, 0)


@pytest.mark.asyncio
async def test_shorter_horizon_from_settings_override(db, employee):
    await add_entry(db, employee, berlin(2025, 3, 10, 8), None)
    clock = FakeClock(berlin(2025, 3, 10, 8) + timedelta(hours=5))

    report = await make_service(db, clock, horizon_hours=4).reconcile()
    assert report.closed_count == 1
    assert report.closed[0].duration_minutes == 240


@pytest.mark.asyncio
async def test_zero_horizon_is_not_replaced_by_default(db, employee):
    await add_entry(db, employee, berlin(2025, 3, 10, 8), None)
    clock = FakeClock(berlin(2025, 3, 10, 9))

    report = await make_service(db, clock, horizon_hours=0).reconcile()
    assert report.horizon_hours == 0
    assert report.closed_count == 1
    assert report.closed[0].duration_minutes == 0


def test_horizon_defaults_to_setting():
    assert StaleSessionService(None).horizon_hours == settings.STALE_SESSION_HORIZON_HOURS
