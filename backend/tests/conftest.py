"""
Shared pytest fixtures for the timeclock backend tests.

Uses SQLite in-memory with StaticPool so all sessions share one connection,
meaning data written in one session is visible to others (important for HTTP client tests).
"""
import uuid
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

import app.models  # noqa – registers all SQLAlchemy models with Base.metadata
from app.core.database import Base, get_db
from app.core.locks import EmployeeLockRegistry
from app.core.security import hash_password, create_access_token
from app.main import app
from app.models.employee import Employee
from app.models.tenant import Tenant
from app.models.time_entry import TimeEntry, KIND_WORK
from app.models.user import User

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

BERLIN = ZoneInfo("Europe/Berlin")


# ── Shared engine (function-scoped: fresh DB per test) ───────────────────────

@pytest_asyncio.fixture
async def engine():
    """Creates a fresh in-memory SQLite engine per test with a shared connection pool."""
    eng = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,          # single shared connection → all sessions see same data
    )
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield eng

    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await eng.dispose()


@pytest_asyncio.fixture
async def db(engine) -> AsyncSession:
    """Async DB session for direct data inspection inside tests."""
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


# ── HTTP client fixture ───────────────────────────────────────────────────────

@pytest_asyncio.fixture
async def client(engine, monkeypatch) -> AsyncClient:
    """
    FastAPI test client with get_db overridden to use the test engine.
    Each request gets its own session but shares the same underlying
    connection via StaticPool. Employee locks are fresh per test (event loop).
    """
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    registry = EmployeeLockRegistry()
    monkeypatch.setattr("app.services.session_service.get_lock_registry", lambda: registry)
    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()


# ── Tenant + User fixtures ────────────────────────────────────────────────────

async def make_user(db, tenant, email: str, role: str) -> User:
    u = User(
        id=uuid.uuid4(),
        tenant_id=tenant.id,
        email=email,
        hashed_password=hash_password("testpass123"),
        role=role,
        is_active=True,
        created_at=datetime.now(timezone.utc),
    )
    db.add(u)
    await db.commit()
    await db.refresh(u)
    return u


async def make_employee(db, tenant, user=None, first_name="Erika", last_name="Muster") -> Employee:
    e = Employee(
        id=uuid.uuid4(),
        tenant_id=tenant.id,
        user_id=user.id if user else None,
        first_name=first_name,
        last_name=last_name,
        is_active=True,
    )
    db.add(e)
    await db.commit()
    await db.refresh(e)
    return e


@pytest_asyncio.fixture
async def tenant(db) -> Tenant:
    t = Tenant(
        id=uuid.uuid4(),
        name="Test GmbH",
        slug=f"test-{uuid.uuid4().hex[:8]}",
        is_active=True,
        created_at=datetime.now(timezone.utc),
    )
    db.add(t)
    await db.commit()
    await db.refresh(t)
    return t


@pytest_asyncio.fixture
async def other_tenant(db) -> Tenant:
    t = Tenant(
        id=uuid.uuid4(),
        name="Andere AG",
        slug=f"other-{uuid.uuid4().hex[:8]}",
        is_active=True,
        created_at=datetime.now(timezone.utc),
    )
    db.add(t)
    await db.commit()
    await db.refresh(t)
    return t


@pytest_asyncio.fixture
async def admin_user(db, tenant) -> User:
    return await make_user(db, tenant, "admin@test.de", "admin")


@pytest_asyncio.fixture
async def manager_user(db, tenant) -> User:
    return await make_user(db, tenant, "manager@test.de", "manager")


@pytest_asyncio.fixture
async def employee_user(db, tenant) -> User:
    return await make_user(db, tenant, "employee@test.de", "employee")


@pytest_asyncio.fixture
async def employee(db, tenant, employee_user) -> Employee:
    """Mitarbeiterprofil, verknüpft mit employee_user."""
    return await make_employee(db, tenant, employee_user)


@pytest_asyncio.fixture
def admin_token(admin_user) -> str:
    return create_access_token(admin_user.id, admin_user.tenant_id, "admin")


@pytest_asyncio.fixture
def manager_token(manager_user) -> str:
    return create_access_token(manager_user.id, manager_user.tenant_id, "manager")


@pytest_asyncio.fixture
def employee_token(employee_user) -> str:
    return create_access_token(employee_user.id, employee_user.tenant_id, "employee")


# ── Helper ────────────────────────────────────────────────────────────────────

def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def berlin(year, month, day, hour=0, minute=0, second=0) -> datetime:
    """Lokale Uhrzeit Europe/Berlin als UTC-Zeitstempel."""
    return datetime(year, month, day, hour, minute, second, tzinfo=BERLIN).astimezone(timezone.utc)


class FakeClock:
    """Injizierbare Uhr: clock() liefert den aktuellen Stand, advance() stellt vor."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


async def add_entry(
    db,
    employee: Employee,
    clock_in: datetime,
    clock_out: datetime | None = None,
    kind: str = KIND_WORK,
    break_type: str | None = None,
    session_id: uuid.UUID | None = None,
    notes: str | None = None,
) -> TimeEntry:
    """Legt einen Zeiteintrag direkt an (an den Services vorbei)."""
    entry = TimeEntry(
        id=uuid.uuid4(),
        tenant_id=employee.tenant_id,
        employee_id=employee.id,
        session_id=session_id or uuid.uuid4(),
        kind=kind,
        break_type=break_type,
        clock_in=clock_in,
        clock_out=clock_out,
        duration_minutes=(
            int((clock_out - clock_in).total_seconds() // 60) if clock_out else None
        ),
        notes=notes,
    )
    db.add(entry)
    await db.commit()
    await db.refresh(entry)
    return entry
