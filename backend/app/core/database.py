from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import DeclarativeBase

from app.core.config import settings

IS_SQLITE = settings.DATABASE_URL.startswith("sqlite")

# SQLite benötigt check_same_thread=False; Postgres-Verbindungen vor Nutzung prüfen
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    connect_args={"check_same_thread": False} if IS_SQLITE else {},
    pool_pre_ping=not IS_SQLITE,
)

if IS_SQLITE:
    @event.listens_for(engine.sync_engine, "connect")
    def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
        # ON DELETE CASCADE (Tenant → Mitarbeiter → Zeiteinträge) greift sonst nicht
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    pass


async def get_db():
    """Eine Session pro Request; Services bestimmen selbst, wann committet wird."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def create_tables():
    """Erstellt alle Tabellen (lokale Entwicklung ohne Alembic)."""
    import app.models  # noqa – Tenant, User, Employee, TimeEntry, DailyApproval
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
