"""
Celery-Tasks für die Bereinigung vergessener Sitzungen.
"""
import asyncio
import logging

from app.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(name="app.tasks.session_tasks.reconcile_stale_sessions")
def reconcile_stale_sessions() -> dict:
    """Schließt offene Einträge jenseits des Horizonts (alle Tenants)."""
    return asyncio.run(_reconcile())


async def _reconcile() -> dict:
    from app.core.database import AsyncSessionLocal
    from app.services.stale_session_service import StaleSessionService

    async with AsyncSessionLocal() as db:
        report = await StaleSessionService(db).reconcile()

    logger.info(
        "Stale session run at %s: %d closed, %d skipped",
        report.checked_at, report.closed_count, report.skipped,
    )
    return {
        "checked_at": report.checked_at.isoformat(),
        "closed": [str(c.entry_id) for c in report.closed],
        "skipped": report.skipped,
    }
