"""Retention sweep for old and abandoned entry import jobs."""
import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from habit_tracker.config import get_settings
from habit_tracker.database import utcnow
from habit_tracker.models.entry_import_job import EntryImportJob, EntryImportStatus

settings = get_settings()
logger = logging.getLogger(__name__)


def cleanup_import_jobs(db: Session, now: Optional[datetime] = None) -> dict[str, int]:
    """
    Delete import jobs that are past their retention window.

    Three independent passes, each committed on its own:
    - completed jobs finished more than ``import_completed_retention_days`` ago
    - failed jobs finished more than ``import_failed_retention_days`` ago
    - pending or processing jobs with no sign of life for
      ``import_stuck_after_hours`` (never scheduled, or the worker died)

    A failing pass is logged and counted as zero; this function never raises
    so the next scheduled run acts as the retry.

    Returns:
        Deleted row counts keyed by "completed", "failed" and "stuck"
    """
    now = now or utcnow()

    completed_cutoff = now - timedelta(days=settings.import_completed_retention_days)
    failed_cutoff = now - timedelta(days=settings.import_failed_retention_days)
    stuck_cutoff = now - timedelta(hours=settings.import_stuck_after_hours)

    last_seen = func.coalesce(EntryImportJob.last_heartbeat_at_utc, EntryImportJob.created_at_utc)

    passes = [
        (
            "completed",
            [
                EntryImportJob.status == EntryImportStatus.COMPLETED,
                EntryImportJob.completed_at_utc < completed_cutoff,
            ],
        ),
        (
            "failed",
            [
                EntryImportJob.status == EntryImportStatus.FAILED,
                EntryImportJob.completed_at_utc < failed_cutoff,
            ],
        ),
        (
            "stuck",
            [
                EntryImportJob.status.in_(
                    [EntryImportStatus.PENDING, EntryImportStatus.PROCESSING]
                ),
                last_seen < stuck_cutoff,
            ],
        ),
    ]

    results = {}
    for name, criteria in passes:
        results[name] = _delete_jobs(db, name, criteria)

    return results


def _delete_jobs(db: Session, name: str, criteria: list) -> int:
    try:
        deleted = (
            db.query(EntryImportJob)
            .filter(*criteria)
            .delete(synchronize_session=False)
        )
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"💥 Error cleaning up {name} import jobs: {e}", exc_info=True)
        return 0

    if name == "stuck" and deleted > 0:
        logger.warning(f"⚠️ Deleted {deleted} stuck import jobs")
    else:
        logger.info(f"🧹 Deleted {deleted} old {name} import jobs")
    return deleted
