"""Celery tasks for entry import processing and retention."""
import logging

from sqlalchemy.exc import SQLAlchemyError

from habit_tracker.config import get_settings
from habit_tracker.database import SessionLocal
from habit_tracker.services.entry_import_processor import process_import_job
from habit_tracker.services.import_cleanup import cleanup_import_jobs
from habit_tracker.tasks.celery_app import celery_app

settings = get_settings()
logger = logging.getLogger(__name__)


@celery_app.task(bind=True, name="entry_imports.process")
def process_entry_import(self, job_id: str) -> dict:
    """
    Process an uploaded entries CSV file in the background.
    This runs in a Celery worker, NOT in web request context.

    Args:
        self: Celery task instance
        job_id: Entry import job ID

    Returns:
        Dict with job status and counts
    """
    logger.info(f"🚀 Starting entry import task: job_id={job_id}, task_id={self.request.id}")

    db = SessionLocal()
    try:
        job = process_import_job(
            job_id,
            db,
            checkpoint_interval=settings.import_checkpoint_interval,
            max_errors=settings.import_max_errors,
        )
        if job is None:
            return {"job_id": job_id, "status": "not_found"}

        try:
            result = {
                "job_id": job_id,
                "status": job.status.value,
                "total_records": job.total_records,
                "successful_records": job.successful_records,
                "failed_records": job.failed_records,
            }
        except SQLAlchemyError as e:
            # Final state could not be read back, e.g. the row is gone.
            logger.warning(f"⚠️ Could not read final state of import job {job_id}: {e}")
            return {"job_id": job_id, "status": "unknown"}
        logger.info(f"🎉 Entry import task finished: {result}")
        return result
    finally:
        db.close()


@celery_app.task(name="entry_imports.cleanup")
def cleanup_entry_import_jobs() -> dict:
    """Delete expired and stuck entry import jobs. Scheduled daily by beat."""
    db = SessionLocal()
    try:
        return cleanup_import_jobs(db)
    finally:
        db.close()
