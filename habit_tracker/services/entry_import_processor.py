"""Processing of queued entry import jobs."""
import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from habit_tracker.database import new_id, utcnow
from habit_tracker.errors import HabitNotFoundError
from habit_tracker.models.entry import Entry, EntrySource
from habit_tracker.models.entry_import_job import (
    MAX_ERRORS,
    EntryImportJob,
    EntryImportStatus,
)
from habit_tracker.models.habit import Habit
from habit_tracker.schemas.entry_import import CsvEntryRecord
from habit_tracker.services.csv_parser import parse_entry_records

CHECKPOINT_INTERVAL = 100

logger = logging.getLogger(__name__)


def process_import_job(
    job_id: str,
    db: Session,
    checkpoint_interval: int = CHECKPOINT_INTERVAL,
    max_errors: int = MAX_ERRORS,
) -> Optional[EntryImportJob]:
    """
    Drive an import job from pending to completed or failed.

    Each record becomes an entry for the job owner's habit. A record whose
    habit is missing or belongs to someone else only fails itself; a file
    that cannot be mapped to records, or a database error, fails the whole
    job. Nothing is raised to the caller: the outcome is always visible on
    the job record.

    Args:
        job_id: Import job ID
        db: Database session
        checkpoint_interval: Commit progress after this many processed rows
        max_errors: Per-row errors kept before the list is capped

    Returns:
        The job, or None if no job has this ID or it could not be claimed
    """
    try:
        job = db.query(EntryImportJob).filter(EntryImportJob.id == job_id).first()
        if not job:
            logger.error(f"❌ Import job {job_id} not found")
            return None

        claimed = claim_import_job(job_id, db)
        db.refresh(job)
    except SQLAlchemyError as e:
        # The job stays pending and is removed by the stuck-job sweep.
        logger.error(f"💥 Could not load or claim import job {job_id}: {e}", exc_info=True)
        db.rollback()
        return None

    if not claimed:
        logger.warning(
            f"⚠️ Import job {job_id} was not pending (status={job.status.value}), skipping"
        )
        return job

    try:
        logger.info(f"⚙️ Processing import job {job_id}: file={job.file_name}, user={job.user_id}")
        records = parse_entry_records(job.file_content)

        job.total_records = len(records)
        db.commit()
        logger.info(f"🔢 Import job {job_id} has {job.total_records} records")

        for record in records:
            try:
                db.add(build_entry(db, job.user_id, record))
                job.successful_records += 1
            except HabitNotFoundError as e:
                job.failed_records += 1
                job.add_error(f"Error processing record: {e}", max_errors)
                logger.debug(f"Import job {job_id} row failed: {e}")
            finally:
                job.processed_records += 1

            if job.processed_records % checkpoint_interval == 0:
                save_checkpoint(job, db)

        job.mark_completed()
        job.last_heartbeat_at_utc = job.completed_at_utc
        db.commit()
        logger.info(
            f"🏁 Import job {job_id} completed: total={job.total_records}, "
            f"successful={job.successful_records}, failed={job.failed_records}"
        )

    except Exception as e:
        logger.error(f"💥 Error processing import job {job_id}: {e}", exc_info=True)
        mark_job_failed(job, db, f"Fatal error: {e}", max_errors)

    return job


def claim_import_job(job_id: str, db: Session) -> bool:
    """
    Atomically move a job from pending to processing.

    Returns False when another run already claimed the job or it has
    finished, so a duplicate trigger never processes a file twice.
    """
    now = utcnow()
    claimed = (
        db.query(EntryImportJob)
        .filter(
            EntryImportJob.id == job_id,
            EntryImportJob.status == EntryImportStatus.PENDING,
        )
        .update(
            {
                EntryImportJob.status: EntryImportStatus.PROCESSING,
                EntryImportJob.last_heartbeat_at_utc: now,
            },
            synchronize_session=False,
        )
    )
    db.commit()
    return claimed == 1


def build_entry(db: Session, user_id: str, record: CsvEntryRecord) -> Entry:
    """
    Create the entry for one CSV record.

    Raises:
        HabitNotFoundError: if the habit is missing or owned by another user
    """
    habit = (
        db.query(Habit)
        .filter(Habit.id == record.habit_id, Habit.user_id == user_id)
        .first()
    )
    if habit is None:
        raise HabitNotFoundError(record.habit_id)

    return Entry(
        id=new_id("e"),
        user_id=user_id,
        habit_id=habit.id,
        value=habit.target_value,
        date=record.date,
        notes=record.notes,
        source=EntrySource.FILE_IMPORT,
        created_at_utc=utcnow(),
    )


def save_checkpoint(job: EntryImportJob, db: Session) -> None:
    """Commit staged entries and counters so polling sees progress."""
    job.last_heartbeat_at_utc = utcnow()
    db.commit()
    logger.debug(
        f"📊 Import job {job.id} checkpoint: {job.processed_records}/{job.total_records} processed"
    )


def mark_job_failed(job: EntryImportJob, db: Session, message: str, max_errors: int) -> None:
    """
    Best-effort final write after a fatal error.

    Work staged since the last checkpoint is rolled back first, so the stored
    counters and entries stay consistent. If this write fails too, the job
    stays processing until the stuck-job sweep removes it.
    """
    try:
        db.rollback()
        db.refresh(job)
        job.mark_failed()
        job.add_fatal_error(message, max_errors)
        db.commit()
        logger.info(f"📊 Import job {job.id} marked as failed")
    except Exception as e:
        logger.error(f"💥 Could not mark import job {job.id} as failed: {e}", exc_info=True)
