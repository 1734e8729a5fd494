"""Accepting uploaded CSV files as entry import jobs."""
import logging
from typing import Optional

from sqlalchemy.orm import Session

from habit_tracker.config import get_settings
from habit_tracker.database import new_id, utcnow
from habit_tracker.errors import ImportValidationError
from habit_tracker.models.entry_import_job import EntryImportJob, EntryImportStatus
from habit_tracker.services.import_scheduler import schedule_import_processing

settings = get_settings()
logger = logging.getLogger(__name__)


def validate_upload(
    filename: Optional[str], content: Optional[bytes], max_size: Optional[int] = None
) -> None:
    """
    Reject uploads that must never become an import job.

    Raises:
        ImportValidationError: if the file is missing, empty, not a .csv file
            or larger than ``max_size`` bytes
    """
    if max_size is None:
        max_size = settings.import_max_file_size_bytes

    if not filename or content is None:
        raise ImportValidationError("File is required")
    if not filename.lower().endswith(".csv"):
        raise ImportValidationError("File must be a CSV file")
    if len(content) == 0:
        raise ImportValidationError("File is empty")
    if len(content) > max_size:
        raise ImportValidationError(
            f"File size must be less than {max_size // (1024 * 1024)}MB",
            status_code=413,
        )


def create_import_job(
    db: Session, user_id: str, filename: str, content: bytes
) -> EntryImportJob:
    """Persist a new pending import job holding the raw file bytes."""
    job = EntryImportJob(
        id=new_id("ei"),
        user_id=user_id,
        status=EntryImportStatus.PENDING,
        file_name=filename,
        file_content=content,
        total_records=0,
        processed_records=0,
        successful_records=0,
        failed_records=0,
        errors=[],
        created_at_utc=utcnow(),
    )
    db.add(job)
    db.commit()
    db.refresh(job)
    logger.info(f"💾 Import job created: id={job.id}, user={user_id}, file={filename}, bytes={len(content)}")
    return job


def submit_import_job(
    db: Session, user_id: str, filename: Optional[str], content: Optional[bytes]
) -> EntryImportJob:
    """
    Validate an upload, store it as a pending job and queue its processing.

    The caller never waits for processing. If queueing fails the job stays
    pending and is eventually removed by the retention sweep.
    """
    validate_upload(filename, content)
    job = create_import_job(db, user_id, filename, content)

    try:
        schedule_import_processing(job.id)
    except Exception as e:
        logger.error(
            f"❌ Could not schedule processing for import job {job.id}, it stays pending: {e}",
            exc_info=True,
        )

    return job
