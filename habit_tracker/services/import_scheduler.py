"""Handing import jobs over to the background worker."""
import logging

from habit_tracker.tasks.import_tasks import process_entry_import

logger = logging.getLogger(__name__)


def processing_task_id(job_id: str) -> str:
    return f"process-entry-import-{job_id}"


def schedule_import_processing(job_id: str) -> None:
    """Queue a single immediate run of the import processor for ``job_id``."""
    task_id = processing_task_id(job_id)
    process_entry_import.apply_async(args=[job_id], task_id=task_id)
    logger.info(f"🚀 Queued import processing: job_id={job_id}, task_id={task_id}")
