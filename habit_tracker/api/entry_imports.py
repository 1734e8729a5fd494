"""Entry import API endpoints."""
import logging
import math

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from sqlalchemy.orm import Session

from habit_tracker.api.dependencies import get_current_user_id
from habit_tracker.config import get_settings
from habit_tracker.database import get_db
from habit_tracker.errors import ImportValidationError
from habit_tracker.models.entry_import_job import EntryImportJob
from habit_tracker.schemas.entry_import import (
    EntryImportJobListResponse,
    EntryImportJobResponse,
)
from habit_tracker.services.entry_import_intake import submit_import_job

router = APIRouter(prefix="/api/entries/imports", tags=["entry-imports"])

settings = get_settings()
logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 8192


@router.post("", response_model=EntryImportJobResponse, status_code=201)
def create_import_job(
    file: UploadFile = File(...),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    Upload a CSV file of entries for background import.

    Expected columns: habit_id, date (YYYY-MM-DD) and optionally notes.
    Returns immediately with a pending job; poll GET /api/entries/imports/{job_id}
    for progress.
    """
    logger.info(f"📁 Entry import upload: filename={file.filename}, user={user_id}")

    # Read in chunks so oversized uploads are rejected without buffering them whole
    max_size = settings.import_max_file_size_bytes
    content = bytearray()
    chunk = file.file.read(READ_CHUNK_SIZE)
    while chunk:
        content.extend(chunk)
        if len(content) > max_size:
            logger.warning(f"❌ Upload too large: {file.filename}")
            raise HTTPException(
                status_code=413,
                detail=f"File size must be less than {max_size // (1024 * 1024)}MB",
            )
        chunk = file.file.read(READ_CHUNK_SIZE)

    try:
        job = submit_import_job(db, user_id, file.filename, bytes(content))
    except ImportValidationError as e:
        logger.warning(f"❌ Upload rejected: {file.filename}: {e}")
        raise HTTPException(status_code=e.status_code, detail=str(e))

    return job


@router.get("", response_model=EntryImportJobListResponse)
def list_import_jobs(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(10, ge=1, le=100, description="Items per page"),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """List the caller's import jobs, newest first."""
    query = db.query(EntryImportJob).filter(EntryImportJob.user_id == user_id)

    total = query.count()

    offset = (page - 1) * page_size
    items = (
        query.order_by(EntryImportJob.created_at_utc.desc())
        .offset(offset)
        .limit(page_size)
        .all()
    )

    pages = math.ceil(total / page_size) if total > 0 else 1

    return EntryImportJobListResponse(
        items=items,
        total=total,
        page=page,
        page_size=page_size,
        pages=pages,
    )


@router.get("/{job_id}", response_model=EntryImportJobResponse)
def get_import_job(
    job_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Get an import job's status and progress. Used for polling."""
    job = (
        db.query(EntryImportJob)
        .filter(EntryImportJob.id == job_id, EntryImportJob.user_id == user_id)
        .first()
    )
    if not job:
        raise HTTPException(status_code=404, detail="Import job not found")

    return job
