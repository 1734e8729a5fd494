"""Tests for the import job retention sweep."""
from datetime import timedelta
from unittest.mock import MagicMock

from sqlalchemy.exc import SQLAlchemyError

from habit_tracker.database import utcnow
from habit_tracker.models import EntryImportJob, EntryImportStatus
from habit_tracker.services.import_cleanup import cleanup_import_jobs


def remaining_ids(db):
    db.expire_all()
    return {job.id for job in db.query(EntryImportJob).all()}


def test_completed_jobs_kept_for_seven_days(db, make_job):
    now = utcnow()
    expired = make_job(
        status=EntryImportStatus.COMPLETED,
        created_at_utc=now - timedelta(days=8),
        completed_at_utc=now - timedelta(days=8),
    )
    recent = make_job(
        status=EntryImportStatus.COMPLETED,
        created_at_utc=now - timedelta(days=6),
        completed_at_utc=now - timedelta(days=6),
    )

    result = cleanup_import_jobs(db, now=now)

    assert result["completed"] == 1
    assert remaining_ids(db) == {recent.id}
    assert expired.id not in remaining_ids(db)


def test_failed_jobs_kept_for_thirty_days(db, make_job):
    now = utcnow()
    make_job(
        status=EntryImportStatus.FAILED,
        created_at_utc=now - timedelta(days=31),
        completed_at_utc=now - timedelta(days=31),
    )
    recent = make_job(
        status=EntryImportStatus.FAILED,
        created_at_utc=now - timedelta(days=29),
        completed_at_utc=now - timedelta(days=29),
    )

    result = cleanup_import_jobs(db, now=now)

    assert result["failed"] == 1
    assert remaining_ids(db) == {recent.id}


def test_stuck_processing_jobs_are_deleted(db, make_job):
    now = utcnow()
    make_job(status=EntryImportStatus.PROCESSING, created_at_utc=now - timedelta(hours=3))
    running = make_job(status=EntryImportStatus.PROCESSING, created_at_utc=now - timedelta(hours=1))

    result = cleanup_import_jobs(db, now=now)

    assert result["stuck"] == 1
    assert remaining_ids(db) == {running.id}


def test_recent_heartbeat_keeps_long_running_job(db, make_job):
    now = utcnow()
    alive = make_job(
        status=EntryImportStatus.PROCESSING,
        created_at_utc=now - timedelta(hours=5),
        last_heartbeat_at_utc=now - timedelta(minutes=10),
    )
    make_job(
        status=EntryImportStatus.PROCESSING,
        created_at_utc=now - timedelta(hours=5),
        last_heartbeat_at_utc=now - timedelta(hours=3),
    )

    result = cleanup_import_jobs(db, now=now)

    assert result["stuck"] == 1
    assert remaining_ids(db) == {alive.id}


def test_never_scheduled_pending_jobs_are_deleted(db, make_job):
    now = utcnow()
    make_job(status=EntryImportStatus.PENDING, created_at_utc=now - timedelta(hours=3))
    fresh = make_job(status=EntryImportStatus.PENDING, created_at_utc=now - timedelta(minutes=5))

    result = cleanup_import_jobs(db, now=now)

    assert result["stuck"] == 1
    assert remaining_ids(db) == {fresh.id}


def test_old_terminal_jobs_are_not_treated_as_stuck(db, make_job):
    now = utcnow()
    done = make_job(
        status=EntryImportStatus.COMPLETED,
        created_at_utc=now - timedelta(days=2),
        completed_at_utc=now - timedelta(days=2),
    )

    result = cleanup_import_jobs(db, now=now)

    assert result == {"completed": 0, "failed": 0, "stuck": 0}
    assert remaining_ids(db) == {done.id}


def test_second_run_deletes_nothing(db, make_job):
    now = utcnow()
    make_job(
        status=EntryImportStatus.COMPLETED,
        created_at_utc=now - timedelta(days=10),
        completed_at_utc=now - timedelta(days=10),
    )
    make_job(status=EntryImportStatus.PROCESSING, created_at_utc=now - timedelta(hours=4))

    first = cleanup_import_jobs(db, now=now)
    second = cleanup_import_jobs(db, now=now)

    assert first == {"completed": 1, "failed": 0, "stuck": 1}
    assert second == {"completed": 0, "failed": 0, "stuck": 0}


def test_database_errors_are_swallowed():
    db = MagicMock()
    db.query.side_effect = SQLAlchemyError("database unavailable")

    result = cleanup_import_jobs(db)

    assert result == {"completed": 0, "failed": 0, "stuck": 0}
    assert db.rollback.call_count == 3
    db.commit.assert_not_called()


def test_one_failing_pass_does_not_stop_the_others(db, make_job, monkeypatch):
    now = utcnow()
    make_job(status=EntryImportStatus.PROCESSING, created_at_utc=now - timedelta(hours=3))

    original_query = db.query
    calls = []

    def flaky_query(*args, **kwargs):
        calls.append(args)
        if len(calls) == 1:
            raise SQLAlchemyError("transient")
        return original_query(*args, **kwargs)

    monkeypatch.setattr(db, "query", flaky_query)

    result = cleanup_import_jobs(db, now=now)

    assert result == {"completed": 0, "failed": 0, "stuck": 1}
