"""Entry import job model for tracking CSV import progress."""
import enum

from sqlalchemy import JSON, Column, DateTime, Enum, Index, Integer, LargeBinary, String
from sqlalchemy.ext.mutable import MutableList

from habit_tracker.database import Base, new_id, utcnow
from habit_tracker.errors import InvalidStatusTransition

MAX_ERRORS = 100
TOO_MANY_ERRORS_MESSAGE = "Too many errors, stopping error collection..."


class EntryImportStatus(str, enum.Enum):
    """Lifecycle of an import job. Transitions only move forward."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (EntryImportStatus.COMPLETED, EntryImportStatus.FAILED)


ALLOWED_TRANSITIONS = {
    EntryImportStatus.PENDING: {EntryImportStatus.PROCESSING},
    EntryImportStatus.PROCESSING: {EntryImportStatus.COMPLETED, EntryImportStatus.FAILED},
    EntryImportStatus.COMPLETED: set(),
    EntryImportStatus.FAILED: set(),
}


class EntryImportJob(Base):
    """Model for tracking one uploaded CSV file and its processing outcome."""

    __tablename__ = "entry_import_jobs"

    id = Column(String(64), primary_key=True, default=lambda: new_id("ei"))
    user_id = Column(String(64), nullable=False)
    status = Column(
        Enum(
            EntryImportStatus,
            native_enum=False,
            length=20,
            values_callable=lambda members: [m.value for m in members],
        ),
        nullable=False,
        default=EntryImportStatus.PENDING,
    )
    file_name = Column(String(500), nullable=False)
    file_content = Column(LargeBinary, nullable=False)
    total_records = Column(Integer, default=0, nullable=False)
    processed_records = Column(Integer, default=0, nullable=False)
    successful_records = Column(Integer, default=0, nullable=False)
    failed_records = Column(Integer, default=0, nullable=False)
    errors = Column(MutableList.as_mutable(JSON), default=list, nullable=False)
    created_at_utc = Column(DateTime, default=utcnow, nullable=False)
    completed_at_utc = Column(DateTime, nullable=True)
    # Refreshed on claim and at every checkpoint; the sweeper uses it to tell
    # a slow job from a dead one.
    last_heartbeat_at_utc = Column(DateTime, nullable=True)

    __table_args__ = (
        Index("idx_entry_import_jobs_user_created", "user_id", "created_at_utc"),
        Index("idx_entry_import_jobs_status", "status"),
    )

    def transition_to(self, status: EntryImportStatus) -> None:
        """Move to ``status``, refusing backwards or skipped transitions."""
        current = EntryImportStatus(self.status)
        if status not in ALLOWED_TRANSITIONS[current]:
            raise InvalidStatusTransition(
                f"Import job {self.id} cannot move from {current.value} to {status.value}"
            )
        self.status = status

    def mark_completed(self) -> None:
        self.transition_to(EntryImportStatus.COMPLETED)
        self.completed_at_utc = utcnow()

    def mark_failed(self) -> None:
        self.transition_to(EntryImportStatus.FAILED)
        self.completed_at_utc = utcnow()

    @property
    def errors_capped(self) -> bool:
        return bool(self.errors) and self.errors[-1] == TOO_MANY_ERRORS_MESSAGE

    def add_error(self, message: str, limit: int = MAX_ERRORS) -> None:
        """
        Record a per-row error.

        Once ``limit`` errors are stored a single sentinel message is appended
        and every later error is dropped.
        """
        if self.errors is None:
            self.errors = []
        if self.errors_capped:
            return
        self.errors.append(message)
        if len(self.errors) >= limit:
            self.errors.append(TOO_MANY_ERRORS_MESSAGE)

    def add_fatal_error(self, message: str, limit: int = MAX_ERRORS) -> None:
        """Record the error that aborted the job without breaking the list bound."""
        if self.errors is None:
            self.errors = []
        if self.errors_capped:
            self.errors = self.errors[: limit - 1] + [message, TOO_MANY_ERRORS_MESSAGE]
        else:
            self.errors.append(message)

    def __repr__(self):
        return f"<EntryImportJob(id='{self.id}', status='{self.status}', file_name='{self.file_name}')>"
