"""Entry import request and response schemas."""
from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from habit_tracker.errors import CsvRecordError
from habit_tracker.models.entry_import_job import EntryImportStatus


class CsvEntryRecord(BaseModel):
    """One data row of an uploaded entries CSV file."""

    habit_id: str = Field(..., min_length=1)
    date: date
    notes: Optional[str] = None

    @field_validator("habit_id", mode="before")
    @classmethod
    def strip_habit_id(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("date", mode="before")
    @classmethod
    def parse_calendar_date(cls, value: Any) -> Any:
        # Only YYYY-MM-DD; pydantic would otherwise accept timestamps and
        # fromisoformat accepts compact and week dates.
        if isinstance(value, str):
            value = value.strip()
            try:
                if len(value) != 10:
                    raise ValueError(value)
                return datetime.strptime(value, "%Y-%m-%d").date()
            except ValueError:
                raise ValueError(f"'{value}' is not a valid date (expected YYYY-MM-DD)")
        return value

    @field_validator("notes", mode="before")
    @classmethod
    def blank_notes_to_none(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value

    @classmethod
    def from_row(cls, row) -> "CsvEntryRecord":
        """
        Build a record from a parsed CSV row.

        Raises:
            CsvRecordError: if a field of the row holds an unusable value
        """
        try:
            return cls.model_validate(row.values)
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
                for err in e.errors()
            )
            raise CsvRecordError(f"Line {row.line_number}: {problems}") from e


class EntryImportJobResponse(BaseModel):
    """Entry import job status response."""

    id: str
    status: EntryImportStatus
    file_name: str
    total_records: int
    processed_records: int
    successful_records: int
    failed_records: int
    errors: list[str]
    created_at_utc: datetime
    completed_at_utc: Optional[datetime] = None

    class Config:
        from_attributes = True


class EntryImportJobListResponse(BaseModel):
    """Schema for paginated entry import job list responses."""

    items: list[EntryImportJobResponse]
    total: int
    page: int
    page_size: int
    pages: int
