"""Exceptions raised by the entry import pipeline."""


class ImportValidationError(ValueError):
    """Uploaded file was rejected before a job was created."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


class CsvFormatError(ValueError):
    """The payload is not a CSV file of the expected shape.

    Raised for undecodable bytes, a missing header, ragged rows and rows
    whose values cannot be mapped to a record. These fail the whole import job.
    """


class CsvRecordError(CsvFormatError):
    """A row cannot be mapped to an entry record (bad date, empty habit id)."""


class HabitNotFoundError(ValueError):
    """A row references a habit that does not exist or is not the user's."""

    def __init__(self, habit_id: str):
        super().__init__(
            f"Habit with ID '{habit_id}' does not exist or does not belong to the user"
        )
        self.habit_id = habit_id


class InvalidStatusTransition(Exception):
    """An import job was asked to move backwards or skip a state."""
