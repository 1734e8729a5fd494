"""Database models."""
from habit_tracker.models.entry import Entry, EntrySource
from habit_tracker.models.entry_import_job import EntryImportJob, EntryImportStatus
from habit_tracker.models.habit import Habit

__all__ = ["Entry", "EntrySource", "EntryImportJob", "EntryImportStatus", "Habit"]
