"""Entry model."""
import enum

from sqlalchemy import Column, Date, DateTime, Enum, ForeignKey, Index, Integer, String, Text

from habit_tracker.database import Base, utcnow


class EntrySource(str, enum.Enum):
    """Where an entry came from."""

    MANUAL = "manual"
    AUTOMATION = "automation"
    FILE_IMPORT = "file_import"


class Entry(Base):
    """One habit completion on a given day."""

    __tablename__ = "entries"

    id = Column(String(64), primary_key=True)
    user_id = Column(String(64), nullable=False)
    habit_id = Column(String(64), ForeignKey("habits.id", ondelete="CASCADE"), nullable=False)
    value = Column(Integer, nullable=False)
    date = Column(Date, nullable=False)
    notes = Column(Text, nullable=True)
    source = Column(
        Enum(
            EntrySource,
            native_enum=False,
            length=20,
            values_callable=lambda members: [m.value for m in members],
        ),
        nullable=False,
        default=EntrySource.MANUAL,
    )
    created_at_utc = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (Index("idx_entries_user_habit", "user_id", "habit_id"),)

    def __repr__(self):
        return f"<Entry(id='{self.id}', habit_id='{self.habit_id}', date={self.date})>"
