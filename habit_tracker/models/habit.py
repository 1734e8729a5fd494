"""Habit model."""
from sqlalchemy import Column, DateTime, Index, Integer, String

from habit_tracker.database import Base, utcnow


class Habit(Base):
    """A habit owned by a single user.

    Only the columns the entry import reads are mapped here; the rest of the
    habit lifecycle belongs to the habits API.
    """

    __tablename__ = "habits"

    id = Column(String(64), primary_key=True)
    user_id = Column(String(64), nullable=False)
    name = Column(String(100), nullable=False)
    target_value = Column(Integer, nullable=False)
    target_unit = Column(String(100), nullable=False)
    created_at_utc = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (Index("idx_habits_user_id", "user_id"),)

    def __repr__(self):
        return f"<Habit(id='{self.id}', user_id='{self.user_id}', name='{self.name}')>"
