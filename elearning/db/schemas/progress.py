from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel


class StudyProgress(SQLModel, table=True):
    """Per-lesson review counters for dashboards; rebuildable from sr_reviews."""

    __tablename__ = "sr_progress"
    __table_args__ = (UniqueConstraint("student_id", "lesson_id", name="uq_progress_student_lesson"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    student_id: str = Field(index=True)
    lesson_id: str = Field(index=True)
    cards_reviewed: int = Field(default=0)
    total_reviews: int = Field(default=0)
    quality_sum: int = Field(default=0)
    last_review_at: Optional[datetime] = None
    next_review_at: Optional[datetime] = None
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
