from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel


class Lesson(SQLModel, table=True):
    __tablename__ = "lessons"

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    teacher_id: str = Field(foreign_key="profiles.id", index=True)
    name: str
    description: Optional[str] = None
    scheduled_at: datetime
    duration_minutes: Optional[int] = None
    has_audio: bool = Field(default=False)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class LessonParticipant(SQLModel, table=True):
    __tablename__ = "lesson_participants"
    __table_args__ = (UniqueConstraint("lesson_id", "student_id", name="uq_lesson_participant"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    lesson_id: str = Field(foreign_key="lessons.id", index=True)
    student_id: str = Field(foreign_key="profiles.id", index=True)
    enrolled_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
