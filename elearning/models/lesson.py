from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class LessonCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    scheduled_at: datetime
    duration_minutes: Optional[int] = Field(default=None, gt=0)


class LessonRead(BaseModel):
    id: str
    teacher_id: str
    name: str
    description: Optional[str] = None
    scheduled_at: datetime
    duration_minutes: Optional[int] = None
    has_audio: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class LessonWithStats(LessonRead):
    student_count: int = 0
    card_count: int = 0
    pending_cards: int = 0


class LessonRef(BaseModel):
    lesson_id: str


class ParticipantAdd(BaseModel):
    lesson_id: str
    student_email: str


class ParticipantRemove(BaseModel):
    lesson_id: str
    student_id: str


class ParticipantRead(BaseModel):
    lesson_id: str
    student_id: str
    enrolled_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OperationResult(BaseModel):
    success: bool = True
    message: Optional[str] = None
