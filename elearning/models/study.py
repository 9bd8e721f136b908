from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class StudyBatchRequest(BaseModel):
    user_id: Optional[str] = None
    pool_type: str = "both"
    limit_new: Optional[int] = None
    limit_due: Optional[int] = None
    lesson_id: Optional[str] = None


class StudyCard(BaseModel):
    card_id: str
    lesson_id: str
    front_content: str
    back_content: str
    card_type: str
    difficulty_level: int
    tags: List[str] = Field(default_factory=list)
    is_new: bool
    due_at: Optional[datetime] = None


class DueCardsRequest(BaseModel):
    user_id: Optional[str] = None
    limit: int = 10


class DueCard(BaseModel):
    card_id: str
    lesson_id: str
    lesson_name: str
    front_content: str
    difficulty_level: int
    scheduled_for: datetime
    is_overdue: bool


class ReviewSubmit(BaseModel):
    user_id: Optional[str] = None
    card_id: str
    quality: int
    response_time_ms: int = 0
    review_key: Optional[str] = Field(default=None, max_length=64)


class SchedulingStateRead(BaseModel):
    user_id: str
    card_id: str
    lesson_id: str
    ease_factor: float
    interval_days: int
    repetition_count: int
    due_at: datetime
    last_reviewed_at: Optional[datetime] = None
    last_quality: Optional[int] = None
    phase: str

    model_config = ConfigDict(from_attributes=True)


class ReviewResult(BaseModel):
    success: bool = True
    idempotent: bool = False
    review_id: str
    updated_state: SchedulingStateRead
