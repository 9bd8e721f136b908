from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class UserRef(BaseModel):
    user_id: Optional[str] = None


class UserStats(BaseModel):
    total_reviews: int = 0
    average_quality: float = 0.0
    study_streak: int = 0
    cards_learned: int = 0
    cards_due_today: int = 0
    next_review_date: Optional[datetime] = None
    weekly_progress: List[int] = Field(default_factory=lambda: [0] * 7)
    monthly_progress: List[int] = Field(default_factory=lambda: [0] * 30)


class LessonProgress(BaseModel):
    lesson_id: str
    lesson_name: str
    cards_total: int = 0
    cards_reviewed: int = 0
    cards_learned: int = 0
    cards_due: int = 0
    average_quality: float = 0.0
    progress_percentage: float = 0.0
    next_review_date: Optional[datetime] = None
    last_review_date: Optional[datetime] = None


class ActivityItem(BaseModel):
    type: Literal["lesson_created", "card_approved", "student_enrolled"]
    description: str
    timestamp: datetime


class TeacherStats(BaseModel):
    total_lessons: int = 0
    total_students: int = 0
    total_cards_created: int = 0
    pending_cards: int = 0
    recent_activity: List[ActivityItem] = Field(default_factory=list)


class StudentLessonProgress(BaseModel):
    student_id: str
    student_name: str
    student_email: str
    enrolled_at: datetime
    cards_reviewed: int = 0
    total_reviews: int = 0
    average_quality: float = 0.0
    last_review_at: Optional[datetime] = None


class LessonAnalytics(BaseModel):
    lesson_id: str
    lesson_name: str
    total_participants: int = 0
    total_cards: int = 0
    approved_cards: int = 0
    pending_cards: int = 0
    total_reviews: int = 0
    average_quality: float = 0.0
    student_progress: List[StudentLessonProgress] = Field(default_factory=list)
