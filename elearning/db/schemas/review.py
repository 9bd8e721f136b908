from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from sqlalchemy import Index, UniqueConstraint
from sqlmodel import Field, SQLModel


class SchedulingState(SQLModel, table=True):
    __tablename__ = "sr_card_states"
    __table_args__ = (
        UniqueConstraint("user_id", "card_id", name="uq_card_state_user_card"),
        Index("ix_card_states_user_due", "user_id", "due_at"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(foreign_key="profiles.id", index=True)
    card_id: str = Field(index=True)
    # Denormalized so lesson filters don't need a join
    lesson_id: str = Field(index=True)
    ease_factor: float = Field(default=2.5)
    interval_days: int = Field(default=0)
    repetition_count: int = Field(default=0)
    due_at: datetime
    last_reviewed_at: Optional[datetime] = None
    last_quality: Optional[int] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ReviewEvent(SQLModel, table=True):
    __tablename__ = "sr_reviews"
    __table_args__ = (
        UniqueConstraint("user_id", "card_id", "review_key", name="uq_review_idempotency"),
        Index("ix_reviews_user_created", "user_id", "created_at"),
    )

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    user_id: str = Field(index=True)
    card_id: str = Field(index=True)
    lesson_id: str = Field(index=True)
    review_key: str = Field(max_length=64)
    quality_rating: int
    response_time_ms: int = Field(default=0)
    ease_factor: float
    interval_days: int
    repetition_count: int
    due_at: datetime
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
