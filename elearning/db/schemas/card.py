from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional
from uuid import uuid4

from sqlalchemy import Column, JSON
from sqlmodel import Field, SQLModel


class Card(SQLModel, table=True):
    __tablename__ = "sr_cards"

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    lesson_id: str = Field(foreign_key="lessons.id", index=True)
    created_by: str = Field(foreign_key="profiles.id", index=True)
    front_content: str
    back_content: str
    card_type: str = Field(default="basic")
    difficulty_level: int = Field(default=1)
    tags: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False, default=list))
    status: str = Field(default="pending", index=True)
    approved_by: Optional[str] = Field(default=None, foreign_key="profiles.id")
    approved_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), index=True)
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
