from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

CardType = Literal["basic", "cloze", "multiple_choice", "audio"]


class CardCreate(BaseModel):
    lesson_id: str
    front_content: str = Field(min_length=1)
    back_content: str = Field(min_length=1)
    card_type: CardType = "basic"
    difficulty_level: int = Field(default=1, ge=1, le=5)
    tags: List[str] = Field(default_factory=list)


class CardUpdate(BaseModel):
    card_id: str
    front_content: Optional[str] = Field(default=None, min_length=1)
    back_content: Optional[str] = Field(default=None, min_length=1)
    card_type: Optional[CardType] = None
    difficulty_level: Optional[int] = Field(default=None, ge=1, le=5)
    tags: Optional[List[str]] = None

    @field_validator("front_content", "back_content", "card_type", "difficulty_level", "tags")
    @classmethod
    def reject_explicit_null(cls, value):
        # Omit a field to leave it unchanged; null would clear a required column
        if value is None:
            raise ValueError("must not be null")
        return value


class CardRef(BaseModel):
    card_id: str


class CardRead(BaseModel):
    id: str
    lesson_id: str
    created_by: str
    front_content: str
    back_content: str
    card_type: str
    difficulty_level: int
    tags: List[str] = Field(default_factory=list)
    status: str
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
