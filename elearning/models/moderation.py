from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

ContentType = Literal["lesson", "card", "comment", "transcript", "user_profile"]
FlagCategory = Literal["inappropriate", "incorrect", "spam", "offensive", "copyright", "misleading", "other"]


class FlagCreate(BaseModel):
    content_type: ContentType
    content_id: str
    flag_category: FlagCategory
    flag_reason: str
    evidence_text: Optional[str] = None
    anonymous: bool = False


class FlagResult(BaseModel):
    success: bool = True
    flag_id: str


class QueueRequest(BaseModel):
    status: Optional[Literal["pending", "under_review", "resolved", "dismissed"]] = "pending"
    limit: int = Field(default=50, ge=1, le=200)


class FlagResolve(BaseModel):
    flag_id: str
    status: Literal["under_review", "resolved", "dismissed"]
    resolution_notes: Optional[str] = None


class FlagRead(BaseModel):
    id: str
    content_type: str
    content_id: str
    reporter_id: Optional[str] = None
    flag_category: str
    flag_reason: str
    evidence_text: Optional[str] = None
    severity_level: int
    status: str
    anonymous_report: bool
    resolved_by: Optional[str] = None
    resolved_at: Optional[datetime] = None
    resolution_notes: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CategoryCount(BaseModel):
    category: str
    count: int


class ModerationStats(BaseModel):
    total_flags: int = 0
    pending_flags: int = 0
    resolved_flags: int = 0
    by_status: Dict[str, int] = Field(default_factory=dict)
    by_severity: Dict[int, int] = Field(default_factory=dict)
    top_categories: List[CategoryCount] = Field(default_factory=list)
    avg_resolution_time_hours: float = 0.0
