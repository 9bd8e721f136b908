from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from sqlmodel import Field, SQLModel


class ContentFlag(SQLModel, table=True):
    __tablename__ = "content_flags"

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    content_type: str = Field(index=True)
    content_id: str = Field(index=True)
    reporter_id: str = Field(foreign_key="profiles.id", index=True)
    flag_category: str
    flag_reason: str
    evidence_text: Optional[str] = None
    severity_level: int = Field(default=1)
    status: str = Field(default="pending", index=True)
    anonymous_report: bool = Field(default=False)
    resolved_by: Optional[str] = Field(default=None, foreign_key="profiles.id")
    resolved_at: Optional[datetime] = None
    resolution_notes: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
