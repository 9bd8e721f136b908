from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

import structlog
from sqlalchemy import func
from sqlmodel import select

from elearning.db.schemas import Card, ContentFlag, Lesson, Profile
from elearning.errors import ConflictError, NotFoundError, ValidationError
from elearning.models.moderation import (
    CategoryCount,
    FlagCreate,
    FlagRead,
    FlagResolve,
    FlagResult,
    ModerationStats,
)
from elearning.services.base import BaseService
from elearning.utils.time import as_utc

logger = structlog.get_logger(__name__)

SEVERITY_BY_CATEGORY = {
    "offensive": 4,
    "inappropriate": 3,
    "copyright": 3,
    "misleading": 2,
    "incorrect": 2,
    "spam": 1,
    "other": 1,
}

FLAG_STATUSES = ("pending", "under_review", "resolved", "dismissed")

# Content kinds stored in this service; others are accepted as opaque ids
CONTENT_TABLES = {"lesson": Lesson, "card": Card, "user_profile": Profile}


class ModerationService(BaseService):
    def flag_content(self, reporter: Profile, data: FlagCreate) -> FlagResult:
        reason = data.flag_reason.strip()
        if not reason:
            raise ValidationError("A reason is required to report content")
        table = CONTENT_TABLES.get(data.content_type)
        if table is not None and not self.session.get(table, data.content_id):
            raise NotFoundError(f"{data.content_type} not found")
        duplicate = self.session.exec(
            select(ContentFlag)
            .where(ContentFlag.reporter_id == reporter.id)
            .where(ContentFlag.content_type == data.content_type)
            .where(ContentFlag.content_id == data.content_id)
            .where(ContentFlag.status.in_(["pending", "under_review"]))
        ).first()
        if duplicate:
            raise ConflictError("You have already reported this content")
        flag = ContentFlag(
            content_type=data.content_type,
            content_id=data.content_id,
            reporter_id=reporter.id,
            flag_category=data.flag_category,
            flag_reason=reason,
            evidence_text=(data.evidence_text or "").strip() or None,
            severity_level=SEVERITY_BY_CATEGORY[data.flag_category],
            anonymous_report=data.anonymous,
        )
        self.session.add(flag)
        self.session.commit()
        self.session.refresh(flag)
        logger.info(
            "content_flagged",
            flag_id=flag.id,
            content_type=flag.content_type,
            content_id=flag.content_id,
            category=flag.flag_category,
        )
        return FlagResult(flag_id=flag.id)

    def list_queue(self, moderator: Profile, status: Optional[str] = "pending", limit: int = 50) -> List[FlagRead]:
        self._require_role(moderator, "admin")
        statement = select(ContentFlag)
        if status is not None:
            statement = statement.where(ContentFlag.status == status)
        statement = statement.order_by(ContentFlag.severity_level.desc(), ContentFlag.created_at).limit(limit)
        return [self._to_read(flag) for flag in self.session.exec(statement).all()]

    def resolve_flag(self, moderator: Profile, data: FlagResolve) -> FlagRead:
        self._require_role(moderator, "admin")
        flag = self.session.get(ContentFlag, data.flag_id)
        if not flag:
            raise NotFoundError("Flag not found")
        if flag.status in ("resolved", "dismissed"):
            raise ConflictError(f"Flag is already {flag.status}")
        now = datetime.now(timezone.utc)
        flag.status = data.status
        flag.resolution_notes = data.resolution_notes
        if data.status in ("resolved", "dismissed"):
            flag.resolved_by = moderator.id
            flag.resolved_at = now
        flag.updated_at = now
        self.session.add(flag)
        self.session.commit()
        self.session.refresh(flag)
        logger.info("flag_resolved", flag_id=flag.id, status=flag.status, moderator_id=moderator.id)
        return self._to_read(flag)

    def get_moderation_stats(self, moderator: Profile) -> ModerationStats:
        self._require_role(moderator, "admin")
        by_status = {flag_status: 0 for flag_status in FLAG_STATUSES}
        by_status.update(
            self.session.exec(
                select(ContentFlag.status, func.count(ContentFlag.id)).group_by(ContentFlag.status)
            ).all()
        )
        by_severity = {level: 0 for level in range(1, 6)}
        by_severity.update(
            self.session.exec(
                select(ContentFlag.severity_level, func.count(ContentFlag.id)).group_by(ContentFlag.severity_level)
            ).all()
        )
        categories = self.session.exec(
            select(ContentFlag.flag_category, func.count(ContentFlag.id))
            .group_by(ContentFlag.flag_category)
            .order_by(func.count(ContentFlag.id).desc(), ContentFlag.flag_category)
            .limit(5)
        ).all()
        closed = self.session.exec(
            select(ContentFlag.created_at, ContentFlag.resolved_at).where(ContentFlag.resolved_at.is_not(None))
        ).all()
        hours = [(as_utc(resolved) - as_utc(created)).total_seconds() / 3600 for created, resolved in closed]
        return ModerationStats(
            total_flags=sum(by_status.values()),
            pending_flags=by_status["pending"],
            resolved_flags=by_status["resolved"],
            by_status=by_status,
            by_severity=by_severity,
            top_categories=[CategoryCount(category=category, count=count) for category, count in categories],
            avg_resolution_time_hours=round(sum(hours) / len(hours), 1) if hours else 0.0,
        )

    @staticmethod
    def _to_read(flag: ContentFlag) -> FlagRead:
        read = FlagRead.model_validate(flag)
        if flag.anonymous_report:
            read.reporter_id = None
        return read
