from __future__ import annotations

from collections import defaultdict
from datetime import datetime
from typing import Dict, Optional
from uuid import uuid4

import structlog
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlmodel import Session as DBSession, select

from elearning.config.settings import Settings, get_settings
from elearning.db.schemas import Card, Lesson, ReviewEvent, SchedulingState, StudyProgress
from elearning.errors import ConflictError, NotFoundError, TransientError, ValidationError
from elearning.models.study import ReviewResult, SchedulingStateRead
from elearning.scheduling import (
    ScheduleState,
    SchedulerConfig,
    compute_next_schedule,
    phase_for,
    validate_quality,
)
from elearning.services.base import BaseService
from elearning.utils.time import as_utc, utcnow

logger = structlog.get_logger(__name__)


class ReviewService(BaseService):
    def __init__(self, session: DBSession, settings: Optional[Settings] = None) -> None:
        super().__init__(session)
        settings = settings or get_settings()
        self.config = SchedulerConfig(
            initial_ease=settings.sm2_initial_ease,
            minimum_ease=settings.sm2_minimum_ease,
            first_interval=settings.sm2_first_interval,
            second_interval=settings.sm2_second_interval,
        )

    def record_review(
        self,
        user_id: str,
        card_id: str,
        quality: int,
        response_time_ms: int = 0,
        review_key: Optional[str] = None,
        *,
        now: Optional[datetime] = None,
    ) -> ReviewResult:
        """Append a review event and advance the card's schedule in one transaction.

        A repeated ``review_key`` for the same user and card returns the
        current state without recording a second event.
        """
        validate_quality(quality)
        if response_time_ms < 0:
            raise ValidationError("response_time_ms must not be negative")
        logger.info(
            "review_received",
            user_id=user_id,
            card_id=card_id,
            quality=quality,
            review_key=review_key,
        )
        try:
            return self._record(user_id, card_id, quality, response_time_ms, review_key, now)
        except OperationalError as exc:
            self.session.rollback()
            logger.warning("review_store_unavailable", user_id=user_id, card_id=card_id, error=str(exc))
            raise TransientError("Could not record the review, please retry") from exc

    def rebuild_progress(self, user_id: str) -> int:
        """Recompute the user's per-lesson counters from the review log."""
        self._get_profile(user_id)
        for row in self.session.exec(select(StudyProgress).where(StudyProgress.student_id == user_id)).all():
            self.session.delete(row)
        self.session.flush()

        # Events of deleted lessons stay in the log but no longer count
        events = self.session.exec(
            select(ReviewEvent)
            .join(Lesson, Lesson.id == ReviewEvent.lesson_id)
            .where(ReviewEvent.user_id == user_id)
            .order_by(ReviewEvent.created_at)
        ).all()
        rows: Dict[str, StudyProgress] = {}
        seen_cards: Dict[str, set] = defaultdict(set)
        for event in events:
            progress = rows.get(event.lesson_id)
            if progress is None:
                progress = StudyProgress(student_id=user_id, lesson_id=event.lesson_id)
                rows[event.lesson_id] = progress
            progress.total_reviews += 1
            progress.quality_sum += event.quality_rating
            seen_cards[event.lesson_id].add(event.card_id)
            progress.cards_reviewed = len(seen_cards[event.lesson_id])
            progress.last_review_at = event.created_at
        for lesson_id, progress in rows.items():
            progress.next_review_at = self._next_due(user_id, lesson_id)
            self.session.add(progress)
        self.session.commit()
        logger.info("progress_rebuilt", user_id=user_id, lessons=len(rows), events=len(events))
        return len(rows)

    def _record(
        self,
        user_id: str,
        card_id: str,
        quality: int,
        response_time_ms: int,
        review_key: Optional[str],
        now: Optional[datetime],
    ) -> ReviewResult:
        self._get_profile(user_id)
        card = self._get_card(card_id)
        if card.status != "approved":
            raise NotFoundError("Card not found")
        if not self._get_enrollment(card.lesson_id, user_id):
            raise NotFoundError("Enrollment not found")

        if review_key:
            existing = self._get_event(user_id, card_id, review_key)
            if existing:
                return self._replay(existing, quality)
        else:
            review_key = uuid4().hex

        now = as_utc(now) or utcnow()
        state = self._get_state(user_id, card_id)
        is_first = state is None
        if state is None:
            prior = ScheduleState.initial(self.config)
        else:
            prior = ScheduleState(
                ease_factor=state.ease_factor,
                interval_days=state.interval_days,
                repetition_count=state.repetition_count,
            )
        result = compute_next_schedule(prior, quality, now, self.config)

        if state is None:
            state = SchedulingState(
                user_id=user_id,
                card_id=card_id,
                lesson_id=card.lesson_id,
                due_at=result.due_at,
                created_at=now,
            )
        state.ease_factor = result.ease_factor
        state.interval_days = result.interval_days
        state.repetition_count = result.repetition_count
        state.due_at = result.due_at
        state.last_reviewed_at = now
        state.last_quality = quality
        state.updated_at = now

        event = ReviewEvent(
            user_id=user_id,
            card_id=card_id,
            lesson_id=card.lesson_id,
            review_key=review_key,
            quality_rating=quality,
            response_time_ms=response_time_ms,
            ease_factor=result.ease_factor,
            interval_days=result.interval_days,
            repetition_count=result.repetition_count,
            due_at=result.due_at,
            created_at=now,
        )
        try:
            self.session.add(state)
            self.session.add(event)
            self._update_progress(user_id, card.lesson_id, quality, is_first, now)
            self.session.commit()
        except IntegrityError:
            # Lost a race against a duplicate submit or a concurrent first review
            self.session.rollback()
            existing = self._get_event(user_id, card_id, review_key)
            if existing:
                return self._replay(existing, quality)
            raise ConflictError("Card was reviewed concurrently, refresh and retry")
        self.session.refresh(state)
        logger.info(
            "review_recorded",
            user_id=user_id,
            card_id=card_id,
            quality=quality,
            interval_days=state.interval_days,
            repetition_count=state.repetition_count,
            ease_factor=round(state.ease_factor, 3),
            due_at=as_utc(state.due_at).isoformat(),
        )
        return ReviewResult(idempotent=False, review_id=event.id, updated_state=self._to_state_read(state))

    def _replay(self, event: ReviewEvent, quality: int) -> ReviewResult:
        if event.quality_rating != quality:
            raise ConflictError("review_key was already used with a different quality rating")
        state = self._get_state(event.user_id, event.card_id)
        logger.info(
            "idempotent_reuse",
            user_id=event.user_id,
            card_id=event.card_id,
            review_key=event.review_key,
        )
        return ReviewResult(idempotent=True, review_id=event.id, updated_state=self._to_state_read(state))

    def _update_progress(self, user_id: str, lesson_id: str, quality: int, is_first: bool, now: datetime) -> None:
        progress = self.session.exec(
            select(StudyProgress)
            .where(StudyProgress.student_id == user_id)
            .where(StudyProgress.lesson_id == lesson_id)
        ).first()
        if progress is None:
            progress = StudyProgress(student_id=user_id, lesson_id=lesson_id)
        progress.total_reviews += 1
        progress.quality_sum += quality
        if is_first:
            progress.cards_reviewed += 1
        progress.last_review_at = now
        progress.next_review_at = self._next_due(user_id, lesson_id)
        progress.updated_at = now
        self.session.add(progress)

    def _next_due(self, user_id: str, lesson_id: str) -> Optional[datetime]:
        return self.session.exec(
            select(func.min(SchedulingState.due_at))
            .join(Card, Card.id == SchedulingState.card_id)
            .where(SchedulingState.user_id == user_id)
            .where(SchedulingState.lesson_id == lesson_id)
        ).one()

    def _get_state(self, user_id: str, card_id: str) -> Optional[SchedulingState]:
        statement = (
            select(SchedulingState)
            .where(SchedulingState.user_id == user_id)
            .where(SchedulingState.card_id == card_id)
        )
        return self.session.exec(statement).first()

    def _get_event(self, user_id: str, card_id: str, review_key: str) -> Optional[ReviewEvent]:
        statement = (
            select(ReviewEvent)
            .where(ReviewEvent.user_id == user_id)
            .where(ReviewEvent.card_id == card_id)
            .where(ReviewEvent.review_key == review_key)
        )
        return self.session.exec(statement).first()

    @staticmethod
    def _to_state_read(state: SchedulingState) -> SchedulingStateRead:
        return SchedulingStateRead(
            user_id=state.user_id,
            card_id=state.card_id,
            lesson_id=state.lesson_id,
            ease_factor=state.ease_factor,
            interval_days=state.interval_days,
            repetition_count=state.repetition_count,
            due_at=as_utc(state.due_at),
            last_reviewed_at=as_utc(state.last_reviewed_at),
            last_quality=state.last_quality,
            phase=phase_for(state.repetition_count),
        )
