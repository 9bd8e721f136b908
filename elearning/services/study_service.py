from __future__ import annotations

import random
from datetime import datetime
from typing import List, Optional

import structlog
from sqlmodel import Session as DBSession, select

from elearning.config.settings import Settings, get_settings
from elearning.db.schemas import Card, Lesson, LessonParticipant, SchedulingState
from elearning.errors import ValidationError
from elearning.models.study import DueCard, StudyCard
from elearning.services.base import BaseService
from elearning.utils.time import as_utc, end_of_day, utcnow

logger = structlog.get_logger(__name__)

POOL_TYPES = ("new", "due", "both")


class StudyService(BaseService):
    def __init__(
        self,
        session: DBSession,
        settings: Optional[Settings] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        super().__init__(session)
        self.settings = settings or get_settings()
        self.rng = rng or random.Random()

    def select_study_batch(
        self,
        user_id: str,
        pool_type: str = "both",
        limit_new: Optional[int] = None,
        limit_due: Optional[int] = None,
        lesson_id: Optional[str] = None,
        *,
        now: Optional[datetime] = None,
    ) -> List[StudyCard]:
        """Pick the next cards to study: overdue reviews first, then unseen cards.

        Only approved cards from lessons the user is enrolled in qualify. An
        empty list means there is nothing to study right now.
        """
        if pool_type not in POOL_TYPES:
            raise ValidationError(f"pool_type must be one of {', '.join(POOL_TYPES)}")
        limit_new = self.settings.default_limit_new if limit_new is None else limit_new
        limit_due = self.settings.default_limit_due if limit_due is None else limit_due
        if limit_new < 0 or limit_due < 0:
            raise ValidationError("Limits must not be negative")
        self._get_profile(user_id)
        if lesson_id is not None:
            self._get_lesson(lesson_id)
        now = as_utc(now) or utcnow()

        lesson_ids = self._enrolled_lesson_ids(user_id, lesson_id)
        due_cards: List[StudyCard] = []
        new_cards: List[StudyCard] = []
        if lesson_ids:
            if pool_type in ("due", "both") and limit_due:
                due_cards = self._select_due(user_id, lesson_ids, limit_due, now)
            if pool_type in ("new", "both") and limit_new:
                new_cards = self._select_new(user_id, lesson_ids, limit_new)

        batch = (due_cards + new_cards)[: self.settings.max_batch_size]
        logger.info(
            "study_batch_selected",
            user_id=user_id,
            pool_type=pool_type,
            lesson_id=lesson_id,
            due_count=len(due_cards),
            new_count=len(new_cards),
            batch_size=len(batch),
        )
        return batch

    def get_cards_due(self, user_id: str, limit: int = 10, *, now: Optional[datetime] = None) -> List[DueCard]:
        """Cards due by the end of today, most overdue first, for the dashboard."""
        if limit < 0:
            raise ValidationError("Limit must not be negative")
        self._get_profile(user_id)
        now = as_utc(now) or utcnow()
        lesson_ids = self._enrolled_lesson_ids(user_id)
        if not lesson_ids or not limit:
            return []
        statement = (
            select(SchedulingState, Card, Lesson)
            .join(Card, Card.id == SchedulingState.card_id)
            .join(Lesson, Lesson.id == Card.lesson_id)
            .where(SchedulingState.user_id == user_id)
            .where(Card.lesson_id.in_(lesson_ids))
            .where(Card.status == "approved")
            .where(SchedulingState.due_at < end_of_day(now))
            .order_by(SchedulingState.due_at, SchedulingState.card_id)
            .limit(limit)
        )
        results: List[DueCard] = []
        for state, card, lesson in self.session.exec(statement).all():
            scheduled_for = as_utc(state.due_at)
            results.append(
                DueCard(
                    card_id=card.id,
                    lesson_id=lesson.id,
                    lesson_name=lesson.name,
                    front_content=card.front_content,
                    difficulty_level=card.difficulty_level,
                    scheduled_for=scheduled_for,
                    is_overdue=scheduled_for < now,
                )
            )
        return results

    def _enrolled_lesson_ids(self, user_id: str, lesson_id: Optional[str] = None) -> List[str]:
        statement = select(LessonParticipant.lesson_id).where(LessonParticipant.student_id == user_id)
        if lesson_id is not None:
            statement = statement.where(LessonParticipant.lesson_id == lesson_id)
        return list(self.session.exec(statement).all())

    def _select_due(self, user_id: str, lesson_ids: List[str], limit: int, now: datetime) -> List[StudyCard]:
        statement = (
            select(SchedulingState, Card)
            .join(Card, Card.id == SchedulingState.card_id)
            .where(SchedulingState.user_id == user_id)
            .where(Card.lesson_id.in_(lesson_ids))
            .where(Card.status == "approved")
            .where(SchedulingState.due_at <= now)
            .order_by(SchedulingState.due_at, SchedulingState.card_id)
            .limit(limit)
        )
        return [self._to_study_card(card, state) for state, card in self.session.exec(statement).all()]

    def _select_new(self, user_id: str, lesson_ids: List[str], limit: int) -> List[StudyCard]:
        seen = select(SchedulingState.card_id).where(SchedulingState.user_id == user_id)
        statement = (
            select(Card)
            .where(Card.lesson_id.in_(lesson_ids))
            .where(Card.status == "approved")
            .where(Card.id.not_in(seen))
            .order_by(Card.created_at, Card.id)
        )
        if self.settings.new_card_order == "random":
            cards = list(self.session.exec(statement).all())
            self.rng.shuffle(cards)
            cards = cards[:limit]
        else:
            cards = self.session.exec(statement.limit(limit)).all()
        return [self._to_study_card(card) for card in cards]

    @staticmethod
    def _to_study_card(card: Card, state: Optional[SchedulingState] = None) -> StudyCard:
        return StudyCard(
            card_id=card.id,
            lesson_id=card.lesson_id,
            front_content=card.front_content,
            back_content=card.back_content,
            card_type=card.card_type,
            difficulty_level=card.difficulty_level,
            tags=list(card.tags or []),
            is_new=state is None,
            due_at=as_utc(state.due_at) if state else None,
        )
