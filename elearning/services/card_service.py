from __future__ import annotations

from datetime import datetime, timezone
from typing import List

import structlog

from elearning.db.schemas import Card, Profile
from elearning.errors import PermissionDeniedError, ValidationError
from elearning.models.card import CardCreate, CardRead, CardUpdate
from elearning.models.lesson import OperationResult
from elearning.services.base import BaseService

logger = structlog.get_logger(__name__)


def normalize_tags(tags: List[str]) -> List[str]:
    seen: List[str] = []
    for tag in tags:
        cleaned = tag.strip()
        if cleaned and cleaned not in seen:
            seen.append(cleaned)
    return seen


class CardService(BaseService):
    def create_card(self, author: Profile, data: CardCreate) -> CardRead:
        """Lesson owners publish directly; enrolled students submit cards for approval."""
        lesson = self._get_lesson(data.lesson_id)
        is_owner = lesson.teacher_id == author.id or author.role == "admin"
        if not is_owner and not self._get_enrollment(lesson.id, author.id):
            raise PermissionDeniedError("Only the lesson owner or enrolled students can add cards")
        now = datetime.now(timezone.utc)
        card = Card(
            lesson_id=lesson.id,
            created_by=author.id,
            front_content=self._clean_content(data.front_content, "front_content"),
            back_content=self._clean_content(data.back_content, "back_content"),
            card_type=data.card_type,
            difficulty_level=data.difficulty_level,
            tags=normalize_tags(data.tags),
            status="approved" if is_owner else "pending",
            approved_by=author.id if is_owner else None,
            approved_at=now if is_owner else None,
        )
        self.session.add(card)
        self.session.commit()
        self.session.refresh(card)
        logger.info("card_created", card_id=card.id, lesson_id=lesson.id, status=card.status)
        return CardRead.model_validate(card)

    def update_card(self, editor: Profile, data: CardUpdate) -> CardRead:
        card = self._get_card(data.card_id)
        lesson = self._get_lesson(card.lesson_id)
        if editor.id not in (card.created_by, lesson.teacher_id) and editor.role != "admin":
            raise PermissionDeniedError("Only the card author or lesson owner can edit this card")
        update_data = data.model_dump(exclude_unset=True, exclude={"card_id"})
        if "front_content" in update_data:
            update_data["front_content"] = self._clean_content(update_data["front_content"], "front_content")
        if "back_content" in update_data:
            update_data["back_content"] = self._clean_content(update_data["back_content"], "back_content")
        if "tags" in update_data:
            update_data["tags"] = normalize_tags(update_data["tags"] or [])
        for key, value in update_data.items():
            setattr(card, key, value)
        card.updated_at = datetime.now(timezone.utc)
        self.session.add(card)
        self.session.commit()
        self.session.refresh(card)
        return CardRead.model_validate(card)

    def approve_card(self, reviewer: Profile, card_id: str) -> CardRead:
        return self._moderate(reviewer, card_id, "approved")

    def reject_card(self, reviewer: Profile, card_id: str) -> CardRead:
        return self._moderate(reviewer, card_id, "rejected")

    def delete_card(self, actor: Profile, card_id: str) -> OperationResult:
        """Delete a card. Scheduling states and review events for it are kept as history."""
        card = self._get_card(card_id)
        lesson = self._get_lesson(card.lesson_id)
        if actor.id not in (card.created_by, lesson.teacher_id) and actor.role != "admin":
            raise PermissionDeniedError("Only the card author or lesson owner can delete this card")
        self.session.delete(card)
        self.session.commit()
        logger.info("card_deleted", card_id=card_id, lesson_id=lesson.id)
        return OperationResult(message="Card deleted")

    def _moderate(self, reviewer: Profile, card_id: str, new_status: str) -> CardRead:
        card = self._get_card(card_id)
        self._require_owned_lesson(card.lesson_id, reviewer)
        if card.status != "pending":
            raise ValidationError(f"Card is already {card.status}")
        now = datetime.now(timezone.utc)
        card.status = new_status
        card.approved_by = reviewer.id if new_status == "approved" else None
        card.approved_at = now if new_status == "approved" else None
        card.updated_at = now
        self.session.add(card)
        self.session.commit()
        self.session.refresh(card)
        logger.info("card_moderated", card_id=card_id, status=new_status, reviewer_id=reviewer.id)
        return CardRead.model_validate(card)

    @staticmethod
    def _clean_content(value: str, field: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValidationError(f"{field} must not be blank")
        return cleaned
