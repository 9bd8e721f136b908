from __future__ import annotations

from typing import Optional

from sqlmodel import Session as DBSession, select

from elearning.db.schemas import Card, Lesson, LessonParticipant, Profile
from elearning.errors import NotFoundError, PermissionDeniedError


class BaseService:
    def __init__(self, session: DBSession) -> None:
        self.session = session

    def _get_profile(self, user_id: str) -> Profile:
        profile = self.session.get(Profile, user_id)
        if not profile:
            raise NotFoundError("User not found")
        return profile

    def _get_lesson(self, lesson_id: str) -> Lesson:
        lesson = self.session.get(Lesson, lesson_id)
        if not lesson:
            raise NotFoundError("Lesson not found")
        return lesson

    def _get_card(self, card_id: str) -> Card:
        card = self.session.get(Card, card_id)
        if not card:
            raise NotFoundError("Card not found")
        return card

    def _get_enrollment(self, lesson_id: str, student_id: str) -> Optional[LessonParticipant]:
        statement = (
            select(LessonParticipant)
            .where(LessonParticipant.lesson_id == lesson_id)
            .where(LessonParticipant.student_id == student_id)
        )
        return self.session.exec(statement).first()

    def _require_owned_lesson(self, lesson_id: str, teacher: Profile) -> Lesson:
        lesson = self._get_lesson(lesson_id)
        if lesson.teacher_id != teacher.id and teacher.role != "admin":
            raise PermissionDeniedError("Only the lesson owner can do this")
        return lesson

    @staticmethod
    def _require_role(profile: Profile, *roles: str) -> None:
        if profile.role not in roles:
            raise PermissionDeniedError(f"Requires role: {', '.join(roles)}")
