from __future__ import annotations

from typing import List

import structlog
from sqlalchemy import func
from sqlmodel import select

from elearning.db.schemas import (
    Card,
    Lesson,
    LessonParticipant,
    Profile,
    SchedulingState,
    StudyProgress,
)
from elearning.errors import ConflictError, NotFoundError, ValidationError
from elearning.models.lesson import (
    LessonCreate,
    LessonRead,
    LessonWithStats,
    OperationResult,
    ParticipantRead,
)
from elearning.services.base import BaseService

logger = structlog.get_logger(__name__)


class LessonService(BaseService):
    def create_lesson(self, teacher: Profile, data: LessonCreate) -> LessonRead:
        self._require_role(teacher, "teacher", "admin")
        name = data.name.strip()
        if not name:
            raise ValidationError("Lesson name is required")
        lesson = Lesson(
            teacher_id=teacher.id,
            name=name,
            description=(data.description or "").strip() or None,
            scheduled_at=data.scheduled_at,
            duration_minutes=data.duration_minutes,
        )
        self.session.add(lesson)
        self.session.commit()
        self.session.refresh(lesson)
        logger.info("lesson_created", lesson_id=lesson.id, teacher_id=teacher.id)
        return LessonRead.model_validate(lesson)

    def get_teacher_lessons(self, teacher: Profile) -> List[LessonWithStats]:
        self._require_role(teacher, "teacher", "admin")
        lessons = self.session.exec(
            select(Lesson).where(Lesson.teacher_id == teacher.id).order_by(Lesson.scheduled_at.desc())
        ).all()
        if not lessons:
            return []
        lesson_ids = [lesson.id for lesson in lessons]
        student_counts = dict(
            self.session.exec(
                select(LessonParticipant.lesson_id, func.count(LessonParticipant.id))
                .where(LessonParticipant.lesson_id.in_(lesson_ids))
                .group_by(LessonParticipant.lesson_id)
            ).all()
        )
        card_counts: dict[str, int] = {}
        pending_counts: dict[str, int] = {}
        rows = self.session.exec(
            select(Card.lesson_id, Card.status, func.count(Card.id))
            .where(Card.lesson_id.in_(lesson_ids))
            .group_by(Card.lesson_id, Card.status)
        ).all()
        for lesson_id, card_status, count in rows:
            card_counts[lesson_id] = card_counts.get(lesson_id, 0) + count
            if card_status == "pending":
                pending_counts[lesson_id] = count
        return [
            LessonWithStats(
                **LessonRead.model_validate(lesson).model_dump(),
                student_count=student_counts.get(lesson.id, 0),
                card_count=card_counts.get(lesson.id, 0),
                pending_cards=pending_counts.get(lesson.id, 0),
            )
            for lesson in lessons
        ]

    def delete_lesson(self, teacher: Profile, lesson_id: str) -> OperationResult:
        """Remove a lesson with its enrollments, cards and their schedules.

        Review events stay behind as history.
        """
        lesson = self._require_owned_lesson(lesson_id, teacher)
        card_ids = list(self.session.exec(select(Card.id).where(Card.lesson_id == lesson_id)).all())
        for state in self.session.exec(select(SchedulingState).where(SchedulingState.lesson_id == lesson_id)).all():
            self.session.delete(state)
        for progress in self.session.exec(select(StudyProgress).where(StudyProgress.lesson_id == lesson_id)).all():
            self.session.delete(progress)
        for card in self.session.exec(select(Card).where(Card.lesson_id == lesson_id)).all():
            self.session.delete(card)
        for participant in self.session.exec(
            select(LessonParticipant).where(LessonParticipant.lesson_id == lesson_id)
        ).all():
            self.session.delete(participant)
        self.session.delete(lesson)
        self.session.commit()
        logger.info("lesson_deleted", lesson_id=lesson_id, teacher_id=teacher.id, cards=len(card_ids))
        return OperationResult(message=f"Lesson '{lesson.name}' deleted with {len(card_ids)} cards")

    def add_participant(self, teacher: Profile, lesson_id: str, student_email: str) -> ParticipantRead:
        self._require_owned_lesson(lesson_id, teacher)
        email = student_email.strip().lower()
        student = self.session.exec(select(Profile).where(func.lower(Profile.email) == email)).first()
        if not student:
            raise NotFoundError(f"No user with email {email}")
        if student.role != "student":
            raise ValidationError("Only students can be enrolled in a lesson")
        if self._get_enrollment(lesson_id, student.id):
            raise ConflictError("Student is already enrolled in this lesson")
        participant = LessonParticipant(lesson_id=lesson_id, student_id=student.id)
        self.session.add(participant)
        self.session.commit()
        self.session.refresh(participant)
        logger.info("student_enrolled", lesson_id=lesson_id, student_id=student.id)
        return ParticipantRead.model_validate(participant)

    def remove_participant(self, teacher: Profile, lesson_id: str, student_id: str) -> OperationResult:
        self._require_owned_lesson(lesson_id, teacher)
        participant = self._get_enrollment(lesson_id, student_id)
        if not participant:
            raise NotFoundError("Enrollment not found")
        self.session.delete(participant)
        self.session.commit()
        logger.info("student_unenrolled", lesson_id=lesson_id, student_id=student_id)
        return OperationResult(message="Student removed from lesson")
