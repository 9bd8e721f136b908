from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional, Set

from sqlalchemy import func
from sqlmodel import Session as DBSession, select

from elearning.config.settings import Settings, get_settings
from elearning.db.schemas import (
    Card,
    Lesson,
    LessonParticipant,
    Profile,
    ReviewEvent,
    SchedulingState,
    StudyProgress,
)
from elearning.models.stats import (
    ActivityItem,
    LessonAnalytics,
    LessonProgress,
    StudentLessonProgress,
    TeacherStats,
    UserStats,
)
from elearning.services.base import BaseService
from elearning.utils.time import as_utc, end_of_day, utcnow


def daily_counts(days: Iterable[date], today: date, window: int) -> List[int]:
    """Reviews per day over the last ``window`` days, oldest first."""
    counts = [0] * window
    first = today - timedelta(days=window - 1)
    for day in days:
        offset = (day - first).days
        if 0 <= offset < window:
            counts[offset] += 1
    return counts


def study_streak(days: Set[date], today: date) -> int:
    # A streak survives until the end of the day after the last review
    if today in days:
        cursor = today
    elif today - timedelta(days=1) in days:
        cursor = today - timedelta(days=1)
    else:
        return 0
    streak = 0
    while cursor in days:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


class StatsService(BaseService):
    def __init__(self, session: DBSession, settings: Optional[Settings] = None) -> None:
        super().__init__(session)
        self.settings = settings or get_settings()

    def get_user_stats(self, user_id: str, *, now: Optional[datetime] = None) -> UserStats:
        self._get_profile(user_id)
        now = as_utc(now) or utcnow()
        today = now.date()

        reviews = self.session.exec(
            select(ReviewEvent.created_at, ReviewEvent.quality_rating).where(ReviewEvent.user_id == user_id)
        ).all()
        review_days = [as_utc(created_at).date() for created_at, _ in reviews]
        total = len(reviews)
        average = round(sum(quality for _, quality in reviews) / total, 2) if total else 0.0

        active_states = (
            select(SchedulingState)
            .join(Card, Card.id == SchedulingState.card_id)
            .where(SchedulingState.user_id == user_id)
            .where(Card.status == "approved")
        )
        states = self.session.exec(active_states).all()
        learned = sum(1 for state in states if state.interval_days >= self.settings.learned_interval_days)
        due_today = sum(1 for state in states if as_utc(state.due_at) < end_of_day(now))
        next_review = min((as_utc(state.due_at) for state in states), default=None)

        return UserStats(
            total_reviews=total,
            average_quality=average,
            study_streak=study_streak(set(review_days), today),
            cards_learned=learned,
            cards_due_today=due_today,
            next_review_date=next_review,
            weekly_progress=daily_counts(review_days, today, 7),
            monthly_progress=daily_counts(review_days, today, 30),
        )

    def get_lesson_progress(self, student_id: str, *, now: Optional[datetime] = None) -> List[LessonProgress]:
        self._get_profile(student_id)
        now = as_utc(now) or utcnow()
        lessons = self.session.exec(
            select(Lesson)
            .join(LessonParticipant, LessonParticipant.lesson_id == Lesson.id)
            .where(LessonParticipant.student_id == student_id)
            .order_by(Lesson.scheduled_at.desc())
        ).all()
        results: List[LessonProgress] = []
        for lesson in lessons:
            cards_total = self.session.exec(
                select(func.count(Card.id)).where(Card.lesson_id == lesson.id).where(Card.status == "approved")
            ).one()
            states = self.session.exec(
                select(SchedulingState)
                .join(Card, Card.id == SchedulingState.card_id)
                .where(SchedulingState.user_id == student_id)
                .where(SchedulingState.lesson_id == lesson.id)
                .where(Card.status == "approved")
            ).all()
            progress = self.session.exec(
                select(StudyProgress)
                .where(StudyProgress.student_id == student_id)
                .where(StudyProgress.lesson_id == lesson.id)
            ).first()
            reviewed = len(states)
            average = 0.0
            if progress and progress.total_reviews:
                average = round(progress.quality_sum / progress.total_reviews, 2)
            results.append(
                LessonProgress(
                    lesson_id=lesson.id,
                    lesson_name=lesson.name,
                    cards_total=cards_total,
                    cards_reviewed=reviewed,
                    cards_learned=sum(
                        1 for state in states if state.interval_days >= self.settings.learned_interval_days
                    ),
                    cards_due=sum(1 for state in states if as_utc(state.due_at) <= now),
                    average_quality=average,
                    progress_percentage=round(reviewed * 100.0 / cards_total, 1) if cards_total else 0.0,
                    next_review_date=min((as_utc(state.due_at) for state in states), default=None),
                    last_review_date=as_utc(progress.last_review_at) if progress else None,
                )
            )
        return results

    def get_lesson_analytics(self, teacher: Profile, lesson_id: str) -> LessonAnalytics:
        """Per-student review activity for one lesson, for its owner.

        Totals cover every review event recorded against the lesson,
        including those of students who have since been removed.
        """
        lesson = self._require_owned_lesson(lesson_id, teacher)
        participants = self.session.exec(
            select(LessonParticipant, Profile)
            .join(Profile, Profile.id == LessonParticipant.student_id)
            .where(LessonParticipant.lesson_id == lesson_id)
            .order_by(Profile.name)
        ).all()
        review_rows = self.session.exec(
            select(
                ReviewEvent.user_id,
                func.count(ReviewEvent.id),
                func.count(func.distinct(ReviewEvent.card_id)),
                func.sum(ReviewEvent.quality_rating),
                func.max(ReviewEvent.created_at),
            )
            .where(ReviewEvent.lesson_id == lesson_id)
            .group_by(ReviewEvent.user_id)
        ).all()
        reviews_by_user = {row[0]: row[1:] for row in review_rows}
        card_counts = dict(
            self.session.exec(
                select(Card.status, func.count(Card.id)).where(Card.lesson_id == lesson_id).group_by(Card.status)
            ).all()
        )

        student_progress: List[StudentLessonProgress] = []
        for participant, student in participants:
            total, cards, quality_sum, last_review = reviews_by_user.get(student.id, (0, 0, 0, None))
            student_progress.append(
                StudentLessonProgress(
                    student_id=student.id,
                    student_name=student.name,
                    student_email=student.email,
                    enrolled_at=as_utc(participant.enrolled_at),
                    cards_reviewed=cards,
                    total_reviews=total,
                    average_quality=round(quality_sum / total, 2) if total else 0.0,
                    last_review_at=as_utc(last_review),
                )
            )

        total_reviews = sum(row[0] for row in reviews_by_user.values())
        quality_total = sum(row[2] or 0 for row in reviews_by_user.values())
        return LessonAnalytics(
            lesson_id=lesson.id,
            lesson_name=lesson.name,
            total_participants=len(participants),
            total_cards=sum(card_counts.values()),
            approved_cards=card_counts.get("approved", 0),
            pending_cards=card_counts.get("pending", 0),
            total_reviews=total_reviews,
            average_quality=round(quality_total / total_reviews, 2) if total_reviews else 0.0,
            student_progress=student_progress,
        )

    def get_teacher_stats(self, teacher: Profile) -> TeacherStats:
        self._require_role(teacher, "teacher", "admin")
        lessons = self.session.exec(select(Lesson).where(Lesson.teacher_id == teacher.id)).all()
        if not lessons:
            return TeacherStats()
        names = {lesson.id: lesson.name for lesson in lessons}
        lesson_ids = list(names)

        participants = self.session.exec(
            select(LessonParticipant, Profile)
            .join(Profile, Profile.id == LessonParticipant.student_id)
            .where(LessonParticipant.lesson_id.in_(lesson_ids))
        ).all()
        cards = self.session.exec(select(Card).where(Card.lesson_id.in_(lesson_ids))).all()

        activity: List[ActivityItem] = [
            ActivityItem(
                type="lesson_created",
                description=f"Created lesson '{lesson.name}'",
                timestamp=as_utc(lesson.created_at),
            )
            for lesson in lessons
        ]
        activity.extend(
            ActivityItem(
                type="card_approved",
                description=f"Approved a card in '{names[card.lesson_id]}'",
                timestamp=as_utc(card.approved_at),
            )
            for card in cards
            if card.status == "approved" and card.approved_at is not None
        )
        activity.extend(
            ActivityItem(
                type="student_enrolled",
                description=f"{student.name} enrolled in '{names[participant.lesson_id]}'",
                timestamp=as_utc(participant.enrolled_at),
            )
            for participant, student in participants
        )
        activity.sort(key=lambda item: item.timestamp, reverse=True)

        return TeacherStats(
            total_lessons=len(lessons),
            total_students=len({participant.student_id for participant, _ in participants}),
            total_cards_created=len(cards),
            pending_cards=sum(1 for card in cards if card.status == "pending"),
            recent_activity=activity[: self.settings.recent_activity_limit],
        )
