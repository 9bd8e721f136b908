from typing import List

from fastapi import APIRouter, Depends

from elearning.api.dependencies import get_current_user, get_session, resolve_subject
from elearning.db.schemas import Profile
from elearning.models.lesson import LessonRef, OperationResult
from elearning.models.stats import LessonAnalytics, LessonProgress, TeacherStats, UserRef, UserStats
from elearning.services.review_service import ReviewService
from elearning.services.stats_service import StatsService


def get_stats_service(db=Depends(get_session)) -> StatsService:
    return StatsService(db)


router = APIRouter(prefix="/rpc", tags=["stats"])


@router.post("/get_user_stats", response_model=UserStats)
def get_user_stats(
    payload: UserRef,
    current_user: Profile = Depends(get_current_user),
    service: StatsService = Depends(get_stats_service),
) -> UserStats:
    return service.get_user_stats(resolve_subject(current_user, payload.user_id))


@router.post("/get_lesson_progress", response_model=List[LessonProgress])
def get_lesson_progress(
    payload: UserRef,
    current_user: Profile = Depends(get_current_user),
    service: StatsService = Depends(get_stats_service),
) -> List[LessonProgress]:
    return service.get_lesson_progress(resolve_subject(current_user, payload.user_id))


@router.post("/get_teacher_stats", response_model=TeacherStats)
def get_teacher_stats(
    current_user: Profile = Depends(get_current_user),
    service: StatsService = Depends(get_stats_service),
) -> TeacherStats:
    return service.get_teacher_stats(current_user)


@router.post("/get_lesson_analytics", response_model=LessonAnalytics)
def get_lesson_analytics(
    payload: LessonRef,
    current_user: Profile = Depends(get_current_user),
    service: StatsService = Depends(get_stats_service),
) -> LessonAnalytics:
    return service.get_lesson_analytics(current_user, payload.lesson_id)


@router.post("/recompute_progress", response_model=OperationResult)
def recompute_progress(
    payload: UserRef,
    current_user: Profile = Depends(get_current_user),
    db=Depends(get_session),
) -> OperationResult:
    lessons = ReviewService(db).rebuild_progress(resolve_subject(current_user, payload.user_id))
    return OperationResult(message=f"Rebuilt progress for {lessons} lessons")


__all__ = ["router"]
