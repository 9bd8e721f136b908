from typing import List

from fastapi import APIRouter, Depends, status

from elearning.api.dependencies import get_current_user, get_session
from elearning.db.schemas import Profile
from elearning.models.lesson import (
    LessonCreate,
    LessonRead,
    LessonRef,
    LessonWithStats,
    OperationResult,
    ParticipantAdd,
    ParticipantRead,
    ParticipantRemove,
)
from elearning.services.lesson_service import LessonService


def get_lesson_service(db=Depends(get_session)) -> LessonService:
    return LessonService(db)


router = APIRouter(prefix="/rpc", tags=["lessons"])


@router.post("/create_lesson", response_model=LessonRead, status_code=status.HTTP_201_CREATED)
def create_lesson(
    payload: LessonCreate,
    current_user: Profile = Depends(get_current_user),
    service: LessonService = Depends(get_lesson_service),
) -> LessonRead:
    return service.create_lesson(current_user, payload)


@router.post("/get_teacher_lessons", response_model=List[LessonWithStats])
def get_teacher_lessons(
    current_user: Profile = Depends(get_current_user),
    service: LessonService = Depends(get_lesson_service),
) -> List[LessonWithStats]:
    return service.get_teacher_lessons(current_user)


@router.post("/delete_lesson", response_model=OperationResult)
def delete_lesson(
    payload: LessonRef,
    current_user: Profile = Depends(get_current_user),
    service: LessonService = Depends(get_lesson_service),
) -> OperationResult:
    return service.delete_lesson(current_user, payload.lesson_id)


@router.post("/add_lesson_participant", response_model=ParticipantRead, status_code=status.HTTP_201_CREATED)
def add_lesson_participant(
    payload: ParticipantAdd,
    current_user: Profile = Depends(get_current_user),
    service: LessonService = Depends(get_lesson_service),
) -> ParticipantRead:
    return service.add_participant(current_user, payload.lesson_id, payload.student_email)


@router.post("/remove_lesson_participant", response_model=OperationResult)
def remove_lesson_participant(
    payload: ParticipantRemove,
    current_user: Profile = Depends(get_current_user),
    service: LessonService = Depends(get_lesson_service),
) -> OperationResult:
    return service.remove_participant(current_user, payload.lesson_id, payload.student_id)


__all__ = ["router"]
