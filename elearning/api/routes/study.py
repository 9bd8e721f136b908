from typing import List

from fastapi import APIRouter, Depends

from elearning.api.dependencies import get_current_user, get_session, resolve_subject
from elearning.db.schemas import Profile
from elearning.models.study import (
    DueCard,
    DueCardsRequest,
    ReviewResult,
    ReviewSubmit,
    StudyBatchRequest,
    StudyCard,
)
from elearning.services.review_service import ReviewService
from elearning.services.study_service import StudyService


def get_study_service(db=Depends(get_session)) -> StudyService:
    return StudyService(db)


def get_review_service(db=Depends(get_session)) -> ReviewService:
    return ReviewService(db)


router = APIRouter(prefix="/rpc", tags=["study"])


@router.post("/get_cards_for_study", response_model=List[StudyCard])
def get_cards_for_study(
    payload: StudyBatchRequest,
    current_user: Profile = Depends(get_current_user),
    service: StudyService = Depends(get_study_service),
) -> List[StudyCard]:
    return service.select_study_batch(
        resolve_subject(current_user, payload.user_id),
        pool_type=payload.pool_type,
        limit_new=payload.limit_new,
        limit_due=payload.limit_due,
        lesson_id=payload.lesson_id,
    )


@router.post("/get_cards_due", response_model=List[DueCard])
def get_cards_due(
    payload: DueCardsRequest,
    current_user: Profile = Depends(get_current_user),
    service: StudyService = Depends(get_study_service),
) -> List[DueCard]:
    return service.get_cards_due(resolve_subject(current_user, payload.user_id), limit=payload.limit)


@router.post("/record_sr_review", response_model=ReviewResult)
def record_sr_review(
    payload: ReviewSubmit,
    current_user: Profile = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service),
) -> ReviewResult:
    return service.record_review(
        resolve_subject(current_user, payload.user_id),
        payload.card_id,
        payload.quality,
        payload.response_time_ms,
        review_key=payload.review_key,
    )


__all__ = ["router"]
