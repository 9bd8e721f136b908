from typing import List

from fastapi import APIRouter, Depends, status

from elearning.api.dependencies import get_current_user, get_session
from elearning.db.schemas import Profile
from elearning.models.moderation import (
    FlagCreate,
    FlagRead,
    FlagResolve,
    FlagResult,
    ModerationStats,
    QueueRequest,
)
from elearning.services.moderation_service import ModerationService


def get_moderation_service(db=Depends(get_session)) -> ModerationService:
    return ModerationService(db)


router = APIRouter(prefix="/rpc", tags=["moderation"])


@router.post("/flag_content", response_model=FlagResult, status_code=status.HTTP_201_CREATED)
def flag_content(
    payload: FlagCreate,
    current_user: Profile = Depends(get_current_user),
    service: ModerationService = Depends(get_moderation_service),
) -> FlagResult:
    return service.flag_content(current_user, payload)


@router.post("/get_moderation_queue", response_model=List[FlagRead])
def get_moderation_queue(
    payload: QueueRequest,
    current_user: Profile = Depends(get_current_user),
    service: ModerationService = Depends(get_moderation_service),
) -> List[FlagRead]:
    return service.list_queue(current_user, status=payload.status, limit=payload.limit)


@router.post("/resolve_flag", response_model=FlagRead)
def resolve_flag(
    payload: FlagResolve,
    current_user: Profile = Depends(get_current_user),
    service: ModerationService = Depends(get_moderation_service),
) -> FlagRead:
    return service.resolve_flag(current_user, payload)


@router.post("/get_moderation_stats", response_model=ModerationStats)
def get_moderation_stats(
    current_user: Profile = Depends(get_current_user),
    service: ModerationService = Depends(get_moderation_service),
) -> ModerationStats:
    return service.get_moderation_stats(current_user)


__all__ = ["router"]
