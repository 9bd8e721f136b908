from fastapi import APIRouter, Depends, status

from elearning.api.dependencies import get_current_user, get_session
from elearning.db.schemas import Profile
from elearning.models.card import CardCreate, CardRead, CardRef, CardUpdate
from elearning.models.lesson import OperationResult
from elearning.services.card_service import CardService


def get_card_service(db=Depends(get_session)) -> CardService:
    return CardService(db)


router = APIRouter(prefix="/rpc", tags=["cards"])


@router.post("/create_sr_card", response_model=CardRead, status_code=status.HTTP_201_CREATED)
def create_sr_card(
    payload: CardCreate,
    current_user: Profile = Depends(get_current_user),
    service: CardService = Depends(get_card_service),
) -> CardRead:
    return service.create_card(current_user, payload)


@router.post("/update_sr_card", response_model=CardRead)
def update_sr_card(
    payload: CardUpdate,
    current_user: Profile = Depends(get_current_user),
    service: CardService = Depends(get_card_service),
) -> CardRead:
    return service.update_card(current_user, payload)


@router.post("/approve_sr_card", response_model=CardRead)
def approve_sr_card(
    payload: CardRef,
    current_user: Profile = Depends(get_current_user),
    service: CardService = Depends(get_card_service),
) -> CardRead:
    return service.approve_card(current_user, payload.card_id)


@router.post("/reject_sr_card", response_model=CardRead)
def reject_sr_card(
    payload: CardRef,
    current_user: Profile = Depends(get_current_user),
    service: CardService = Depends(get_card_service),
) -> CardRead:
    return service.reject_card(current_user, payload.card_id)


@router.post("/delete_sr_card", response_model=OperationResult)
def delete_sr_card(
    payload: CardRef,
    current_user: Profile = Depends(get_current_user),
    service: CardService = Depends(get_card_service),
) -> OperationResult:
    return service.delete_card(current_user, payload.card_id)


__all__ = ["router"]
