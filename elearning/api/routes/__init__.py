from fastapi import APIRouter

from . import study, lessons, cards, stats, moderation

api_router = APIRouter()
api_router.include_router(study.router)
api_router.include_router(lessons.router)
api_router.include_router(cards.router)
api_router.include_router(stats.router)
api_router.include_router(moderation.router)

__all__ = ["api_router"]
