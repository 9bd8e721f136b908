from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from dotenv import load_dotenv
from fastapi import FastAPI

from elearning.api.routes import api_router
from elearning.config.logging import configure_logging
from elearning.config.settings import get_settings
from elearning.db.base import init_db
from elearning.errors import register_error_handlers

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    load_dotenv()
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_json)
    init_db()
    logger.info("startup_complete", app=settings.app_name)
    yield
    logger.info("shutdown")


app = FastAPI(title="Lightbus Study Service", lifespan=lifespan)
register_error_handlers(app)


@app.get("/health")
def health_check() -> dict[str, str]:
    """Basic health endpoint."""
    return {"status": "ok"}


app.include_router(api_router)
