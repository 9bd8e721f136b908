
from sqlmodel import SQLModel, create_engine

from elearning.config.settings import get_settings

_engine = None


def get_engine():
    global _engine
    if _engine is None:
        database_url = get_settings().database_url
        connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
        _engine = create_engine(database_url, echo=False, pool_pre_ping=True, connect_args=connect_args)
    return _engine


def init_db() -> None:
    """Create all tables registered on the SQLModel metadata."""
    # Table classes register themselves on import
    from elearning.db import schemas  # noqa: F401

    SQLModel.metadata.create_all(get_engine())
