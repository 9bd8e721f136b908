from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "Lightbus Study Service"
    database_url: str = "sqlite:///./elearning.db"

    log_level: str = "INFO"
    log_json: bool = False

    # Study batch defaults mirror the web client's "study all" session
    default_limit_new: int = 20
    default_limit_due: int = 30
    max_batch_size: int = 100
    new_card_order: Literal["created", "random"] = "created"

    # SM-2 constants
    sm2_initial_ease: float = 2.5
    sm2_minimum_ease: float = 1.3
    sm2_first_interval: int = 1
    sm2_second_interval: int = 6

    learned_interval_days: int = 21
    recent_activity_limit: int = 10

    model_config = SettingsConfigDict(env_prefix="ELEARNING_", env_file=".env", extra="ignore")


@lru_cache()
def get_settings() -> Settings:
    return Settings()
