"""
Configuration settings for Focusly.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings

WORK_TIME = 25 * 60
SHORT_BREAK = 5 * 60
LONG_BREAK = 15 * 60


class Settings(BaseSettings):
    gemini_api_key: str = ""
    roadmap_model: str = "gemini-2.5-pro"
    content_model: str = "gemini-2.5-flash"

    #timer intervals in seconds
    work_time: int = WORK_TIME
    short_break: int = SHORT_BREAK
    long_break: int = LONG_BREAK
    long_break_every: int = 4

    #rate limit backoff for provider calls
    retry_base_delay: float = 2.0
    retry_max_delay: float = 30.0
    retry_max_attempts: int = 4

    data_dir: str = "data/focusly"
    unlock_all_nodes: bool = False
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_prefix = "FOCUSLY_"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    return Settings()

settings = get_settings()
