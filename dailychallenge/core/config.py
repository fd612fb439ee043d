import logging
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Environment
    ENV: str = "development"
    CONFIG_STRICT: bool = False

    # Database (in-memory store when unset)
    DATABASE_URL: Optional[str] = None
    SEED_ON_STARTUP: bool = True

    # Scheduling
    CHALLENGE_TIMEZONE: str = "UTC"
    UPCOMING_DAYS_DEFAULT: int = 7

    # Selection
    RECENT_WINDOW_SIZE: int = 5
    ANTI_REPEAT_MIN_HISTORY: int = 3

    # Statistics / history
    CURRENT_STREAK_LOOKBACK: int = 100
    HISTORY_PAGE_LIMIT_MAX: int = 100

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


settings = Settings()


def validate_config(strict: Optional[bool] = None, settings_obj: Optional[Settings] = None, logger: Optional[logging.Logger] = None) -> bool:
    """Validate scheduling and window configuration.

    In strict mode raise RuntimeError; otherwise emit warnings only.
    """
    cfg = settings_obj or settings
    log = logger or logging.getLogger("dailychallenge")
    strict_mode = strict if strict is not None else getattr(cfg, "CONFIG_STRICT", False)

    problems = []
    try:
        ZoneInfo(cfg.CHALLENGE_TIMEZONE)
    except (ZoneInfoNotFoundError, ValueError):
        problems.append(f"unknown CHALLENGE_TIMEZONE {cfg.CHALLENGE_TIMEZONE!r}")

    for key in ("RECENT_WINDOW_SIZE", "CURRENT_STREAK_LOOKBACK", "HISTORY_PAGE_LIMIT_MAX"):
        if getattr(cfg, key) < 1:
            problems.append(f"{key} must be at least 1")
    if cfg.ANTI_REPEAT_MIN_HISTORY < 0:
        problems.append("ANTI_REPEAT_MIN_HISTORY must not be negative")
    if cfg.UPCOMING_DAYS_DEFAULT < 0:
        problems.append("UPCOMING_DAYS_DEFAULT must not be negative")

    if problems:
        message = f"Invalid configuration: {'; '.join(problems)}"
        if strict_mode:
            raise RuntimeError(message)
        log.warning(message)

    return True
