import logging

from pydantic_settings import BaseSettings
from pydantic import ConfigDict, model_validator
from typing import Optional

class Settings(BaseSettings):
    # Environment
    ENV: str = "development"
    CONFIG_STRICT: bool = False

    # Database & Cache
    DATABASE_URL: Optional[str] = None
    TEST_DATABASE_URL: Optional[str] = None
    REDIS_URL: str = "redis://localhost:6379"

    # Trigger chaining: "inline" runs handlers in-process, "queue" hands them to RQ
    TRIGGER_MODE: str = "inline"
    TRIGGER_QUEUE_NAME: str = "triggers"

    # Daily reset job
    SCHEDULER_ENABLED: bool = False
    DAILY_RESET_CRON: str = "0 0 * * *"
    DAILY_RESET_TIMEZONE: str = "Etc/UTC"

    # Leaderboard rendering ("today", date/time strings)
    LEADERBOARD_TIMEZONE: str = "UTC"

    # Activity notifications
    MILESTONE_STRIDE: int = 25

    # Auth
    AUTH_JWT_SECRET: Optional[str] = None
    AUTH_JWT_ALGORITHMS: str = "HS256"  # comma-separated
    # X-User-Id fallback (dev/tests); unset means on everywhere except production
    ALLOW_HEADER_AUTH: Optional[bool] = None

    # Admin jobs
    ADMIN_KEY: Optional[str] = None

    CORS_ORIGINS: str = "http://localhost:8081,http://localhost:19006"

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @model_validator(mode="after")
    def _default_header_auth(self) -> "Settings":
        if self.ALLOW_HEADER_AUTH is None:
            self.ALLOW_HEADER_AUTH = self.ENV.lower() != "production"
        return self

settings = Settings()


def validate_config(strict: Optional[bool] = None, settings_obj: Optional[Settings] = None, logger: Optional[logging.Logger] = None) -> bool:
    """Validate required configuration.

    In strict mode raise RuntimeError; otherwise emit warnings only.
    Secrets are not logged, only missing keys.
    """
    cfg = settings_obj or settings
    log = logger or logging.getLogger("quickplay")
    strict_mode = strict if strict is not None else getattr(cfg, "CONFIG_STRICT", False)

    required_keys = ["DATABASE_URL", "AUTH_JWT_SECRET"]
    if str(getattr(cfg, "TRIGGER_MODE", "inline")).lower() == "queue":
        required_keys.append("REDIS_URL")

    missing = [key for key in required_keys if not getattr(cfg, key, None)]
    if missing:
        message = f"Missing required configuration: {', '.join(missing)}"
        if strict_mode:
            raise RuntimeError(message)
        log.warning(message)

    if cfg.ENV.lower() == "production" and cfg.ALLOW_HEADER_AUTH:
        log.warning("ALLOW_HEADER_AUTH is enabled in production; X-User-Id will be trusted")

    return True
