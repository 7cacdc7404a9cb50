from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Database & Redis
    DATABASE_URL: str = "sqlite+aiosqlite:///./skillgov.db"
    REDIS_URL: str = "redis://redis:6379/0"

    # Live game server notification
    NOTIFIER_BACKEND: str = "log"  # "log" | "redis"
    NOTIFY_CHANNEL: str = "skills:updates"
    NOTIFY_HISTORY_LENGTH: int = 500

    # Admin API
    ADMIN_API_KEY: Optional[str] = None

    # History capacities
    CHANGE_LOG_CAPACITY: int = 1000
    WORKFLOW_CAPACITY: int = 1000
    TEST_RESULT_CAPACITY: int = 500

    # Approval workflow (deadline is advisory only)
    WORKFLOW_DEADLINE_HOURS: Optional[int] = 72

    # Validator balance warnings
    DPS_CEILING: float = 100.0
    HPS_CEILING: float = 80.0
    MAX_BUFF_DURATION: float = 300.0

    # Impact assessment
    CRITICAL_DAMAGE_RATIO: float = 0.5
    MAJOR_DAMAGE_RATIO: float = 0.2
    MODERATE_DAMAGE_RATIO: float = 0.1
    COST_DELTA_THRESHOLD: float = 10.0
    COOLDOWN_CHANGE_THRESHOLD: float = 0.3
    DELETE_MAJOR_PLAYER_THRESHOLD: int = 50
    PLAYER_NOTICE_THRESHOLD: int = 100
    DELETE_USAGE_BLOCK_THRESHOLD: Optional[int] = 1000

    # Balance test harness
    HARNESS_DAMAGE_TOLERANCE: float = 0.1
    HARNESS_DPS_CEILING: float = 100.0
    HARNESS_DAMAGE_PER_MP_CEILING: float = 10.0

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=True,
    )


settings = Settings()
