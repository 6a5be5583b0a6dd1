"""Configuration management for Storyreel."""
from functools import lru_cache
from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    Every setting has a default so the desktop app starts without a .env file.
    """

    # Application
    APP_NAME: str = "Storyreel"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Database (workflow and asset persistence)
    DATABASE_URL: str = "sqlite:///./storyreel.db"
    DATABASE_POOL_SIZE: int = 5
    DATABASE_MAX_OVERFLOW: int = 10
    DATABASE_ECHO: bool = False

    # API
    API_V1_PREFIX: str = "/api/v1"

    # Adapters
    ENABLED_WORKFLOW_TYPES: List[str] = [
        "local-pipeline",
        "remote-automation",
        "tool-call",
    ]
    ADAPTER_MAX_CONCURRENT_JOBS: int = 4
    DEFAULT_EXPECTED_DURATION: float = 60.0  # Seconds, drives progress estimates

    # Local GPU pipeline
    LOCAL_PIPELINE_COMMAND: Optional[List[str]] = None
    LOCAL_PIPELINE_KILL_TIMEOUT: float = 5.0  # Seconds between SIGTERM and SIGKILL

    # Remote automation server
    REMOTE_AUTOMATION_URL: str = "http://localhost:8188"
    REMOTE_REQUEST_TIMEOUT: float = 30.0
    REMOTE_POLL_INTERVAL: float = 1.0
    REMOTE_POLL_TIMEOUT: float = 120.0

    # Fan-out tasks
    TASK_POLL_INTERVAL: float = 1.0
    TASK_WAIT_TIMEOUT: float = 300.0  # 5 minutes
    MAX_CONCURRENT_GENERATIONS: int = 3

    # Chapter segmentation
    CHAPTER_CHAR_THRESHOLD: int = 1000

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings: Singleton settings instance
    """
    return Settings()
