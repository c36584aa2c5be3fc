"""
Configuration management for DoseTrack
"""

from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""
    
    # Application
    APP_NAME: str = "DoseTrack"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENV: str = "development"
    
    # API
    API_PREFIX: str = "/api/v1"
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    
    # Database
    DATABASE_URL: str = "sqlite:///./dosetrack.db"
    DATABASE_ECHO: bool = False
    
    # Scheduling
    DEFAULT_TIMEZONE: str = "UTC"
    DEFAULT_GRACE_WINDOW_MINUTES: int = 60
    COLLISION_WINDOW_MINUTES: int = 30
    
    # Dose actions
    POSTPONE_MIN_MINUTES: int = 5
    POSTPONE_MAX_MINUTES: int = 240
    UNDO_WINDOW_MINUTES: int = 10
    AUTO_DECREMENT_INVENTORY: bool = True
    
    # Analytics
    ANALYTICS_WINDOW_DAYS: int = 30
    PROBLEM_TIMES_LIMIT: int = 5
    TREND_DAYS: int = 7
    
    # Alerts and refills
    REFILL_THRESHOLD_DAYS: int = 3
    GUARDIAN_FOLLOW_UP_MINUTES: int = 30
    
    # CORS
    CORS_ORIGINS: list[str] = ["http://localhost:3000", "http://localhost:5173"]
    
    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    
    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
