"""
Configuration management using Pydantic Settings
"""
from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Database
    DATABASE_URL: str

    # Redis
    REDIS_URL: str = "redis://redis:6379/0"

    # Application
    APP_NAME: str = "Exam Bank Service"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:8000"]

    # Authorization
    ADMIN_ROLE: str = "admin"

    # Exam generation
    EXAM_CACHE_TTL: int = 3600  # 1 hour
    MAX_EXAMS_PER_REQUEST: int = 50
    MAX_QUESTIONS_PER_EXAM: int = 200
    LESSON_WRITE_RETRIES: int = 3
    SKU_SUFFIX_LENGTH: int = 3

    # Fill-in distractors: random tries allowed per producible permutation
    DISTRACTOR_RETRY_FACTOR: int = 20

    # Image storage
    UPLOAD_DIR: str = "/tmp/exambank/uploads"
    MEDIA_BASE_URL: str = "/media/uploads"
    MAX_UPLOAD_BYTES: int = 5 * 1024 * 1024

    # Logging
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = True


# Global settings instance
settings = Settings()
