"""
Configuration module - loads all env vars using pydantic-settings.
This is the SINGLE SOURCE OF TRUTH for all config values.
"""

from functools import lru_cache
from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # MongoDB
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_db: str = "workskillai"

    # Gemini (OpenAI-compatible endpoint)
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta/openai/"
    gemini_api_key: str = ""                 # resume parsing
    gemini_resume_model: str = "gemini-2.5-flash"
    gemini_exam_api_keys: str = ""           # comma separated, exam generation
    gemini_exam_models: str = (
        "gemini-1.5-flash,gemini-1.5-flash-8b,gemini-1.5-pro,"
        "gemini-2.0-flash-exp,gemini-2.0-flash-lite"
    )
    max_requests_per_key: int = 50
    max_requests_per_model: int = 15

    # Python ML service
    ml_service_url: str = "http://localhost:8000"
    ml_service_timeout: float = 30.0

    # JWT Auth (cookie based)
    jwt_secret_key: str = "change-this-secret"
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 1440
    jwt_cookie_name: str = "jwt"
    jwt_cookie_secure: bool = False

    # Resumes
    max_resume_size_mb: int = 5
    max_resumes_per_user: int = 4
    resume_text_limit: int = 3000

    # App
    cors_origins: str = "http://localhost:3000,http://localhost:5173"
    log_level: str = "INFO"
    debug: bool = True

    @property
    def exam_api_keys(self) -> List[str]:
        """Exam keys as a list, blanks removed"""
        return [k.strip() for k in self.gemini_exam_api_keys.split(",") if k.strip()]

    @property
    def exam_models(self) -> List[str]:
        return [m.strip() for m in self.gemini_exam_models.split(",") if m.strip()]

    @property
    def cors_origin_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    # Pydantic v2 config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8"
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
