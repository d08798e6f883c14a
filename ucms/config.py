from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    # Database - SQLite for local development, PostgreSQL via DATABASE_URL
    database_url: str = "sqlite:///./ucms.db"

    # JWT
    secret_key: str = "fallback_secret_key_change_in_production"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24

    # Password hashing
    password_hash_rounds: int = 12

    # CORS - comma separated list
    cors_origins: str = "http://localhost:5173,http://localhost:5174,http://localhost:5175,http://localhost:3000"

    # Academic rules
    default_course_credits: int = 3
    default_course_capacity: int = 30

    # General
    app_name: str = "UCMS Backend"
    log_level: str = "INFO"
    seed_on_startup: bool = True
    debug: bool = False

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"

    @property
    def cors_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


settings = Settings()
