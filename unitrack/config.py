from fastapi import Request
from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./unitrack.db"
    SQL_ECHO: bool = False
    ALLOWED_ORIGINS: str = "http://localhost:3000"
    API_VERSION: str = "1.0"
    LOG_LEVEL: str = "INFO"

    JWT_SECRET_KEY: str = "your-secret-key-change-in-production"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_DAYS: int = 30
    AUTH_COOKIE_NAME: str = "auth-token"
    COOKIE_SECURE: bool = False

    # Dashboard windows
    UPCOMING_DEADLINE_WINDOW_DAYS: int = 30
    RECENT_ACTIVITY_WINDOW_DAYS: int = 7

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields in .env

    @property
    def allowed_origins(self) -> List[str]:
        # Parse ALLOWED_ORIGINS from comma-separated string, strip whitespace
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]

    @property
    def database_url(self) -> str:
        url = self.DATABASE_URL
        # SQLAlchemy 2.0 requires explicit driver specification
        if url.startswith("postgresql://") and "+psycopg2" not in url:
            url = url.replace("postgresql://", "postgresql+psycopg2://", 1)
        elif url.startswith("postgres://"):
            url = url.replace("postgres://", "postgresql+psycopg2://", 1)
        return url


def get_settings() -> Settings:
    return Settings()


def get_app_settings(request: Request) -> Settings:
    """Settings the running app was built with"""
    return request.app.state.settings
