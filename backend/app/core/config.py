from pydantic_settings import BaseSettings
from typing import List, Any, Optional
import json
from pathlib import Path


def parse_csv_list(v: Any) -> List[str]:
    """Parse a list setting from a JSON array or comma-separated string"""
    if isinstance(v, list):
        return v
    if isinstance(v, str):
        # Try JSON parsing first
        if v.startswith('['):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                pass
        # Fall back to comma-separated
        return [item.strip() for item in v.split(',') if item.strip()]
    return []


class Settings(BaseSettings):
    """Application settings - all configurable via environment variables"""

    # ==========================================
    # Application
    # ==========================================
    APP_NAME: str = "CampusConnect"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    SECRET_KEY: str = "change-me-in-production"
    API_PREFIX: str = "/api"

    # Server Configuration
    SERVER_HOST: str = "0.0.0.0"
    SERVER_PORT: int = 8000

    # ==========================================
    # Database
    # ==========================================
    DATABASE_URL: str = "sqlite+aiosqlite:///./campusconnect.db"
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 0
    DB_ECHO: bool = False

    # ==========================================
    # Auth / Session
    # ==========================================
    JWT_SECRET_KEY: str = "change-me-in-production-jwt"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7  # matches session cookie max-age
    BCRYPT_ROUNDS: int = 12
    SESSION_COOKIE_NAME: str = "session"
    SESSION_COOKIE_SECURE: bool = False

    # ==========================================
    # CORS (stored as comma-separated string, parsed to list)
    # ==========================================
    CORS_ORIGINS_STR: str = "http://localhost:3000,http://127.0.0.1:3000"

    @property
    def CORS_ORIGINS(self) -> List[str]:
        """Parse CORS origins from comma-separated string"""
        return parse_csv_list(self.CORS_ORIGINS_STR)

    # ==========================================
    # Rate Limiting
    # ==========================================
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_PER_MINUTE: int = 60
    REDIS_URL: Optional[str] = None  # limiter storage; in-memory when unset

    # ==========================================
    # Uploads (logos, event and post images)
    # ==========================================
    UPLOAD_DIR: str = "uploads"
    UPLOAD_URL_PREFIX: str = "/uploads"
    MAX_IMAGE_SIZE: int = 5 * 1024 * 1024  # 5MB
    ALLOWED_IMAGE_TYPES_STR: str = "image/jpeg,image/png,image/webp"

    @property
    def ALLOWED_IMAGE_TYPES(self) -> List[str]:
        """Parse allowed image content types from comma-separated string"""
        return parse_csv_list(self.ALLOWED_IMAGE_TYPES_STR)

    @property
    def UPLOAD_PATH(self) -> Path:
        return Path(self.UPLOAD_DIR).resolve()

    # ==========================================
    # Newsfeed
    # ==========================================
    NEWSFEED_WINDOW_DAYS: int = 30
    NEWSFEED_DEFAULT_LIMIT: int = 50
    NEWSFEED_MAX_LIMIT: int = 100

    # ==========================================
    # Super Admin bootstrap
    # ==========================================
    SUPER_ADMIN_EMAIL: Optional[str] = None
    SUPER_ADMIN_PASSWORD: Optional[str] = None
    SUPER_ADMIN_PASSWORD_HASH: Optional[str] = None  # takes precedence over the plain password
    SUPER_ADMIN_NAME: str = "Super Admin"
    SUPER_ADMIN_PHONE: Optional[str] = None

    # ==========================================
    # Logging
    # ==========================================
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = None
    LOG_JSON: Optional[bool] = None  # defaults to JSON in production

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields in .env that aren't defined in Settings

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        if self.LOG_FILE:
            Path(self.LOG_FILE).parent.mkdir(exist_ok=True, parents=True)

    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    def use_json_logs(self) -> bool:
        if self.LOG_JSON is not None:
            return self.LOG_JSON
        return self.is_production()

    def super_admin_configured(self) -> bool:
        return bool(
            self.SUPER_ADMIN_EMAIL
            and (self.SUPER_ADMIN_PASSWORD or self.SUPER_ADMIN_PASSWORD_HASH)
        )


# Create settings instance
settings = Settings()
