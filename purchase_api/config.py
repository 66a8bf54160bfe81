from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    APP_NAME: str = "Purchase Requests"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    PORT: int = 3000

    DATABASE_URL: str = "sqlite+aiosqlite:///./purchase_requests.db"
    DATABASE_SYNC_URL: str = "sqlite:///./purchase_requests.db"
    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 5
    DB_POOL_RECYCLE: int = 300
    DB_SSL: bool = False
    DB_AUTO_CREATE: bool = True

    SESSION_SECRET: str = "change-me"
    JWT_ALGORITHM: str = "HS256"
    SESSION_EXPIRE_MINUTES: int = 60 * 12
    SESSION_COOKIE_NAME: str = "session"
    SESSION_COOKIE_SECURE: bool = False
    OAUTH_STATE_COOKIE_NAME: str = "oauth_state"

    GOOGLE_CLIENT_ID: Optional[str] = None
    GOOGLE_CLIENT_SECRET: Optional[str] = None

    SERVER_URL: str = "http://localhost:3000"
    FRONTEND_URL: str = "http://localhost:3001"

    BREVO_API_KEY: Optional[str] = None
    EMAIL_FROM_ADDRESS: str = "noreply@purchase-requests.example.com"
    CORS_ORIGINS: str = "http://localhost:3001"

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",")]

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def oauth_redirect_uri(self) -> str:
        return f"{self.SERVER_URL.rstrip('/')}/auth/callback"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
