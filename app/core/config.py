# app/core/config.py

from functools import lru_cache
import urllib.parse

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Read env from .env; ignore unknown keys so extra lines don't crash startup
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # --- Postgres ---
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "appointments"
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = ""
    # Full async URL override (e.g. sqlite+aiosqlite:///./local.db for local runs)
    DATABASE_URL: str | None = None

    # --- Connection pool ---
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 0
    DB_POOL_TIMEOUT: float = 30.0  # seconds a request waits for a free connection
    DB_AUTO_CREATE: bool = False

    # --- Monitoring & Logging ---
    APP_ENV: str = "production"
    LOG_LEVEL: str = "INFO"
    LOG_REQUESTS: bool = False
    MAX_LOG_LENGTH: int = 200
    SLOW_REQUEST_THRESHOLD: float = 2.0

    # --- HTTP boundary ---
    ALLOWED_CORS_ORIGINS: str = "*"  # comma-separated list, e.g. "http://localhost:3000,https://your.app"
    MAX_BODY_BYTES: int = 32 * 1024

    # --- Intake rules ---
    ENFORCE_SLOT_GRID: bool = True
    SLOT_GRID_MINUTES: int = 15
    DEFAULT_SERVICE_DURATION_MIN: int = 60
    EXPOSE_DEBUG_TOKENS: bool = False

    # Sync URI (Alembic)
    @property
    def sync_db_uri(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL.replace("+asyncpg", "").replace("+aiosqlite", "")
        pwd = urllib.parse.quote_plus(self.POSTGRES_PASSWORD)
        return f"postgresql://{self.POSTGRES_USER}:{pwd}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    # Async URI (SQLAlchemy engine)
    @property
    def async_db_uri(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        pwd = urllib.parse.quote_plus(self.POSTGRES_PASSWORD)
        return f"postgresql+asyncpg://{self.POSTGRES_USER}:{pwd}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    @property
    def allowed_origins_list(self) -> list[str]:
        return [o.strip() for o in self.ALLOWED_CORS_ORIGINS.split(",") if o.strip()]

    @property
    def is_development(self) -> bool:
        return self.APP_ENV.lower() in ("development", "dev", "local")

    @property
    def is_production(self) -> bool:
        return self.APP_ENV.lower() in ("production", "prod")

    @property
    def debug_tokens_enabled(self) -> bool:
        # Never leak identifiers from a production deployment, whatever the flag says
        return self.EXPOSE_DEBUG_TOKENS and not self.is_production


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
