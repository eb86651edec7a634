"""
SmartQueue — Configuration
All settings are read from environment variables (or .env file).
"""
from functools import lru_cache
from zoneinfo import ZoneInfo

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ── Service ──────────────────────────────────────────────
    SERVICE_NAME: str = "smartqueue"
    SERVICE_VERSION: str = "1.0.0"
    DEBUG: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 3000

    # ── Local time ───────────────────────────────────────────
    TIMEZONE: str = "Asia/Kolkata"

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.TIMEZONE)

    # ── Record Store ─────────────────────────────────────────
    STORE_BACKEND: str = "memory"  # memory | redis | sql
    STORE_KEY_PREFIX: str = "smartqueue"

    # ── Redis ─────────────────────────────────────────────────
    REDIS_HOST: str = "redis"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_PASSWORD: str = ""

    @property
    def redis_url(self) -> str:
        if self.REDIS_PASSWORD:
            return f"redis://:{self.REDIS_PASSWORD}@{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    # ── PostgreSQL ────────────────────────────────────────────
    POSTGRES_HOST: str = "smartqueue-db"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "smartqueue_db"
    POSTGRES_USER: str = "smartqueue_user"
    POSTGRES_PASSWORD: str = "smartqueue_pass"
    DATABASE_URL: str = ""

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    # ── Remote realtime DB mirror ─────────────────────────────
    REMOTE_DB_URL: str = ""  # empty disables mirroring
    REMOTE_DB_AUTH: str = ""

    # ── Tokens ────────────────────────────────────────────────
    TOKEN_PREFIX: str = "A-"
    CAMPUS_ESTIMATED_WAIT_MINUTES: int = 5
    ONLINE_ESTIMATED_WAIT_MINUTES: int = 8

    # ── Optimistic Locking Retry ──────────────────────────────
    OPT_LOCK_MAX_RETRIES: int = 5
    OPT_LOCK_BASE_DELAY_MS: int = 20      # base exponential backoff delay in ms
    OPT_LOCK_MAX_DELAY_MS: int = 500      # max backoff cap in ms
    OPT_LOCK_JITTER_MS: int = 20          # random jitter range in ms

    # ── Payment gateway (Razorpay) ────────────────────────────
    RAZORPAY_KEY_ID: str = ""
    RAZORPAY_KEY_SECRET: str = ""
    RAZORPAY_API_URL: str = "https://api.razorpay.com/v1"

    # ── AI insights (Gemini) ──────────────────────────────────
    GEMINI_API_KEY: str = ""
    GEMINI_API_URL: str = "https://generativelanguage.googleapis.com/v1beta"
    GEMINI_INSIGHT_MODEL: str = "gemini-1.5-flash"
    GEMINI_PREDICTION_MODEL: str = "gemini-1.5-flash"

    # ── Admin ─────────────────────────────────────────────────
    ADMIN_PASSWORD: str = "admin123"
    JWT_SECRET_KEY: str = "CHANGE_ME_IN_PRODUCTION"
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 480

    # ── SSE ───────────────────────────────────────────────────
    SSE_KEEPALIVE_INTERVAL_SECONDS: int = 15
    SSE_RETRY_MILLISECONDS: int = 3000

    # ── Observability ─────────────────────────────────────────
    METRICS_ENABLED: bool = True
    HTTP_TIMEOUT_SECONDS: float = 10.0
    HEALTH_CHECK_TIMEOUT: float = 5.0


@lru_cache()
def get_settings() -> Settings:
    return Settings()
