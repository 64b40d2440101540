# settings.py
import os
from dotenv import load_dotenv

load_dotenv()


def _int_env(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value not in (None, "") else default


def _float_env(name: str, default: float) -> float:
    value = os.getenv(name)
    return float(value) if value not in (None, "") else default


class Settings:
    """Application settings read from environment variables (and .env)."""
    # --- Google Analytics ---
    GA_VIEW_ID                   = os.getenv("GA_VIEW_ID")
    GA_MAX_ATTEMPTS              = _int_env("GA_MAX_ATTEMPTS", 30)
    GA_MAX_BACKOFF_SECONDS       = _int_env("GA_MAX_BACKOFF_SECONDS", 60)
    GA_SERVER_ERROR_WAIT_SECONDS = _int_env("GA_SERVER_ERROR_WAIT_SECONDS", 60)
    GA_EMPTY_RESPONSE_WAIT_SECONDS = _int_env("GA_EMPTY_RESPONSE_WAIT_SECONDS", 1)
    GA_PING_DB_EVERY_SECS        = _int_env("GA_PING_DB_EVERY_SECS", 25)
    GA_METRICS_PER_REQUEST       = _int_env("GA_METRICS_PER_REQUEST", 9)
    GA_PAUSE_AFTER_QUERY_SECONDS = _float_env("GA_PAUSE_AFTER_QUERY_SECONDS", 0.1)
    GA_PAGE_SIZE                 = _int_env("GA_PAGE_SIZE", 100000)

    # --- Postgres ---
    POSTGRES_DB           = os.getenv("POSTGRES_DB")
    POSTGRES_USER         = os.getenv("POSTGRES_USER")
    POSTGRES_PASSWORD     = os.getenv("POSTGRES_PASSWORD")
    POSTGRES_HOST         = os.getenv("POSTGRES_HOST", "db")
    POSTGRES_PORT         = os.getenv("POSTGRES_PORT", "5432")
    DATABASE_URL          = os.getenv("DATABASE_URL")
    DB_POOL_MIN_CONN      = _int_env("DB_POOL_MIN_CONN", 1)
    DB_POOL_MAX_CONN      = _int_env("DB_POOL_MAX_CONN", 4)

    # --- Observability ---
    LOG_LEVEL             = os.getenv("LOG_LEVEL", "INFO")
    APP_METRICS_PORT      = _int_env("APP_METRICS_PORT", 8082)

    # --- Search engines ---
    SEARCH_ENGINES_FILE   = os.getenv("SEARCH_ENGINES_FILE")

    @property
    def database_dsn(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

settings = Settings()
