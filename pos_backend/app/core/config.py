from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DATABASE_URL: str = "sqlite:///./pos.sqlite3"
    SECRET_KEY: str = "dev-insecure-key-change-in-production"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 480

    CORS_ORIGINS: list[str] = ["http://localhost:3000"]

    LOG_LEVEL: str = "INFO"

    # Redis / Celery; ledger postings are queued when LEDGER_POST_ASYNC is on
    CELERY_BROKER_URL: str = "redis://localhost:6379/0"
    CELERY_RESULT_BACKEND: str = "redis://localhost:6379/1"
    LEDGER_POST_ASYNC: bool = False

    # Whether invoices/invoice_hold carry the denormalized customer_name
    # column. None = inspect the live schema once on first use.
    INVOICE_HEADER_CUSTOMER_NAME: bool | None = None

    DEFAULT_CUSTOMER_NAME: str = "Unknown"


settings = Settings()
