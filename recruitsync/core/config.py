from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore'
    )

    APP_NAME: str = "RecruitSync"
    APP_ENV: str = "dev"
    APP_HOST: str = "0.0.0.0"
    APP_PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    # Run-scoped read credential (JWT)
    SECRET_KEY: str = "change_me_please"
    RUN_TOKEN_EXPIRE_MINUTES: int = 24 * 60

    # SQLite connection string (read from .env)
    DATABASE_URL: str = "sqlite:///./recruitsync.db"

    BACKEND_CORS_ORIGINS: str = "http://localhost:5173"

    # Shared key the workflow engine sends on /producer/* writes; empty disables the check
    PRODUCER_API_KEY: str = ""

    # Outreach message generator; empty -> local template composer
    MESSAGE_WEBHOOK_URL: str = ""
    MESSAGE_WEBHOOK_TIMEOUT: float = 20.0

    # Result synchronizer tuning (seconds)
    SYNC_POLL_INTERVAL: float = 3.0
    SYNC_MAX_BACKOFF: float = 30.0
    SYNC_MAX_RETRIES: int = 5
    SYNC_SOFT_DEADLINE: float = 600.0
    SYNC_FLUSH_GRACE: float = 1.0

    JOBS_PAGE_SIZE: int = 20
    JOBS_MAX_PAGE_SIZE: int = 100

settings = Settings()
