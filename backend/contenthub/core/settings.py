from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    MONGODB_URI: str = "mongodb://mongodb:27017"
    MONGODB_DB_NAME: str = "productivity_hub"

    # Blob area for uploaded files: {STORAGE_ROOT}/{project_id}/{unique_name}
    STORAGE_ROOT: str = "uploads"

    JWT_SECRET: str = "change_me"
    JWT_ALG: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MIN: int = 60 * 24

    # Per-item lock guarding "append version + update current"
    ITEM_LOCK_TIMEOUT_SECONDS: float = 10.0
    # Stale lock is reclaimed (e.g. crashed worker). Holders that run long,
    # like a cascade delete over many blobs, refresh it between steps.
    ITEM_LOCK_TTL_SECONDS: float = 60.0
    ITEM_LOCK_POLL_SECONDS: float = 0.05

    # Retries when (item_id, version_number) collides on insert
    VERSION_APPEND_RETRIES: int = 5

    LOG_LEVEL: str = "INFO"

    # Read from environment variables first, then from .env file, then use defaults
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


settings = Settings()
