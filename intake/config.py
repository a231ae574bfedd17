from pydantic_settings import BaseSettings, SettingsConfigDict

MIB = 1024 * 1024


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    PORT: int = 10000
    LOG_LEVEL: str = "info"
    CORS_ALLOW_ORIGINS: list[str] = ["*"]

    # Object storage
    AWS_REGION: str | None = None
    AWS_ACCESS_KEY_ID: str | None = None
    AWS_SECRET_ACCESS_KEY: str | None = None
    S3_BUCKET: str | None = None
    S3_KEY_PREFIX: str = "uploads/"
    PRESIGN_TTL_SECONDS: int = 60 * 60 * 24
    STORAGE_TIMEOUT_SECONDS: float | None = 30.0

    # Mail transport
    SMTP_HOST: str | None = None
    SMTP_PORT: int = 587
    SMTP_SECURE: bool = False
    SMTP_USER: str | None = None
    SMTP_PASS: str | None = None
    SMTP_FROM: str | None = None
    RECEIVER_EMAIL: str | None = None
    MAIL_TIMEOUT_SECONDS: float = 30.0

    # Images
    IMAGE_MAX_DIMENSION: int = 800
    IMAGE_QUALITY: int = 60
    IMAGE_FALLBACK_QUALITY: int = 45
    IMAGE_MAX_BYTES: int = 2 * MIB
    IMAGE_STRICT: bool = False
    IMAGE_TIMEOUT_SECONDS: float | None = 30.0

    # Upload limits applied while reading the form
    MAX_FILES: int = 5
    MAX_FILE_BYTES: int = 15 * MIB


settings = Settings()
