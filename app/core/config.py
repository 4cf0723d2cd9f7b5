from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "local"
    APP_NAME: str = "Haven Bookings API"
    LOG_LEVEL: str = "INFO"
    # Comma-separated origins for CORS (e.g. https://havens.example.com,https://admin.havens.example.com). If empty, uses localhost defaults.
    CORS_ORIGINS: str = ""

    SECRET_KEY: str
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 12
    STAFF_ROLES: str = "owner,csr,admin"

    DATABASE_URL: str

    @field_validator("DATABASE_URL", mode="after")
    @classmethod
    def normalize_database_url(cls, v: str) -> str:
        """Render and others give postgres://; SQLAlchemy expects postgresql+psycopg2://."""
        if v and v.startswith("postgres://"):
            return "postgresql+psycopg2://" + v[11:]
        return v
    REDIS_URL: str = "redis://localhost:6379/0"

    SMTP_HOST: str = "localhost"
    SMTP_PORT: int = 25
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_FROM: str = "bookings@havens.local"

    SENDGRID_API_KEY: str = ""
    SENDGRID_FROM_EMAIL: str = ""

    NOTIFICATIONS_ENABLED: bool = True
    CLIENT_BASE_URL: str = ""  # e.g. https://havens.example.com - used for links in guest emails

    # Image storage: GCS when a bucket is configured, local media dir otherwise
    GCS_BUCKET_NAME: str = ""
    GOOGLE_APPLICATION_CREDENTIALS: str = ""
    MEDIA_LOCAL_DIR: str = "./data/media"
    MEDIA_PUBLIC_URL: str = "http://localhost:8000/media"
    IMAGE_FOLDER_PREFIX: str = "havens"


settings = Settings()
