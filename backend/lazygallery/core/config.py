from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    DATABASE_URL: str
    S3_ENDPOINT: str = "localhost:9000"
    S3_ACCESS_KEY: str
    S3_SECRET_KEY: str
    S3_SECURE: bool = False
    S3_REGION: str | None = None
    BUCKET_MEDIA: str = "lazygallery-media"
    BUCKET_THUMBNAILS: str = "lazygallery-thumbnails"
    BUCKET_ARCHIVES: str = "lazygallery-archives"
    THUMBNAIL_WIDTH: int = 512
    THUMBNAIL_HEIGHT: int = 512
    THUMBNAIL_QUALITY: int = 80
    ENSURE_BUCKETS_ON_STARTUP: bool = True
    LOG_LEVEL: str = "INFO"
    FRONTEND_URL: str = "http://localhost:5173"
    FRONTEND_URLS: str | None = None

    class Config:
        env_file = ".env"

settings = Settings()
