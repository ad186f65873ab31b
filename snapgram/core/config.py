# snapgram/core/config.py
from pydantic_settings import BaseSettings
from typing import Optional, List

class Settings(BaseSettings):
    # Project Info
    PROJECT_NAME: str = "Snapgram API"
    API_PREFIX: str = "/api"
    DEBUG: bool = False

    # MongoDB Settings
    MONGODB_URL: str = "mongodb://localhost:27017"
    MONGODB_DB_NAME: str = "snapgram"
    MONGODB_POOL_SIZE: int = 10

    # Security and JWT
    JWT_SECRET: str = "my secret"
    JWT_LIFETIME_SECONDS: int = 60 * 60 * 24 * 30  # 30 days
    JWT_AUDIENCE: str = "snapgram:auth"

    # Profiles
    DEFAULT_PROFILE_PICTURE: str = "https://cdn.snapgram.local/defaults/profile.png"

    # Uploads
    MAX_UPLOAD_BYTES: int = 5 * 1024 * 1024
    ALLOWED_IMAGE_TYPES: List[str] = ["image/jpeg", "image/png", "image/gif"]

    # Image storage (any S3-compatible host)
    STORAGE_ENDPOINT_URL: Optional[str] = None
    STORAGE_REGION: str = "us-east-1"
    STORAGE_BUCKET: str = "snapgram"
    STORAGE_ACCESS_KEY: Optional[str] = None
    STORAGE_SECRET_KEY: Optional[str] = None
    STORAGE_PUBLIC_URL: Optional[str] = None

    # CORS
    ALLOWED_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5173",
    ]

    # Logging Configuration
    LOG_LEVEL: str = "INFO"  # Options: DEBUG, INFO, WARNING, ERROR, CRITICAL
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    class Config:
        env_file = ".env"

settings = Settings()
