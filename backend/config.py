# backend/config.py
from pydantic_settings import BaseSettings
from typing import ClassVar, Optional
from pathlib import Path

# Resolve absolute path to the .env file for reliable loading
env_path = Path(__file__).parent.parent / ".env"

class Settings(BaseSettings):
    SECRET_KEY: str = "dev-secret-change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    DATABASE_URL: str = "sqlite:///./storefront.db"

    # Product images are written here and served under /uploads
    UPLOAD_DIR: str = "static/uploads"

    # Extra CORS origin for the deployed frontend
    FRONTEND_URL: Optional[str] = None

    LOG_LEVEL: str = "INFO"

    # Fixed page sizes per listing context
    CATALOG_PAGE_SIZE: int = 12
    ADMIN_PAGE_SIZE: int = 20
    ORDERS_PAGE_SIZE: int = 10

    class Config:
        env_file: ClassVar[str] = str(env_path)

settings = Settings()
