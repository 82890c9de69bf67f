from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    # Database
    database_url: str = "sqlite:///./bookhub.db"
    database_echo: bool = False

    # Security
    secret_key: str = "change-me"
    algorithm: str = "HS256"

    # File Upload
    upload_dir: str = "./uploads"
    max_file_size: int = 52428800  # 50MB
    allowed_extensions: List[str] = [
        ".pdf",
        ".epub",
        ".mobi",
        ".txt",
        ".doc",
        ".docx",
    ]

    # Service
    read_retries: int = 1
    log_level: str = "INFO"
    cors_origins: List[str] = ["*"]

    class Config:
        env_file = ".env"


settings = Settings()
