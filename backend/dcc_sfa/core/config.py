from typing import List, Union
import logging

from pydantic import AnyHttpUrl, Field, validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

class Settings(BaseSettings):
    PROJECT_NAME: str = "DCC SFA"
    API_V1_STR: str = "/api/v1"

    # CORS
    BACKEND_CORS_ORIGINS: List[Union[str, AnyHttpUrl]] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173"
    ]

    @validator("BACKEND_CORS_ORIGINS", pre=True)
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> Union[List[str], str]:
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",") if i.strip()]
        elif isinstance(v, (list, str)):
            return v
        raise ValueError(v)

    # Database; any SQLAlchemy async URL
    DATABASE_URL: str = "sqlite+aiosqlite:///./dcc_sfa.db"
    SQL_DEBUG: bool = False

    # Pagination
    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 100

    # API tokens
    API_TOKEN_EXPIRE_DAYS: int = 30
    TOKEN_CLEANUP_ENABLED: bool = True
    TOKEN_CLEANUP_HOUR: int = 2
    TOKEN_CLEANUP_MINUTE: int = 0

    # File storage (contracts, uploads)
    STORAGE_DIR: str = Field(default="./uploads", description="Local directory backing /uploads")
    STORAGE_PUBLIC_URL: str = "/uploads"

    # Import / export
    IMPORT_MAX_FILE_SIZE_MB: int = 10
    IMPORT_BATCH_SIZE: int = 100

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"

    class Config:
        case_sensitive = True
        env_file = ".env"


settings = Settings()
logger.info(f"Loaded settings: API_V1_STR={settings.API_V1_STR}, CORS={settings.BACKEND_CORS_ORIGINS}")
