# taskhub/config/settings.py
# Application settings read from the environment

import os
from typing import List

from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Runtime configuration for the application"""

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./taskhub.db")
    DB_SSLMODE: str = os.getenv("DB_SSLMODE", "require")

    # Token verification
    SECRET_KEY: str = os.getenv("SECRET_KEY", "change-me")
    ALGORITHM: str = os.getenv("ALGORITHM", "HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 24))

    # HTTP
    CORS_ORIGINS: List[str] = [
        origin.strip()
        for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")
        if origin.strip()
    ]
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8000"))
    RELOAD: bool = os.getenv("RELOAD", "true").lower() == "true"

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Dashboard
    RECENT_TASKS_LIMIT: int = int(os.getenv("RECENT_TASKS_LIMIT", 5))

    @classmethod
    def engine_options(cls) -> dict:
        """Keyword arguments for create_engine based on the database backend"""
        if cls.DATABASE_URL.startswith("sqlite"):
            return {"connect_args": {"check_same_thread": False}}
        if cls.DATABASE_URL.startswith("postgresql"):
            return {"connect_args": {"sslmode": cls.DB_SSLMODE}, "pool_pre_ping": True}
        return {}


settings = Settings()
