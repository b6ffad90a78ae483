from pydantic_settings import BaseSettings
from typing import List
import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

class Settings(BaseSettings):
    # Database settings
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./taskboard.db")
    SQL_ECHO: bool = False

    # Identity provider settings (tokens are issued elsewhere, we only verify them)
    AUTH_JWT_SECRET: str = os.getenv("AUTH_JWT_SECRET", "your-super-secret-jwt-secret-change-in-production")
    AUTH_JWT_ALGORITHM: str = os.getenv("AUTH_JWT_ALGORITHM", "HS256")
    AUTH_JWT_AUDIENCE: str = os.getenv("AUTH_JWT_AUDIENCE", "authenticated")

    # IANA zone used for "local" day and hour buckets
    TIMEZONE: str = os.getenv("TIMEZONE", "UTC")

    # Project settings
    PROJECT_NAME: str = os.getenv("PROJECT_NAME", "Taskboard API")
    API_PREFIX: str = "/api"
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Comma separated list of frontend origins
    CORS_ORIGINS: str = os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000")

    @property
    def cors_origins(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    class Config:
        env_file = ".env"
        # Allows variables in .env that aren't defined here to simply be ignored.
        extra = "ignore"

settings = Settings()
