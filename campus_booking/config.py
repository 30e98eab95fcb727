# campus_booking/config.py
from typing import List

from pydantic_settings import BaseSettings
from dotenv import load_dotenv

load_dotenv()

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./campus_booking.db"
    JWT_SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: float = 60  # supports decimal durations

    # Upper bound on the wait for a resource's admission lock
    BOOKING_LOCK_TIMEOUT_SECONDS: float = 5.0

    # Campus wall clock, as an offset from UTC (e.g. 330 for IST)
    UTC_OFFSET_MINUTES: int = 0

    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = ["*"]

    class Config:
        env_file = ".env"

settings = Settings()
