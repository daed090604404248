# ecolens/config.py
import os
from dotenv import load_dotenv

load_dotenv()  # take environment variables from .env file


class Settings:
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./ecolens.db")
    DB_TIMEOUT = float(os.getenv("DB_TIMEOUT", "5"))  # seconds

    JWT_SECRET = os.getenv("JWT_SECRET", "ecolens-secret-key-change-in-production")
    JWT_ALGORITHM = "HS256"
    JWT_EXPIRES_DAYS = int(os.getenv("JWT_EXPIRES_DAYS", "7"))
    BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "10"))

    DEFAULT_DAILY_GOAL = float(os.getenv("DEFAULT_DAILY_GOAL", "8000"))  # grams CO2e/day

    CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


settings = Settings()
