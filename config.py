from enum import Enum
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class StoreBackend(str, Enum):
    JSON = "json"
    MONGO = "mongo"


class Settings(BaseSettings):
    """
    Bookstore configuration.
    Values come from environment variables or an optional .env file.
    """

    APP_NAME: str = "bookstore-api"

    # --- Auth ---
    SECRET_KEY: str = "supersecretkey"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 24 * 60

    # --- Persistence ---
    STORE_BACKEND: StoreBackend = StoreBackend.JSON
    DATA_DIR: str = "./data"
    MONGO_URI: str = "mongodb://localhost:27017"
    DB_NAME: str = "bookstore"
    SIMULATED_LATENCY_MS: int = 0

    # --- Orders ---
    VERIFY_ORDER_TOTALS: bool = False

    # --- AI search fallback ---
    GOOGLE_API_KEY: Optional[str] = None
    AI_MODEL_NAME: str = "gemini-1.5-flash"

    # --- Logging ---
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "console"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()
