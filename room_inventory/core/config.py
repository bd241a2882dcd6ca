# room_inventory/core/config.py
import os
from dotenv import load_dotenv

load_dotenv()


def _split_csv(value: str) -> list:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings:
    APP_NAME: str = os.getenv("APP_NAME", "Room Inventory API")
    APP_VERSION: str = os.getenv("APP_VERSION", "1.0.0")

    FIREBASE_PROJECT_ID: str = os.getenv("FIREBASE_PROJECT_ID", "maryknoll-inventory")
    FIREBASE_SERVICE_ACCOUNT_PATH: str = os.getenv(
        "FIREBASE_SERVICE_ACCOUNT_PATH",
        "firebase-service-account.json",
    )

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Comma separated; "*" allows any origin
    CORS_ORIGINS: list = _split_csv(os.getenv("CORS_ORIGINS", "*"))

    # Activity log viewer
    ACTIVITY_LOG_PAGE_SIZE: int = int(os.getenv("ACTIVITY_LOG_PAGE_SIZE", "50"))
    ACTIVITY_LOG_MAX_PAGE_SIZE: int = int(os.getenv("ACTIVITY_LOG_MAX_PAGE_SIZE", "200"))
    SEARCH_DEBOUNCE_MS: int = int(os.getenv("SEARCH_DEBOUNCE_MS", "300"))

    # Attempts for a versioned write of a room's maintenance/replacement array
    RECORD_WRITE_RETRIES: int = int(os.getenv("RECORD_WRITE_RETRIES", "3"))


settings = Settings()
