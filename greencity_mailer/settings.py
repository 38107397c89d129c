"""Configuration for the GreenCity mail receiver."""
import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

# Base paths
BASE_DIR = Path(__file__).resolve().parent.parent
LOGS_DIR = Path(os.getenv("LOGS_DIR", BASE_DIR / "logs"))
LOGS_DIR.mkdir(parents=True, exist_ok=True)

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
BETTERSTACK_SOURCE_TOKEN = os.getenv("BETTERSTACK_SOURCE_TOKEN")
BETTERSTACK_INGEST_HOST = os.getenv("BETTERSTACK_INGEST_HOST")

# Database connection (eco news, translations, subscribers)
DATABASE_URL = os.getenv("DATABASE_URL")

# Email service
EMAIL_SERVICE_URL = os.getenv("EMAIL_SERVICE_URL")
EMAIL_SERVICE_TOKEN = os.getenv("EMAIL_SERVICE_TOKEN")
EMAIL_SERVICE_TIMEOUT = int(os.getenv("EMAIL_SERVICE_TIMEOUT", "30"))

# Spool queues
SPOOL_BASE_DIR = Path(os.getenv("SPOOL_BASE_DIR", BASE_DIR / "spool"))
SPOOL_RETRY_SECONDS = int(os.getenv("SPOOL_RETRY_SECONDS", "60"))

# Worker settings
POLL_INTERVAL = int(os.getenv("POLL_INTERVAL", "1"))  # seconds to sleep on an empty queue
BATCH_SIZE = int(os.getenv("BATCH_SIZE", "10"))
MAX_RETRIES = int(os.getenv("MAX_RETRIES", "3"))

# Platform constants
DEFAULT_LANGUAGE_CODE = os.getenv("DEFAULT_LANGUAGE_CODE", "ua")
PLACE_ADDRESS_MIN_LENGTH = int(os.getenv("PLACE_ADDRESS_MIN_LENGTH", "3"))
PLACE_ADDRESS_MAX_LENGTH = int(os.getenv("PLACE_ADDRESS_MAX_LENGTH", "120"))


def validate_config():
    """Validate required configuration."""
    errors = []

    if not DATABASE_URL:
        errors.append("DATABASE_URL is required")

    if not EMAIL_SERVICE_URL:
        errors.append("EMAIL_SERVICE_URL is required")
    elif not EMAIL_SERVICE_URL.startswith(("http://", "https://")):
        errors.append(f"EMAIL_SERVICE_URL must be an http(s) URL: {EMAIL_SERVICE_URL}")

    if MAX_RETRIES < 1:
        errors.append(f"MAX_RETRIES must be at least 1: {MAX_RETRIES}")

    if PLACE_ADDRESS_MIN_LENGTH > PLACE_ADDRESS_MAX_LENGTH:
        errors.append("PLACE_ADDRESS_MIN_LENGTH must not exceed PLACE_ADDRESS_MAX_LENGTH")

    try:
        SPOOL_BASE_DIR.mkdir(parents=True, exist_ok=True)
    except Exception as e:
        errors.append(f"Cannot create SPOOL_BASE_DIR: {e}")

    if errors:
        raise ValueError("Config errors:\n  " + "\n  ".join(errors))
