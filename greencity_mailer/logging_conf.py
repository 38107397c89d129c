"""Logging for the mail receiver: console, rotating file and optional BetterStack."""
import logging
from logging.config import dictConfig

from greencity_mailer import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(queue)s %(message_id)s] %(message)s"


class QueueContextFilter(logging.Filter):
    """Fill in `queue` and `message_id` for records logged outside a queue item."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "queue"):
            record.queue = "-"
        if not hasattr(record, "message_id"):
            record.message_id = "-"
        return True


def build_config(level: str, with_betterstack: bool = True) -> dict:
    """dictConfig mapping; every handler follows LOG_LEVEL."""
    handlers = {
        "console": {
            "class": "logging.StreamHandler",
            "stream": "ext://sys.stdout",
            "formatter": "queue_context",
            "filters": ["queue_context"],
            "level": level,
        },
        "file": {
            "class": "logging.handlers.RotatingFileHandler",
            "filename": str(settings.LOGS_DIR / "mailer.log"),
            "maxBytes": 10 * 1024 * 1024,
            "backupCount": 5,
            "encoding": "utf-8",
            "formatter": "queue_context",
            "filters": ["queue_context"],
            "level": level,
        },
    }

    if with_betterstack and settings.BETTERSTACK_SOURCE_TOKEN:
        handlers["betterstack"] = {
            "class": "logtail.LogtailHandler",
            "source_token": settings.BETTERSTACK_SOURCE_TOKEN,
            "formatter": "queue_context",
            "filters": ["queue_context"],
            "level": level,
        }
        if settings.BETTERSTACK_INGEST_HOST:
            handlers["betterstack"]["host"] = settings.BETTERSTACK_INGEST_HOST

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "queue_context": {"()": QueueContextFilter},
        },
        "formatters": {
            "queue_context": {"format": LOG_FORMAT},
        },
        "handlers": handlers,
        "loggers": {
            "urllib3": {"level": "WARNING"},
        },
        "root": {
            "level": level,
            "handlers": list(handlers),
        },
    }


def setup_logging():
    level = settings.LOG_LEVEL.upper()
    if not isinstance(logging.getLevelName(level), int):
        level = "INFO"

    try:
        dictConfig(build_config(level))
    except (ValueError, TypeError, AttributeError, ImportError) as e:
        # BetterStack is optional; keep local logging when it cannot start
        dictConfig(build_config(level, with_betterstack=False))
        logging.getLogger("greencity_mailer").warning(f"Failed to initialize BetterStack logging: {e}")
    else:
        if settings.BETTERSTACK_SOURCE_TOKEN:
            host_info = settings.BETTERSTACK_INGEST_HOST or "default (in.logs.betterstack.com)"
            logging.getLogger("greencity_mailer").info(f"BetterStack logging enabled (host: {host_info})")

    return logging.getLogger("greencity_mailer")


logger = setup_logging()
