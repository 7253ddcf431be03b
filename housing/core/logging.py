"""
Logging configuration for the housing backend.
"""
import logging.config

from housing.core.config import settings

LOGGING_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {
            "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
        },
    },
    "loggers": {
        "": {  # Root logger
            "handlers": ["console"],
            "level": settings.LOG_LEVEL,
        },
        "housing": {
            "level": "DEBUG" if settings.ENV == "dev" else settings.LOG_LEVEL,
            "propagate": True,
        },
        "sqlalchemy.engine": {
            "level": "WARNING",
            "propagate": True,
        },
    },
}


def setup_logging() -> None:
    """Apply LOGGING_CONFIG. Called once when the FastAPI app is created."""
    logging.config.dictConfig(LOGGING_CONFIG)
