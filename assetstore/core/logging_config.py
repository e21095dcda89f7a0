"""Logging setup."""

import logging.config

from assetstore.core.config import Settings


def configure_logging(settings: Settings) -> None:
    """Configure root and package loggers from settings."""
    level = "DEBUG" if settings.debug else "INFO"
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "standard": {
                    "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "standard",
                },
            },
            "root": {
                "level": level,
                "handlers": ["console"],
            },
            "loggers": {
                "assetstore": {
                    "level": level,
                    "propagate": True,
                },
                "botocore": {
                    "level": "WARNING",
                    "propagate": True,
                },
                "aiobotocore": {
                    "level": "WARNING",
                    "propagate": True,
                },
            },
        }
    )
