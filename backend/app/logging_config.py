"""
logging_config.py — stdlib logging setup, applied once by the app factory.

Every module logs through logging.getLogger(__name__), so all application
records live under the "backend.app" logger. Level comes from LOG_LEVEL,
format from LOG_FORMAT ("text" or "json").
"""

from __future__ import annotations

import json
import logging
import logging.config
from datetime import datetime, timezone

from flask import Flask


class JSONFormatter(logging.Formatter):
    """One JSON object per line, for log shippers."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "line": record.lineno,
        }
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data)


def configure_logging(app: Flask) -> None:
    level = app.config.get("LOG_LEVEL", "INFO")
    formatter = "json" if app.config.get("LOG_FORMAT") == "json" else "default"

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            },
            "json": {
                "()": JSONFormatter,
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": formatter,
                "stream": "ext://sys.stderr",
            },
        },
        "loggers": {
            "backend.app": {
                "level": level,
                "handlers": ["console"],
                "propagate": False,
            },
            "sqlalchemy.engine": {
                "level": "WARNING",
                "handlers": ["console"],
                "propagate": False,
            },
        },
    })

    # app.logger ("backend.app" for this package) is used by the 500 handler.
    app.logger.setLevel(level)
