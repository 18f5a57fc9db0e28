import json
import logging
import os
from datetime import datetime, timezone
from logging.config import dictConfig
from typing import Any, Dict, Optional

DEFAULT_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging from PATHWAY_LOG_LEVEL / PATHWAY_LOG_FORMAT.

    ``PATHWAY_LOG_FORMAT=json`` switches to one JSON object per line, which is
    what the HTTP shell uses when its output is collected by a log shipper.
    """
    resolved_level = (level or os.getenv("PATHWAY_LOG_LEVEL", "INFO")).upper()
    use_json = os.getenv("PATHWAY_LOG_FORMAT", "text").lower() == "json"

    formatter: Dict[str, Any] = (
        {"()": JSONFormatter} if use_json else {"format": DEFAULT_LOG_FORMAT}
    )
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"default": formatter},
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                },
            },
            "root": {
                "handlers": ["default"],
                "level": resolved_level,
            },
        }
    )

    if os.getenv("PATHWAY_DEBUG_SQL", "0") == "1":
        logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO)
