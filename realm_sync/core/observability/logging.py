"""
Structured logging setup for Realm Sync.
JSON format in production, human-readable otherwise.
"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pythonjsonlogger.json import JsonFormatter

from realm_sync.app.config import Settings, get_settings


class ServiceJsonFormatter(JsonFormatter):
    """JSON formatter adding timestamp, severity and service metadata."""

    def __init__(self, *args: Any, settings: Optional[Settings] = None, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.settings = settings or get_settings()

    def add_fields(
        self,
        log_record: Dict[str, Any],
        record: logging.LogRecord,
        message_dict: Dict[str, Any]
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["severity"] = record.levelname
        log_record["service"] = self.settings.app_name
        log_record["version"] = self.settings.app_version
        log_record["environment"] = self.settings.environment


def setup_logging(settings: Optional[Settings] = None) -> None:
    """Configure root logging based on environment."""
    settings = settings or get_settings()

    root = logging.getLogger()
    root.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))

    # Clear existing handlers
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)

    if settings.is_production:
        handler.setFormatter(
            ServiceJsonFormatter("%(name)s %(message)s", settings=settings, json_ensure_ascii=False)
        )
    else:
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s %(levelname)-8s %(name)s - %(message)s",
                datefmt="%H:%M:%S",
            )
        )

    root.addHandler(handler)

    # Silence noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
