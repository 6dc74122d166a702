"""Structured logging helpers used by the command-line pipelines."""

from __future__ import annotations

import json
import logging
import socket
from datetime import datetime, timezone
from typing import Any, Dict

from creditfeatures.config import LoggingConfig

TEXT_FORMAT = "%(asctime)s %(levelname)s %(message)s"


class JsonFormatter(logging.Formatter):
    """Simple JSON formatter that injects standard metadata into each record."""

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "host": socket.gethostname(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        for attr in ("stage", "rows", "columns"):
            if hasattr(record, attr):
                payload[attr] = getattr(record, attr)

        payload.update(GLOBAL_LOG_TAGS)
        return json.dumps(payload, default=str)


GLOBAL_LOG_TAGS: Dict[str, Any] = {}


def configure_context(**kwargs: Any) -> None:
    """Set global tags applied to every JSON log record."""
    GLOBAL_LOG_TAGS.update(kwargs)


def setup_json_logging(level: int = logging.INFO) -> None:
    """Configure the root logger with a JSON formatter if not already attached."""
    root = logging.getLogger()
    existing = [
        handler
        for handler in root.handlers
        if isinstance(getattr(handler, "formatter", None), JsonFormatter)
    ]
    if existing:
        root.setLevel(level)
        return

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)


def configure_logging(cfg: LoggingConfig) -> None:
    """Apply the configured level, emitting JSON records when ``cfg.json`` is set."""
    level = logging.getLevelName(cfg.level.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown logging level '{cfg.level}'.")
    if cfg.json:
        setup_json_logging(level)
    else:
        logging.basicConfig(level=level, format=TEXT_FORMAT)
