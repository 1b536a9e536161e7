"""
Structured logging helpers for the ingestion pipeline.

Usage:
    from utils.logging import get_logger
    log = get_logger(__name__)
    log.info("message", extra={"ctx": {"rec_no": 42, "policy_number": "..."}})
"""

import json
import logging
import sys
from typing import Any, Dict, Optional


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        payload: Dict[str, Any] = {
            "level": record.levelname,
            "name": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        # Accept `extra={"ctx": {...}}`
        ctx = getattr(record, "ctx", None)
        if isinstance(ctx, dict):
            payload["ctx"] = ctx
        return json.dumps(payload, ensure_ascii=False, default=str)


def _configure_root(level: int = logging.INFO) -> None:
    root = logging.getLogger()
    if getattr(root, "_edi_configured", False):
        return
    root.setLevel(level)
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_JsonFormatter())
    root.addHandler(handler)
    setattr(root, "_edi_configured", True)


def set_level(level_name: Optional[str]) -> None:
    """Apply a level name such as "DEBUG" from settings to the root logger."""
    _configure_root()
    level = logging.getLevelName((level_name or "INFO").upper())
    if isinstance(level, int):
        logging.getLogger().setLevel(level)


def get_logger(name: str) -> logging.Logger:
    """
    Get a module logger with JSON formatting attached to the root once.
    """
    _configure_root()
    return logging.getLogger(name)
