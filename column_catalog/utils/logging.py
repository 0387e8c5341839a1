"""Log output for catalog reads: plain or JSON, with per-column context."""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from ..config.config import LoggingConfig

# Record attribute carrying the catalog object a message is about
CONTEXT_ATTR = "catalog_context"


def _context_of(record: logging.LogRecord) -> Dict[str, Any]:
    return getattr(record, CONTEXT_ATTR, None) or {}


class StructuredFormatter(logging.Formatter):
    """One JSON object per record; context keys are merged at the top level."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(_context_of(record))
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class StandardFormatter(logging.Formatter):
    """Human-readable lines ending in ``[table=... column=...]`` when context is set."""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        context = _context_of(record)
        if context:
            pairs = " ".join(f"{key}={value}" for key, value in context.items())
            text = f"{text} [{pairs}]"
        return text


def setup_logging(config: Optional[LoggingConfig] = None, level: Optional[str] = None) -> None:
    """Configure the root logger from the ``logging`` section of the config.

    Args:
        config: Logging options; defaults apply when omitted
        level: Overrides ``config.level`` (e.g. from the command line)
    """
    config = config or LoggingConfig()
    log_level = getattr(logging, (level or config.level).upper(), logging.INFO)
    formatter = StructuredFormatter() if config.structured else StandardFormatter()

    handlers = [logging.StreamHandler(sys.stderr)]
    if config.log_file:
        handlers.append(logging.FileHandler(config.log_file))
    for handler in handlers:
        handler.setFormatter(formatter)

    logging.basicConfig(level=log_level, handlers=handlers, force=True)
    logging.getLogger("duckdb").setLevel(logging.WARNING)


class _CatalogContextAdapter(logging.LoggerAdapter):
    def process(self, msg, kwargs):
        extra = kwargs.setdefault("extra", {})
        extra[CONTEXT_ATTR] = self.extra
        return msg, kwargs


def get_contextual_logger(name: str, context: Dict[str, Any]) -> logging.LoggerAdapter:
    """Logger whose records carry ``context``, e.g. ``{"table": "EMPLOYEE"}``."""
    return _CatalogContextAdapter(logging.getLogger(name), context)
