"""
# Logging Manager

Central factory for application loggers. Every module obtains its logger through
`get_logger()`, optionally with a **prefix** that tags each message with the subsystem
it came from (e.g. `[DATABASE]`, `[DB_PERFORMANCE]`, `[SEARCH]`).

## Usage

```python
from starter_pack_explorer.managers.logging_manager import get_logger

logger = get_logger()
db_logger = get_logger(prefix="[DATABASE]")

db_logger.info("Connected to %s", "starterpacks")
# 2024-01-01 12:00:00 | INFO | starter_pack_explorer | [DATABASE] Connected to starterpacks
```

Root configuration (level and format) is applied once, on the first call, using
`settings.LOG_LEVEL`.
"""

import logging
import sys
from typing import Any, MutableMapping, Optional, Tuple

from starter_pack_explorer.config import settings

DEFAULT_LOGGER_NAME = "starter_pack_explorer"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_configured = False


class PrefixedLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that prepends a fixed prefix to every message."""

    def __init__(self, logger: logging.Logger, prefix: str = ""):
        super().__init__(logger, {})
        self.prefix = prefix

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        if self.prefix:
            return f"{self.prefix} {msg}", kwargs
        return msg, kwargs


def _configure_root_logging() -> None:
    global _configured
    if _configured:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))

    app_logger = logging.getLogger(DEFAULT_LOGGER_NAME)
    app_logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    if not app_logger.handlers:
        app_logger.addHandler(handler)
    app_logger.propagate = False
    _configured = True


def get_logger(name: Optional[str] = None, prefix: str = "") -> PrefixedLoggerAdapter:
    """
    Return a logger for the application, optionally tagged with a prefix.

    Args:
        name: Child logger name under `starter_pack_explorer`. Defaults to the package logger.
        prefix: Text prepended to every message (e.g. `"[DATABASE]"`).

    Returns:
        PrefixedLoggerAdapter: A stdlib logger adapter.
    """
    _configure_root_logging()
    logger_name = f"{DEFAULT_LOGGER_NAME}.{name}" if name else DEFAULT_LOGGER_NAME
    return PrefixedLoggerAdapter(logging.getLogger(logger_name), prefix)
