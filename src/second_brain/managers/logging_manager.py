"""
# Logging Manager

Centralised logger factory for the Second Brain API.

Every module obtains its logger through `get_logger()`, optionally passing a bracketed
component prefix (`[DATABASE]`, `[Item Service]`, ...). The prefix is prepended to each
message so that log lines from different layers can be grepped apart without a
structured log pipeline.

```python
from second_brain.managers.logging_manager import get_logger

logger = get_logger(prefix="[Share Service]")
logger.info("Issued share token for brain %s", brain_id)
# 2026-01-01 12:00:00,000 - SecondBrain - INFO - [Share Service] Issued share token for brain brn_...
```

Handlers are attached to the application root logger exactly once; the level comes
from `settings.LOG_LEVEL`.
"""

import logging
import sys
from typing import Any, MutableMapping, Optional, Tuple

from second_brain.config import settings

ROOT_LOGGER_NAME = "SecondBrain"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_configured = False


class PrefixedLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that prepends a fixed component prefix to every message."""

    def __init__(self, logger: logging.Logger, prefix: str = ""):
        super().__init__(logger, {})
        self.prefix = prefix

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        if self.prefix:
            return f"{self.prefix} {msg}", kwargs
        return msg, kwargs


def _configure_root_logger() -> None:
    global _configured
    if _configured:
        return

    root = logging.getLogger(ROOT_LOGGER_NAME)
    level = logging.getLevelName(settings.LOG_LEVEL.upper())
    root.setLevel(level if isinstance(level, int) else logging.INFO)

    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)

    root.propagate = True
    _configured = True


def get_logger(name: Optional[str] = None, prefix: str = "") -> PrefixedLoggerAdapter:
    """
    Return a prefixed logger under the application root logger.

    Args:
        name (Optional[str]): Child logger name. Defaults to the root application logger.
        prefix (str): Component tag prepended to every message, e.g. `"[DATABASE]"`.

    Returns:
        PrefixedLoggerAdapter: A standard-library logger adapter.
    """
    _configure_root_logger()
    logger_name = f"{ROOT_LOGGER_NAME}.{name}" if name else ROOT_LOGGER_NAME
    return PrefixedLoggerAdapter(logging.getLogger(logger_name), prefix)
