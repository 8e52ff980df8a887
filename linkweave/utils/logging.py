"""
Logging setup for linkweave.

Dispatch, adapters and the CLI all log through the standard library. Lifecycle
messages carry a bracketed tag (`[DISPATCH START]`, `[TRANSACTION ABORT]`) and
their context in `extra=`; the JSON formatter lifts that context into top-level
keys so log pipelines can filter on `type`, `method` or `error_type`.

Usage:
    from linkweave.utils.logging import configure_logging, get_logger

    configure_logging(level="DEBUG", json_logs=True)
    log = get_logger(__name__)
    log.info("[DISPATCH START] create post", extra={"method": "create", "type": "post"})
"""

from __future__ import annotations

import json
import logging
import logging.config
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

# Attributes every LogRecord has; anything else arrived through `extra=`.
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None)).keys()
) | {"message", "asctime"}

# Third-party loggers that are noisy at DEBUG.
QUIET_LOGGERS: Mapping[str, str] = {"psycopg.pool": "WARNING"}


def _json_formatter(record: logging.LogRecord) -> str:
    """Render a log record as one JSON line."""
    payload: Dict[str, Any] = {
        "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
        "level": record.levelname,
        "logger": record.name,
        "message": record.getMessage(),
    }
    for key, value in vars(record).items():
        if key in _RESERVED_ATTRS or key == "extra" or key.startswith("_"):
            continue
        payload[key] = value
    # Some callers pass a single `extra` dict through LoggerAdapter-style wrappers.
    nested = getattr(record, "extra", None)
    if isinstance(nested, dict):
        payload.update(nested)
    if record.exc_info:
        if record.exc_info[0] is not None:
            payload.setdefault("error_type", record.exc_info[0].__name__)
        payload["exc_info"] = logging.Formatter().formatException(record.exc_info)
    return json.dumps(payload, default=str)


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        return _json_formatter(record)


def configure_logging(
    level: str = "INFO",
    json_logs: bool = False,
    force: bool = False,
    logger_levels: Optional[Mapping[str, str]] = None,
) -> None:
    """
    Install a single stderr handler on the root logger.

    Parameters
    ----------
    level : str
        Root level name, e.g. "DEBUG".
    json_logs : bool
        Emit one JSON object per line instead of the console format.
    force : bool
        Replace handlers that are already installed. Without it, an existing
        root configuration (a test runner's, for instance) is left alone.
    logger_levels : Mapping[str, str] | None
        Per-logger level overrides, merged over `QUIET_LOGGERS`.
    """
    if not force and logging.getLogger().handlers:
        return

    loggers = {
        name: {"level": logger_level}
        for name, logger_level in {**QUIET_LOGGERS, **(logger_levels or {})}.items()
    }
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "console": {
                    "format": "%(asctime)s %(levelname)-7s %(name)s: %(message)s",
                    "datefmt": "%H:%M:%S",
                },
                "json": {"()": JsonFormatter},
            },
            "handlers": {
                "stderr": {
                    "class": "logging.StreamHandler",
                    "formatter": "json" if json_logs else "console",
                    "stream": "ext://sys.stderr",
                }
            },
            "loggers": loggers,
            "root": {"handlers": ["stderr"], "level": level},
        }
    )


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name)


__all__ = ["QUIET_LOGGERS", "JsonFormatter", "configure_logging", "get_logger"]
