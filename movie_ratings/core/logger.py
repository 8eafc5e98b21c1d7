"""
Structured logging for the Movie Ratings Service.

Every entry carries the service name, environment and the current
correlation ID; callers add an ``event`` key in ``metadata`` so rating,
merge and repair activity can be filtered downstream. Console output is
human readable or JSON depending on ``config.log_format``; the optional log
file is always JSON.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from movie_ratings.core.config import Config, config as default_config
from movie_ratings.utils.correlation_id import get_correlation_id

# Attributes every LogRecord has; anything else on a record came from ``extra``
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}


def _iso_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class JSONFormatter(logging.Formatter):
    """One JSON object per line"""

    def __init__(self, service_name: str = default_config.service_name):
        super().__init__()
        self.service_name = service_name

    def format(self, record):
        payload: Dict[str, Any] = {
            "timestamp": _iso_now(),
            "level": record.levelname,
            "service": self.service_name,
            "message": record.getMessage(),
        }
        payload.update(
            (key, value) for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and key not in payload
        )
        return json.dumps(payload, default=str)


class ConsoleFormatter(logging.Formatter):
    """Coloured single-line output for local runs and the CLI"""

    LEVEL_COLOURS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record):
        colour = self.LEVEL_COLOURS.get(record.levelname, self.RESET)
        when = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S")
        line = f"{colour}[{when}] {record.levelname}{self.RESET} - {record.getMessage()}"

        metadata = getattr(record, "metadata", None)
        if metadata:
            line = f"{line} {json.dumps(metadata, default=str)}"
        return line


def build_handlers(settings: Config) -> List[logging.Handler]:
    """Handlers selected by the logging settings."""
    handlers: List[logging.Handler] = []

    if settings.log_to_console:
        console = logging.StreamHandler(sys.stdout)
        if settings.log_format == "json":
            console.setFormatter(JSONFormatter(settings.service_name))
        else:
            console.setFormatter(ConsoleFormatter())
        handlers.append(console)

    if settings.log_to_file:
        path = settings.log_file_path or f"logs/{settings.service_name}.log"
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        file_handler = logging.FileHandler(path)
        file_handler.setFormatter(JSONFormatter(settings.service_name))
        handlers.append(file_handler)

    return handlers


class StructuredLogger:
    """
    Thin wrapper over a stdlib logger that attaches service context and the
    correlation ID to every record.
    """

    def __init__(self, name: Optional[str] = None, settings: Optional[Config] = None):
        self.settings = settings or default_config
        self._logger = logging.getLogger(name or self.settings.service_name)
        self._logger.handlers = build_handlers(self.settings)
        self._logger.setLevel(getattr(logging, self.settings.log_level.upper(), logging.INFO))
        self._logger.propagate = False

    def _emit(
        self,
        level: int,
        message: str,
        correlation_id: Optional[str],
        metadata: Optional[Dict[str, Any]],
        extra: Dict[str, Any],
    ) -> None:
        if not self._logger.isEnabledFor(level):
            return

        context: Dict[str, Any] = {
            "service": self.settings.service_name,
            "environment": self.settings.environment,
            "correlationId": correlation_id or get_correlation_id(),
        }
        if metadata:
            context["metadata"] = metadata
        context.update(extra)
        self._logger.log(level, message, extra=context)

    def debug(self, message: str, correlation_id: Optional[str] = None,
              metadata: Optional[Dict[str, Any]] = None, **extra):
        self._emit(logging.DEBUG, message, correlation_id, metadata, extra)

    def info(self, message: str, correlation_id: Optional[str] = None,
             metadata: Optional[Dict[str, Any]] = None, **extra):
        self._emit(logging.INFO, message, correlation_id, metadata, extra)

    def warning(self, message: str, correlation_id: Optional[str] = None,
                metadata: Optional[Dict[str, Any]] = None, **extra):
        self._emit(logging.WARNING, message, correlation_id, metadata, extra)

    def error(
        self,
        message: str,
        correlation_id: Optional[str] = None,
        error: Optional[Union[str, Exception]] = None,
        metadata: Optional[Dict[str, Any]] = None,
        **extra
    ):
        """``error`` is folded into metadata as {type, message}."""
        metadata = dict(metadata or {})
        if isinstance(error, Exception):
            metadata["error"] = {"type": type(error).__name__, "message": str(error)}
        elif error:
            metadata["error"] = {"message": str(error)}
        self._emit(logging.ERROR, message, correlation_id, metadata, extra)

    def performance(
        self,
        operation: str,
        duration_ms: int,
        threshold_ms: Optional[int] = None,
        metadata: Optional[Dict[str, Any]] = None,
        **extra
    ):
        """Duration of an operation; WARNING when it exceeds threshold_ms."""
        metadata = {
            **(metadata or {}),
            "operation": operation,
            "durationMs": duration_ms,
            "thresholdMs": threshold_ms,
        }
        slow = threshold_ms is not None and duration_ms > threshold_ms
        self._emit(
            logging.WARNING if slow else logging.INFO,
            f"Operation completed: {operation}",
            None,
            metadata,
            extra,
        )


logger = StructuredLogger()
