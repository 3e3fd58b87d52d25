"""Logging for listweave.

Wraps the standard library logger in a ``ContextualLogger`` that carries a set
of dimensions (batch id, collection, ...) and renders them with each record.
"""

import logging
import sys
from typing import Any, Dict, MutableMapping, Optional, Tuple

from listweave.core.config import settings

DEFAULT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s%(dimensions)s"


class _DimensionsFilter(logging.Filter):
    """Ensure every record has a ``dimensions`` attribute for the formatter."""

    def filter(self, record: logging.LogRecord) -> bool:
        """Add an empty dimensions string when the record has none."""
        if not hasattr(record, "dimensions"):
            record.dimensions = ""
        return True


class ContextualLogger(logging.LoggerAdapter):
    """Logger adapter that attaches dimensions to every record."""

    def __init__(self, logger: logging.Logger, dimensions: Optional[Dict[str, Any]] = None):
        """Initialize the adapter.

        Args:
            logger: Underlying standard library logger
            dimensions: Key/value pairs rendered with every message
        """
        super().__init__(logger, {})
        self.dimensions: Dict[str, Any] = dict(dimensions or {})

    def with_context(self, **dimensions: Any) -> "ContextualLogger":
        """Return a new logger with extra dimensions merged in."""
        return ContextualLogger(self.logger, {**self.dimensions, **dimensions})

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> Tuple[Any, MutableMapping[str, Any]]:
        """Merge dimensions into the record extras and render them."""
        extra = dict(kwargs.get("extra") or {})
        merged = {**self.dimensions, **extra.pop("dimensions", {})}
        extra.update(merged)
        extra["dimensions"] = (
            " " + " ".join(f"{k}={v}" for k, v in merged.items()) if merged else ""
        )
        kwargs["extra"] = extra
        return msg, kwargs


class LoggerConfigurator:
    """Builds configured contextual loggers."""

    _configured = False

    @classmethod
    def _configure_root(cls) -> None:
        if cls._configured:
            return
        root = logging.getLogger("listweave")
        root.setLevel(settings.LOG_LEVEL)
        if not root.handlers:
            handler = logging.StreamHandler(sys.stderr)
            handler.setFormatter(logging.Formatter(settings.LOG_FORMAT or DEFAULT_FORMAT))
            handler.addFilter(_DimensionsFilter())
            root.addHandler(handler)
        cls._configured = True

    @classmethod
    def configure_logger(
        cls, name: str, dimensions: Optional[Dict[str, Any]] = None
    ) -> ContextualLogger:
        """Create a contextual logger.

        Args:
            name: Logger name (should live under the ``listweave`` namespace)
            dimensions: Dimensions attached to every record

        Returns:
            ContextualLogger bound to ``name``
        """
        cls._configure_root()
        return ContextualLogger(logging.getLogger(name), dimensions)


logger = LoggerConfigurator.configure_logger("listweave")
