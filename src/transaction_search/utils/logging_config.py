"""Logging configuration for transaction search system."""

import logging
import sys
from typing import Any, Dict, MutableMapping, Optional, Tuple, Union

from ..core.exceptions import ConfigurationError

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
SHORT_FORMAT = "%(name)s - %(levelname)s - %(message)s"

# Embedding libraries log model downloads and device selection at INFO
NOISY_LOGGERS = ("sklearn", "numpy", "sentence_transformers", "transformers", "torch", "urllib3")


def resolve_level(level: Union[str, int]) -> int:
    """
    Turn a level name such as ``"debug"`` or a numeric level into an int.

    Raises:
        ConfigurationError: If the name is not a logging level
    """
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).strip().upper())
    if not isinstance(resolved, int):
        raise ConfigurationError(f"Unknown log level: {level}")
    return resolved


def setup_logging(
    level: Union[str, int] = "INFO",
    format_string: Optional[str] = None,
    include_timestamp: bool = True
) -> None:
    """
    Set up logging for the transaction search system.

    Model libraries are held at WARNING unless ``level`` is stricter.

    Args:
        level: Logging level name or number
        format_string: Custom format string
        include_timestamp: Whether to include timestamps
    """
    log_level = resolve_level(level)
    if format_string is None:
        format_string = DEFAULT_FORMAT if include_timestamp else SHORT_FORMAT

    logging.basicConfig(level=log_level, format=format_string, stream=sys.stdout, force=True)
    logging.getLogger("transaction_search").setLevel(log_level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    logging.getLogger(__name__).debug(f"Logging configured with level: {logging.getLevelName(log_level)}")


class StructuredLogger(logging.LoggerAdapter):
    """
    Logger adapter that appends ``key=value`` context to messages.

    The coordinator binds the pass sequence number so interleaved passes
    can be told apart in the log.
    """

    def __init__(self, name: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(logging.getLogger(name), dict(context or {}))

    @property
    def context(self) -> Dict[str, Any]:
        return dict(self.extra)

    def with_context(self, **kwargs: Any) -> "StructuredLogger":
        """Return a new adapter with extra context; this one is unchanged."""
        return StructuredLogger(self.logger.name, {**self.extra, **kwargs})

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        if not self.extra:
            return msg, kwargs
        context_str = " ".join(f"{k}={v}" for k, v in self.extra.items())
        return f"{msg} [{context_str}]", kwargs
