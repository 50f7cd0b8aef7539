"""cachebridge logging: logging port and structlog adapter."""

from cachebridge.logging.port import LoggingPort
from cachebridge.logging.structlog_adapter import StructlogAdapter

__all__ = ["LoggingPort", "StructlogAdapter"]
