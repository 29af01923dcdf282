"""restfly logging: hexagonal logging port and structlog adapter."""

from restfly.logging.port import LoggingPort
from restfly.logging.structlog_adapter import StructlogAdapter

__all__ = ["LoggingPort", "StructlogAdapter"]
