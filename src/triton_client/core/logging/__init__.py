"""
Logging system for the CloudAPI client.

Example:
    >>> from triton_client.core.logging import LoggingConfig, configure_logging
    >>>
    >>> config = LoggingConfig.create(level="DEBUG", format="json")
    >>> logger = configure_logging(config)
    >>> logger.info("Client ready", datacenter="us-east-1")
"""

from .config import LoggingConfig, LogLevel, LogFormat
from .logger import CloudApiLogger, configure_logging, PACKAGE_LOGGER_NAME
from .formatters import JSONFormatter, TextFormatter, get_formatter
from .filters import CorrelationIdFilter, ExtraFieldsFilter, NO_CORRELATION_ID
from .handlers import create_console_handler, create_file_handler

__all__ = [
    # Config
    "LoggingConfig",
    "LogLevel",
    "LogFormat",
    # Logger
    "CloudApiLogger",
    "configure_logging",
    "PACKAGE_LOGGER_NAME",
    # Formatters
    "JSONFormatter",
    "TextFormatter",
    "get_formatter",
    # Filters
    "CorrelationIdFilter",
    "ExtraFieldsFilter",
    "NO_CORRELATION_ID",
    # Handlers
    "create_console_handler",
    "create_file_handler",
]
