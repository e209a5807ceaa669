"""
Structured logger for the CloudAPI client.

Wraps a standard `logging.Logger`: keyword arguments become extra
fields on the record, with sensitive values masked.
"""

import logging
from typing import Optional, Any, List

from .config import LoggingConfig
from .formatters import get_formatter
from .filters import CorrelationIdFilter, ExtraFieldsFilter
from .handlers import create_console_handler, create_file_handler
from ...utils.sanitizer import mask_sensitive_data

PACKAGE_LOGGER_NAME = "triton_client"


class CloudApiLogger:
    """
    Logger with structured keyword fields.

    Without a config the wrapped logger is left untouched, so records
    go wherever the application configured `triton_client` to go.
    With a config, console and/or rotating file handlers are installed.

    Example:
        >>> config = LoggingConfig.create(level="DEBUG", format="json")
        >>> logger = CloudApiLogger(config)
        >>> logger.info("Created instance", instance_id="c872d3bf-...")
    """

    def __init__(self, config: Optional[LoggingConfig] = None, name: str = PACKAGE_LOGGER_NAME):
        self.config = config
        self.name = name
        self._closed = False
        self._handlers: List[logging.Handler] = []

        self._logger = logging.getLogger(name)

        if config is not None:
            self._configure(config)

    def _configure(self, config: LoggingConfig) -> None:
        level = config.level_number
        self._logger.setLevel(level)
        self._logger.propagate = False

        # Удалить обработчики, поставленные предыдущей конфигурацией
        for handler in self._logger.handlers[:]:
            if getattr(handler, '_triton_client_handler', False):
                self._logger.removeHandler(handler)
                handler.close()

        filters: List[logging.Filter] = []
        if config.enable_correlation_id:
            filters.append(CorrelationIdFilter())
        if config.extra_fields:
            filters.append(ExtraFieldsFilter(config.extra_fields))

        formatter = get_formatter(config.format.value)

        if config.enable_console:
            self._handlers.append(create_console_handler(level, formatter, filters))

        if config.enable_file and config.file_path:
            self._handlers.append(create_file_handler(
                file_path=config.file_path,
                level=level,
                formatter=formatter,
                max_bytes=config.max_bytes,
                backup_count=config.backup_count,
                filters=filters
            ))

        for handler in self._handlers:
            handler._triton_client_handler = True
            self._logger.addHandler(handler)

    @property
    def logger(self) -> logging.Logger:
        """Underlying standard logger."""
        return self._logger

    def _log(self, level: int, message: str, exc_info: bool = False, **kwargs: Any) -> None:
        if not self._logger.isEnabledFor(level):
            return
        self._logger.log(level, message, exc_info=exc_info, extra=mask_sensitive_data(kwargs))

    def debug(self, message: str, **kwargs: Any) -> None:
        self._log(logging.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        """
        Log info message.

        Example:
            >>> logger.info("Deleted instance", instance_id=instance_id)
        """
        self._log(logging.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._log(logging.WARNING, message, **kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self._log(logging.ERROR, message, **kwargs)

    def exception(self, message: str, **kwargs: Any) -> None:
        """Log error with traceback. Call from an exception handler."""
        self._log(logging.ERROR, message, exc_info=True, **kwargs)

    def close(self) -> None:
        """
        Flush and remove the handlers this logger installed.

        Idempotent.
        """
        if self._closed:
            return

        for handler in self._handlers:
            handler.flush()
            handler.close()
            self._logger.removeHandler(handler)

        self._handlers.clear()
        self._closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


def configure_logging(config: LoggingConfig) -> CloudApiLogger:
    """
    Configure the `triton_client` package logger.

    Example:
        >>> configure_logging(LoggingConfig.create(level="DEBUG"))
    """
    return CloudApiLogger(config)
