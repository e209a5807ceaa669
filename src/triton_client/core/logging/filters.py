"""
Log filters that fill in correlation ids and static fields.

The correlation id is passed explicitly by the connection context
(`extra={"correlation_id": ...}`); these filters only make sure every
record carries the attribute so formatters can rely on it.
"""

import logging
from typing import Dict, Any

# Значение correlation_id для записей вне контекста соединения
NO_CORRELATION_ID = "-"


class CorrelationIdFilter(logging.Filter):
    """
    Filter that guarantees a `correlation_id` attribute on every record.

    Example:
        >>> handler.addFilter(CorrelationIdFilter())
        >>> logger.info("Listing", extra={"correlation_id": context.correlation_id})
        >>> logger.info("Outside of any context")  # correlation_id="-"
    """

    def __init__(self, placeholder: str = NO_CORRELATION_ID):
        super().__init__()
        self.placeholder = placeholder

    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, 'correlation_id', None):
            record.correlation_id = self.placeholder
        return True


class ExtraFieldsFilter(logging.Filter):
    """
    Filter that adds static fields to all log records.

    Fields already present on the record are not overwritten.

    Example:
        >>> handler.addFilter(ExtraFieldsFilter({"datacenter": "us-east-1"}))
    """

    def __init__(self, extra_fields: Dict[str, Any]):
        super().__init__()
        self.extra_fields = dict(extra_fields)

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in self.extra_fields.items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True
