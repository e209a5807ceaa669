"""Core CloudAPI client модули."""

from .config import (
    TimeoutConfig,
    RetryConfig,
    ConnectionPoolConfig,
    CloudApiConfig,
    DEFAULT_CLOUDAPI_URL,
)
from .retry_engine import RetryEngine, NON_RETRIABLE_CAUSES
from .exceptions import (
    CloudApiError,
    ErrorKind,
    ErrorContext,
    FailureCause,
    TransportError,
    ResponseError,
    DecodeError,
    ConsistencyError,
    InstanceGoneMissingError,
    ConfigurationError,
    classify_requests_exception,
)
from .auth import HttpSignatureAuth, load_private_key
from .connection import ConnectionContext, ConnectionFactory
from .http_client import CloudApiHttpClient
from .response_handler import ResponseHandler, ResponseEnvelope, NO_VALUE, HEADERS
from .pagination import (
    PaginatedLister,
    PaginationMetadata,
    MaterializedPage,
    LazyPage,
    UNAVAILABLE,
)
from .poller import StateChangePoller, PollOutcome, PollState

__all__ = [
    # Config
    "TimeoutConfig",
    "RetryConfig",
    "ConnectionPoolConfig",
    "CloudApiConfig",
    "DEFAULT_CLOUDAPI_URL",
    # Retry
    "RetryEngine",
    "NON_RETRIABLE_CAUSES",
    # Exceptions
    "CloudApiError",
    "ErrorKind",
    "ErrorContext",
    "FailureCause",
    "TransportError",
    "ResponseError",
    "DecodeError",
    "ConsistencyError",
    "InstanceGoneMissingError",
    "ConfigurationError",
    "classify_requests_exception",
    # Connection
    "HttpSignatureAuth",
    "load_private_key",
    "ConnectionContext",
    "ConnectionFactory",
    "CloudApiHttpClient",
    # Decoding
    "ResponseHandler",
    "ResponseEnvelope",
    "NO_VALUE",
    "HEADERS",
    # Pagination
    "PaginatedLister",
    "PaginationMetadata",
    "MaterializedPage",
    "LazyPage",
    "UNAVAILABLE",
    # Polling
    "StateChangePoller",
    "PollOutcome",
    "PollState",
]
