"""Triton CloudAPI client - typed, retrying client for Joyent Triton."""

import logging
from importlib.metadata import version, PackageNotFoundError

from .api import CloudApi, Instances, Images, Packages
from .core.config import (
    CloudApiConfig,
    TimeoutConfig,
    RetryConfig,
    ConnectionPoolConfig,
)
from .core.exceptions import (
    CloudApiError,
    ErrorKind,
    TransportError,
    ResponseError,
    DecodeError,
    ConsistencyError,
    InstanceGoneMissingError,
    ConfigurationError,
)
from .core.env_config import load_from_env
from .core.logging import LoggingConfig, configure_logging
from .core.pagination import MaterializedPage, LazyPage, UNAVAILABLE
from .filters import InstanceFilter, ImageFilter, PackageFilter
from .models import Instance, Image, Package, Locality

# NullHandler: без конфигурации приложения библиотека молчит
logging.getLogger('triton_client').addHandler(logging.NullHandler())

try:
    __version__ = version("triton-client-core")
except PackageNotFoundError:
    # Package is not installed (development mode)
    __version__ = "0.0.0-dev"

__all__ = [
    # Client
    "CloudApi",
    "Instances",
    "Images",
    "Packages",

    # Config
    "CloudApiConfig",
    "TimeoutConfig",
    "RetryConfig",
    "ConnectionPoolConfig",
    "LoggingConfig",
    "load_from_env",
    "configure_logging",

    # Exceptions
    "CloudApiError",
    "ErrorKind",
    "TransportError",
    "ResponseError",
    "DecodeError",
    "ConsistencyError",
    "InstanceGoneMissingError",
    "ConfigurationError",

    # Models
    "Instance",
    "Image",
    "Package",
    "Locality",
    "InstanceFilter",
    "ImageFilter",
    "PackageFilter",

    # Pagination
    "MaterializedPage",
    "LazyPage",
    "UNAVAILABLE",
]
