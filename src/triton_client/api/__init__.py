"""Resource accessors for Triton CloudAPI."""

from .cloud_api import CloudApi
from .base import BaseApiAccessor, to_uuid
from .instances import Instances
from .images import Images
from .packages import Packages

__all__ = [
    "CloudApi",
    "BaseApiAccessor",
    "to_uuid",
    "Instances",
    "Images",
    "Packages",
]
