"""
Base class for resource accessors (instances, images, packages).
"""

from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Iterator, Optional
from urllib.parse import quote
from uuid import UUID

from ..core.connection import ConnectionContext
from ..core.exceptions import ConfigurationError
from ..core.logging import CloudApiLogger

if TYPE_CHECKING:
    from .cloud_api import CloudApi


def to_uuid(value: Any, what: str = "Id") -> UUID:
    """
    Normalize an id given as UUID, string or model with an `id` attribute.

    Raises:
        ValueError: id is missing or not a valid UUID
    """
    if value is not None and not isinstance(value, (UUID, str)):
        entity = value
        value = getattr(entity, "id", None)
        if value is None:
            raise ValueError(f"{what} doesn't contain a valid id: {entity!r}")

    if value is None:
        raise ValueError(f"{what} must be present")
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError as e:
        raise ValueError(f"{what} is not a valid UUID: {value!r}") from e


class BaseApiAccessor:
    """
    Shared plumbing: account paths, context acquisition, http client.

    Args:
        cloud_api: Owning CloudApi instance
    """

    collection: str = ""

    def __init__(self, cloud_api: "CloudApi"):
        self._cloud_api = cloud_api
        self._client = cloud_api.http_client
        self._logger = CloudApiLogger(name=f"triton_client.api.{self.collection}")

    @property
    def config(self):
        return self._cloud_api.config

    def _path(self, *segments: Any) -> str:
        """Build /{account}/{collection}[/{segment}...]."""
        account = self.config.account
        if not account:
            raise ConfigurationError("Account must be configured")

        parts = [account, self.collection] + [str(segment) for segment in segments]
        return "/" + "/".join(quote(part, safe='') for part in parts)

    @contextmanager
    def _context(self, context: Optional[ConnectionContext]) -> Iterator[ConnectionContext]:
        """Use the given context, or acquire one for this call only."""
        if context is not None:
            yield context
            return

        with self._cloud_api.create_connection_context() as owned:
            yield owned
