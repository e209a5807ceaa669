"""
Packages: /{account}/packages.
"""

from typing import List, Optional, Union
from uuid import UUID

from ..core.connection import ConnectionContext
from ..core.pagination import MaterializedPage, PaginationMetadata
from ..core.response_handler import ResponseHandler
from ..filters import PackageFilter
from ..models import Package
from .base import BaseApiAccessor, to_uuid


class Packages(BaseApiAccessor):
    """Read-only access to packages."""

    collection = "packages"

    def __init__(self, cloud_api):
        super().__init__(cloud_api)

        self._list_handler = ResponseHandler("list packages", List[Package], 200)
        self._find_handler = ResponseHandler(
            "find package", Package, 200, allow_empty=True, absent_codes={404}
        )

    def list(
        self,
        filter: Optional[PackageFilter] = None,
        context: Optional[ConnectionContext] = None
    ) -> MaterializedPage[Package]:
        """List packages with a single GET (no HEAD count request)."""
        params = (filter or PackageFilter()).to_params()
        with self._context(context) as ctx:
            envelope = self._client.execute_envelope(
                ctx, "GET", self._path(), self._list_handler, params=params
            )
        return MaterializedPage(envelope.value or [], PaginationMetadata.from_headers(envelope.headers))

    def find_by_id(
        self,
        package_id: Union[UUID, str, Package],
        context: Optional[ConnectionContext] = None
    ) -> Optional[Package]:
        """Package by id, or None if it does not exist."""
        package_id = to_uuid(package_id, "Package id")
        with self._context(context) as ctx:
            return self._client.execute(ctx, "GET", self._path(package_id), self._find_handler)

    def smallest_memory(
        self,
        filter: Optional[PackageFilter] = None,
        context: Optional[ConnectionContext] = None
    ) -> List[Package]:
        """
        Packages sharing the lowest memory size, in listing order.

        Handy for provisioning the cheapest possible instance.
        Returns an empty list when there are no packages.
        """
        smallest: Optional[int] = None
        subset: List[Package] = []

        for package in self.list(filter, context=context):
            memory = package.memory or 0
            if smallest is None or memory < smallest:
                smallest = memory
                subset = [package]
            elif memory == smallest and package not in subset:
                subset.append(package)

        return subset
