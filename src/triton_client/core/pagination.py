"""
Two-phase listing of CloudAPI collections.

1. HEAD count request with the listing filters, read `x-resource-count`.
2. Count is zero: return an empty page, no GET is sent.
3. Otherwise GET the listing. The listing response headers are
   authoritative for `x-resource-count` and `x-query-limit`.
4. Count below the query limit: everything fit in one response,
   return a materialized page.
5. Otherwise return a lazy page over the fetched items only. Further
   pages are NOT requested.
"""

import logging
from dataclasses import dataclass
from typing import (
    Any, Generic, Iterable, Iterator, List, Mapping, Optional, Sequence, Type, TypeVar, Union, overload
)

from .connection import ConnectionContext, Params
from .response_handler import HEADERS, ResponseHandler

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Количество ресурсов неизвестно (заголовок отсутствует или нечитаем)
UNAVAILABLE = -1
DEFAULT_QUERY_LIMIT = 1000

RESOURCE_COUNT_HEADER = "x-resource-count"
QUERY_LIMIT_HEADER = "x-query-limit"


def _parse_header_int(headers: Mapping[str, str], name: str, default: int) -> int:
    value = headers.get(name)
    if value is None:
        return default
    try:
        parsed = int(str(value).strip())
    except ValueError:
        logger.debug("Unparsable %s header value: %r", name, value)
        return default
    if parsed < 0:
        return default
    return parsed


@dataclass(frozen=True)
class PaginationMetadata:
    """
    Pagination headers of a listing response.

    Attributes:
        resource_count: Total matching items, UNAVAILABLE when unknown
        query_limit: Max items returned by one request
    """
    resource_count: int = UNAVAILABLE
    query_limit: int = DEFAULT_QUERY_LIMIT

    @classmethod
    def from_headers(cls, headers: Optional[Mapping[str, str]]) -> "PaginationMetadata":
        """Read metadata from (lower-cased) response headers. None gives defaults."""
        if headers is None:
            return cls()

        lowered = {str(name).lower(): value for name, value in headers.items()}
        return cls(
            resource_count=_parse_header_int(lowered, RESOURCE_COUNT_HEADER, UNAVAILABLE),
            query_limit=_parse_header_int(lowered, QUERY_LIMIT_HEADER, DEFAULT_QUERY_LIMIT),
        )

    @property
    def count_known(self) -> bool:
        return self.resource_count != UNAVAILABLE

    @property
    def is_empty(self) -> bool:
        """True only when the server reported exactly zero items."""
        return self.resource_count == 0

    @property
    def fits_single_page(self) -> bool:
        return self.resource_count < self.query_limit


class MaterializedPage(Sequence[T]):
    """
    Eager, re-iterable result. Iterating never touches the network.
    """

    def __init__(self, items: Iterable[T], metadata: Optional[PaginationMetadata] = None):
        self._items: List[T] = list(items)
        self.metadata = metadata or PaginationMetadata(resource_count=len(self._items))

    @overload
    def __getitem__(self, index: int) -> T: ...

    @overload
    def __getitem__(self, index: slice) -> List[T]: ...

    def __getitem__(self, index):
        return self._items[index]

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(self._items)

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, MaterializedPage):
            return self._items == other._items
        if isinstance(other, list):
            return self._items == other
        return NotImplemented

    def __repr__(self) -> str:
        return f"MaterializedPage({len(self._items)} items, {self.metadata})"


class LazyPage(Iterator[T]):
    """
    Single-pass iterator over the first page of a larger collection.

    Only the items of the already fetched response are yielded.
    """

    def __init__(self, items: Iterable[T], metadata: PaginationMetadata):
        self._iterator = iter(items)
        self.metadata = metadata

    def __iter__(self) -> "LazyPage[T]":
        return self

    def __next__(self) -> T:
        return next(self._iterator)

    def __repr__(self) -> str:
        return f"LazyPage({self.metadata})"


Page = Union[MaterializedPage[T], LazyPage[T]]


class PaginatedLister(Generic[T]):
    """
    Lists one collection using the count-then-fetch protocol.

    Args:
        client: CloudApiHttpClient used for both requests
        operation: Operation name for diagnostics ("list instances")
        item_type: Model type of the collection items

    Examples:
        >>> lister = PaginatedLister(client, "list instances", Instance)
        >>> page = lister.list(context, "/alice/machines", params=[("state", "running")])
    """

    def __init__(self, client, operation: str, item_type: Type[T]):
        self._client = client
        self.operation = operation
        self.count_handler = ResponseHandler(
            f"{operation} headers", HEADERS, 200, allow_empty=True
        )
        self.list_handler = ResponseHandler(operation, List[item_type], 200)

    def list(self, context: ConnectionContext, path: str, params: Params = None) -> Page:
        if params is not None and not isinstance(params, dict):
            params = list(params)

        count_headers = self._client.execute(context, "HEAD", path, self.count_handler, params=params)
        counted = PaginationMetadata.from_headers(count_headers)

        if counted.is_empty:
            logger.debug(
                "Count request for [%s] reported no resources, skipping listing",
                self.operation,
                extra=context.log_extra(path=path)
            )
            return MaterializedPage([], counted)

        envelope = self._client.execute_envelope(context, "GET", path, self.list_handler, params=params)
        items: List[T] = envelope.value or []
        metadata = PaginationMetadata.from_headers(envelope.headers)

        if metadata.fits_single_page:
            logger.info(
                "Total resources for [%s]: %d",
                self.operation, len(items),
                extra=context.log_extra(path=path)
            )
            return MaterializedPage(items, metadata)

        logger.warning(
            "Listing [%s] reports %d resources with query limit %d; only the first %d were fetched",
            self.operation, metadata.resource_count, metadata.query_limit, len(items),
            extra=context.log_extra(path=path)
        )
        return LazyPage(items, metadata)
