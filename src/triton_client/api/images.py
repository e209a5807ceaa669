"""
Images: /{account}/images.
"""

from typing import List, Optional, Union
from uuid import UUID

from ..core.connection import ConnectionContext
from ..core.pagination import MaterializedPage, PaginationMetadata
from ..core.response_handler import ResponseHandler
from ..filters import ImageFilter
from ..models import Image
from .base import BaseApiAccessor, to_uuid


class Images(BaseApiAccessor):
    """Read-only access to images."""

    collection = "images"

    def __init__(self, cloud_api):
        super().__init__(cloud_api)

        self._list_handler = ResponseHandler("list images", List[Image], 200)
        self._find_handler = ResponseHandler(
            "find image", Image, 200, allow_empty=True, absent_codes={404}
        )

    def list(
        self,
        filter: Optional[ImageFilter] = None,
        context: Optional[ConnectionContext] = None
    ) -> MaterializedPage[Image]:
        """List images with a single GET (no HEAD count request)."""
        params = (filter or ImageFilter()).to_params()
        with self._context(context) as ctx:
            envelope = self._client.execute_envelope(
                ctx, "GET", self._path(), self._list_handler, params=params
            )
        return MaterializedPage(envelope.value or [], PaginationMetadata.from_headers(envelope.headers))

    def find_by_id(
        self,
        image_id: Union[UUID, str, Image],
        context: Optional[ConnectionContext] = None
    ) -> Optional[Image]:
        """Image by id, or None if it does not exist."""
        image_id = to_uuid(image_id, "Image id")
        with self._context(context) as ctx:
            return self._client.execute(ctx, "GET", self._path(image_id), self._find_handler)
