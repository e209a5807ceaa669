"""
Instances: /{account}/machines.
"""

import threading
from typing import Any, Dict, Optional, Union
from uuid import UUID

from ..core.connection import ConnectionContext
from ..core.pagination import Page, PaginatedLister
from ..core.poller import StateChangePoller
from ..core.response_handler import NO_VALUE, ResponseHandler
from ..filters import InstanceFilter
from ..models import Instance
from .base import BaseApiAccessor, to_uuid

InstanceRef = Union[UUID, str, Instance]


class Instances(BaseApiAccessor):
    """
    Operations on compute instances.

    find_by_id returns None for a missing instance; delete raises
    ResponseError for the same situation.

    Examples:
        >>> api = CloudApi(config)
        >>> for instance in api.instances.list(InstanceFilter(state="running")):
        ...     print(instance.id, instance.name)
    """

    collection = "machines"

    def __init__(self, cloud_api):
        super().__init__(cloud_api)

        self._lister = PaginatedLister(self._client, "list instances", Instance)
        self._create_handler = ResponseHandler("create instance", Instance, 201)
        self._delete_handler = ResponseHandler("delete instance", NO_VALUE, 204)
        # 410: удалённый инстанс возвращается с телом (state=deleted)
        self._find_handler = ResponseHandler(
            "find instance", Instance, (200, 410), allow_empty=True, absent_codes={404}
        )
        self._tags_handler = ResponseHandler("tag instance", Dict[str, Any], 200)

    def list(
        self,
        filter: Optional[InstanceFilter] = None,
        context: Optional[ConnectionContext] = None
    ) -> Page:
        """
        List instances with the count-then-fetch protocol.

        Returns:
            MaterializedPage, or LazyPage over the first page when the
            collection is larger than the server query limit
        """
        params = (filter or InstanceFilter()).to_params()
        with self._context(context) as ctx:
            return self._lister.list(ctx, self._path(), params=params)

    def find_by_id(
        self,
        instance_id: InstanceRef,
        context: Optional[ConnectionContext] = None
    ) -> Optional[Instance]:
        """Instance by id, or None if it does not exist."""
        instance_id = to_uuid(instance_id, "Instance id")
        with self._context(context) as ctx:
            return self._client.execute(ctx, "GET", self._path(instance_id), self._find_handler)

    def create(self, instance: Instance, context: Optional[ConnectionContext] = None) -> Instance:
        """
        Provision a new instance.

        Raises:
            ValueError: instance has no package or image
        """
        if instance is None:
            raise ValueError("Instance must be present")
        if instance.package_id is None and not instance.package:
            raise ValueError("Package id must be present")
        if instance.image is None:
            raise ValueError("Image id must be present")

        with self._context(context) as ctx:
            result = self._client.execute(
                ctx, "POST", self._path(), self._create_handler,
                json=instance.to_create_payload()
            )

        self._logger.info("Created new instance", instance_id=str(result.id))
        return result

    def delete(self, instance: InstanceRef, context: Optional[ConnectionContext] = None) -> None:
        """
        Delete an instance.

        Raises:
            ResponseError: including when the instance does not exist
        """
        instance_id = to_uuid(instance, "Instance")
        with self._context(context) as ctx:
            self._client.execute(ctx, "DELETE", self._path(instance_id), self._delete_handler)

        self._logger.info("Deleted instance", instance_id=str(instance_id))

    def wait_for_state_change(
        self,
        instance: InstanceRef,
        initial_state: str,
        max_wait: float,
        interval: float,
        context: Optional[ConnectionContext] = None,
        cancel_event: Optional[threading.Event] = None
    ) -> Optional[Instance]:
        """
        Block until the instance leaves `initial_state`.

        Args:
            instance: Instance or its id
            initial_state: State to wait out ("provisioning")
            max_wait: Max wait in seconds (may be exceeded by one interval)
            interval: Pause between polls in seconds
            context: Connection context reused for every poll
            cancel_event: Set it to stop waiting; None is returned

        Returns:
            Instance in the new state, the last polled instance on timeout,
            or None if the instance never existed or the wait was interrupted

        Raises:
            InstanceGoneMissingError: instance disappeared while polling
        """
        instance_id = to_uuid(instance, "Instance")

        with self._context(context) as ctx:
            poller = StateChangePoller(lambda id_: self.find_by_id(id_, context=ctx))
            return poller.wait_for_state_change(
                instance_id, initial_state, max_wait, interval, cancel_event=cancel_event
            )

    def add_tags(
        self,
        instance: InstanceRef,
        tags: Dict[str, Any],
        context: Optional[ConnectionContext] = None
    ) -> Dict[str, Any]:
        """
        Add or update tags. Returns all tags of the instance.

        An empty `tags` dict sends no request and returns {}.
        """
        instance_id = to_uuid(instance, "Instance")
        if tags is None:
            raise ValueError("Tags to add must be present")
        if not tags:
            return {}

        with self._context(context) as ctx:
            result = self._client.execute(
                ctx, "POST", self._path(instance_id, "tags"), self._tags_handler, json=dict(tags)
            )

        self._logger.info(
            "Added/updated tags on instance", instance_id=str(instance_id), tag_count=len(tags)
        )
        return result

    def replace_tags(
        self,
        instance: InstanceRef,
        tags: Dict[str, Any],
        context: Optional[ConnectionContext] = None
    ) -> Dict[str, Any]:
        """Replace all tags of the instance. Returns the new tag set."""
        instance_id = to_uuid(instance, "Instance")
        if tags is None:
            raise ValueError("Tags to replace must be present")

        with self._context(context) as ctx:
            result = self._client.execute(
                ctx, "PUT", self._path(instance_id, "tags"), self._tags_handler, json=dict(tags)
            )

        self._logger.info(
            "Replaced all tags on instance", instance_id=str(instance_id), tag_count=len(result)
        )
        return result
