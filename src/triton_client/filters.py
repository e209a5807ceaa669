"""
Query filters for CloudAPI listings.

Every filter renders to an ordered list of (name, value) pairs that
`requests` sends as the query string. Unset fields are skipped.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

QueryParams = List[Tuple[str, str]]


def _to_param(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bool):
        return 'true' if value else 'false'
    text = str(value)
    return text or None


def _add_if_set(params: QueryParams, name: str, value: Any) -> None:
    text = _to_param(value)
    if text is not None:
        params.append((name, text))


@dataclass
class InstanceFilter:
    """Filter for GET /{account}/machines."""

    brand: Optional[str] = None
    name: Optional[str] = None
    image: Optional[UUID] = None
    state: Optional[str] = None
    memory: Optional[int] = None
    tombstone: Optional[int] = None
    limit: Optional[int] = None
    offset: Optional[int] = None
    tags: Dict[str, str] = field(default_factory=dict)
    docker: Optional[bool] = None
    credentials: Optional[bool] = None

    def to_params(self) -> QueryParams:
        params: QueryParams = []
        _add_if_set(params, 'brand', self.brand)
        _add_if_set(params, 'name', self.name)
        _add_if_set(params, 'image', self.image)
        _add_if_set(params, 'state', self.state)
        _add_if_set(params, 'memory', self.memory)
        _add_if_set(params, 'tombstone', self.tombstone)
        _add_if_set(params, 'limit', self.limit)
        _add_if_set(params, 'offset', self.offset)
        _add_if_set(params, 'docker', self.docker)
        _add_if_set(params, 'credentials', self.credentials)
        for key, value in self.tags.items():
            _add_if_set(params, f'tag.{key}', value)
        return params


@dataclass
class ImageFilter:
    """Filter for GET /{account}/images."""

    name: Optional[str] = None
    os: Optional[str] = None
    version: Optional[str] = None
    public: Optional[bool] = None
    state: Optional[str] = None
    owner: Optional[UUID] = None
    type: Optional[str] = None

    def to_params(self) -> QueryParams:
        params: QueryParams = []
        _add_if_set(params, 'name', self.name)
        _add_if_set(params, 'os', self.os)
        _add_if_set(params, 'version', self.version)
        _add_if_set(params, 'public', self.public)
        _add_if_set(params, 'state', self.state)
        _add_if_set(params, 'owner', self.owner)
        _add_if_set(params, 'type', self.type)
        return params


@dataclass
class PackageFilter:
    """Filter for GET /{account}/packages."""

    name: Optional[str] = None
    memory: Optional[int] = None
    disk: Optional[int] = None
    swap: Optional[int] = None
    lwps: Optional[int] = None
    vcpus: Optional[int] = None
    version: Optional[str] = None
    group: Optional[str] = None

    def to_params(self) -> QueryParams:
        params: QueryParams = []
        _add_if_set(params, 'name', self.name)
        _add_if_set(params, 'memory', self.memory)
        _add_if_set(params, 'disk', self.disk)
        _add_if_set(params, 'swap', self.swap)
        _add_if_set(params, 'lwps', self.lwps)
        _add_if_set(params, 'vcpus', self.vcpus)
        _add_if_set(params, 'version', self.version)
        _add_if_set(params, 'group', self.group)
        return params
