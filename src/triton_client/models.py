"""
Pydantic models for CloudAPI resources.

Only the fields the client reads or sends are declared; unknown
fields returned by the server are ignored.
"""

from datetime import datetime
from ipaddress import IPv4Address, IPv6Address
from typing import Any, Dict, List, Optional, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, IPvAnyAddress

IPAddress = Union[IPv4Address, IPv6Address]


class CloudApiModel(BaseModel):
    """Base for all resource models."""

    model_config = ConfigDict(extra='ignore', populate_by_name=True)


class ErrorDetail(CloudApiModel):
    """
    Structured error body returned by CloudAPI.

    Example body:
        {"code": "ResourceNotFound", "message": "VM not found", "errors": []}
    """

    code: Optional[str] = None
    message: Optional[str] = None
    errors: List[Dict[str, Any]] = Field(default_factory=list)


class Locality(CloudApiModel):
    """Placement hints used when provisioning an instance."""

    strict: bool = False
    near: Optional[List[UUID]] = None
    far: Optional[List[UUID]] = None

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {}
        if self.far is not None:
            payload['far'] = [str(value) for value in self.far]
        if self.near is not None:
            payload['near'] = [str(value) for value in self.near]
        payload['strict'] = self.strict
        return payload


class Instance(CloudApiModel):
    """
    A compute instance (a "machine" in CloudAPI paths).

    `package` holds the package name returned by the server; `package_id`
    is only used when provisioning.
    """

    id: Optional[UUID] = None
    name: Optional[str] = None
    brand: Optional[str] = None
    state: Optional[str] = None
    image: Optional[UUID] = None
    ips: List[IPvAnyAddress] = Field(default_factory=list)
    memory: Optional[int] = None
    disk: Optional[int] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    tags: Dict[str, Any] = Field(default_factory=dict)
    created: Optional[datetime] = None
    updated: Optional[datetime] = None
    networks: List[UUID] = Field(default_factory=list)
    primary_ip: Optional[IPvAnyAddress] = Field(default=None, alias='primaryIp')
    firewall_enabled: bool = False
    compute_node: Optional[UUID] = None
    dns_names: List[str] = Field(default_factory=list)
    package: Optional[str] = None

    package_id: Optional[UUID] = Field(default=None, exclude=True)
    locality: Optional[Locality] = Field(default=None, exclude=True)

    def private_ips(self) -> List[IPAddress]:
        """Unique private addresses from `ips`, in their original order."""
        result: List[IPAddress] = []
        for address in self.ips:
            is_private = (
                address.is_private
                or address.is_loopback
                or address.is_link_local
                or address.is_unspecified
            )
            if is_private and address not in result:
                result.append(address)
        return result

    def to_create_payload(self) -> Dict[str, Any]:
        """
        Build the JSON body for POST /{account}/machines.

        Tags and metadata are flattened into `tag.<key>` and
        `metadata.<key>` fields.
        """
        payload: Dict[str, Any] = {
            'package': str(self.package_id) if self.package_id else self.package,
            'image': str(self.image),
        }
        if self.name:
            payload['name'] = self.name
        if self.networks:
            payload['networks'] = [str(network) for network in self.networks]
        if self.locality is not None:
            payload['locality'] = self.locality.to_payload()
        payload['firewall_enabled'] = self.firewall_enabled

        for key, value in self.tags.items():
            payload[f'tag.{key}'] = value
        for key, value in self.metadata.items():
            payload[f'metadata.{key}'] = value

        return payload


class ImageFiles(CloudApiModel):
    """A file belonging to an image."""

    compression: Optional[str] = None
    sha1: Optional[str] = None
    size: Optional[int] = None


class Image(CloudApiModel):
    """An OS or software template used to provision instances."""

    id: Optional[UUID] = None
    name: Optional[str] = None
    os: Optional[str] = None
    version: Optional[str] = None
    type: Optional[str] = None
    requirements: Dict[str, Any] = Field(default_factory=dict)
    homepage: Optional[str] = None
    description: Optional[str] = None
    files: List[ImageFiles] = Field(default_factory=list)
    published_at: Optional[datetime] = None
    owner: Optional[UUID] = None
    public: bool = False
    state: Optional[str] = None
    tags: Dict[str, Any] = Field(default_factory=dict)
    eula: Optional[str] = None
    acl: List[UUID] = Field(default_factory=list)
    errors: List[ErrorDetail] = Field(default_factory=list)


class Package(CloudApiModel):
    """A sizing template (memory, disk, cpu) referenced when provisioning."""

    id: Optional[UUID] = None
    name: Optional[str] = None
    memory: Optional[int] = None
    disk: Optional[int] = None
    swap: Optional[int] = None
    vcpus: Optional[int] = None
    lwps: Optional[int] = None
    version: Optional[str] = None
    group: Optional[str] = None
    description: Optional[str] = None
