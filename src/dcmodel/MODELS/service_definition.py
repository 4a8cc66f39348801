"""
Models for defining services, including ports, mounts, build specs and dependencies.
"""
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, model_validator

from .image_spec import ImageSpec
from .node_tree import MappingNode
from .raw_string import RawString


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)


class RestartPolicyCondition(str, Enum):
    """
    Conditions under which a service should be restarted.
    """
    NO = "no"
    ALWAYS = "always"
    ON_FAILURE = "on-failure"
    UNLESS_STOPPED = "unless-stopped"


class DependencyCondition(str, Enum):
    """
    States a dependency must reach before the dependent service starts.
    """
    SERVICE_STARTED = "service_started"
    SERVICE_HEALTHY = "service_healthy"
    SERVICE_COMPLETED_SUCCESSFULLY = "service_completed_successfully"


class VolumeType(str, Enum):
    """
    Kinds of mounts a service can declare.
    """
    BIND = "bind"
    VOLUME = "volume"
    TMPFS = "tmpfs"
    NPIPE = "npipe"


class PortMapping(_Frozen):
    """
    Maps container port(s) to host port(s).

    ``host`` and ``container`` are the first port of a range; ``host_end``
    and ``container_end`` are set only for ranges. ``host_ip`` without
    ``host`` binds an ephemeral port on that address.
    """
    container: int
    container_end: Optional[int] = None
    host: Optional[int] = None
    host_end: Optional[int] = None
    host_ip: Optional[str] = None
    protocol: str = "tcp"
    mode: Optional[str] = None
    extras: Dict[str, Any] = {}

    @model_validator(mode="after")
    def _check_ranges(self) -> "PortMapping":
        for start, end in ((self.container, self.container_end), (self.host, self.host_end)):
            if start is not None and not 0 <= start <= 65535:
                raise ValueError(f"port {start} out of range")
            if end is not None and (start is None or not start <= end <= 65535):
                raise ValueError(f"invalid port range {start}-{end}")
        return self


class VolumeMount(_Frozen):
    """
    Defines a mapping between a host path or named volume and a service path.

    ``options`` holds short-form flags other than ro/rw (``z``, ``nocopy``,
    ``cached``, ...). ``extras`` holds long-form keys with no short-form
    spelling (``bind``, ``volume``, ``tmpfs`` option blocks, ``consistency``).
    """
    target: str
    source: Optional[str] = None
    type: VolumeType = VolumeType.VOLUME
    read_only: bool = False
    options: List[str] = []
    extras: Dict[str, Any] = {}


class EnvironmentEntry(_Frozen):
    """
    One ``NAME=VALUE`` item. A missing value means "take it from the host".
    """
    name: str
    value: Optional[RawString] = None


class BuildSpec(_Frozen):
    """
    How to build an image for a service.
    """
    context: RawString
    dockerfile: Optional[RawString] = None
    args: Dict[str, Optional[RawString]] = {}
    extras: Dict[str, Any] = {}


class ServiceDependency(_Frozen):
    """
    A ``depends_on`` entry.
    """
    condition: DependencyCondition = DependencyCondition.SERVICE_STARTED
    extras: Dict[str, Any] = {}

    @property
    def is_default(self) -> bool:
        return self.condition is DependencyCondition.SERVICE_STARTED and not self.extras


class NetworkAttachment(_Frozen):
    """
    Settings for one network a service joins.
    """
    aliases: List[RawString] = []
    ipv4_address: Optional[RawString] = None
    ipv6_address: Optional[RawString] = None
    extras: Dict[str, Any] = {}

    @property
    def is_default(self) -> bool:
        return not (self.aliases or self.ipv4_address or self.ipv6_address or self.extras)


ImageField = Union[ImageSpec, RawString]
CommandLine = Union[RawString, List[RawString]]
PortField = Union[PortMapping, RawString, MappingNode]
VolumeField = Union[VolumeMount, RawString, MappingNode]


class Service(_Frozen):
    """
    The full definition of a single service.

    Typed fields (image, ports, volumes) hold a RawString instead of the
    typed value while their text still references variables. A long-form
    port or volume item with references stays a MappingNode. ``extras``
    keeps every key this model does not know, as NodeTree nodes, in source
    order.

    The ordered lists (env_file, ports, volumes) are None when the key is
    absent, so an explicit empty list can replace a base layer's list.
    """
    image: Optional[ImageField] = None
    build: Optional[BuildSpec] = None

    # Execution
    command: Optional[CommandLine] = None
    entrypoint: Optional[CommandLine] = None
    working_dir: Optional[RawString] = None
    user: Optional[RawString] = None

    # Environment
    environment: Dict[str, Optional[RawString]] = {}
    env_file: Optional[List[RawString]] = None

    # Networking
    ports: Optional[List[PortField]] = None
    expose: List[RawString] = []
    networks: Dict[str, NetworkAttachment] = {}
    network_mode: Optional[RawString] = None
    links: List[RawString] = []
    dns: List[RawString] = []
    dns_search: List[RawString] = []
    hostname: Optional[RawString] = None
    container_name: Optional[RawString] = None

    # Storage
    volumes: Optional[List[VolumeField]] = None
    tmpfs: List[RawString] = []

    # Lifecycle
    restart: Optional[RawString] = None
    depends_on: Dict[str, ServiceDependency] = {}

    # Security
    cap_add: List[RawString] = []
    cap_drop: List[RawString] = []

    # Metadata
    labels: Dict[str, RawString] = {}

    extras: Dict[str, Any] = {}

    @property
    def dependency_names(self) -> List[str]:
        return list(self.depends_on)
