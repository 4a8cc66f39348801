"""
Port mappings: ``[ip:][host[-end]:]container[-end][/protocol]`` and the
long mapping form (``target``, ``published``, ``host_ip``, ``protocol``,
``mode``).
"""
import ipaddress
import re
from typing import Optional, Tuple, Union

from ..errors import MalformedField, Path
from ..MODELS.node_tree import MappingNode, Node, ScalarNode
from ..MODELS.raw_string import RawString
from ..MODELS.service_definition import PortField, PortMapping
from ..UTILS.string_interpolation import escape
from .common import (
    build_model,
    decode_typed,
    encode_passthrough,
    encode_typed,
    has_references,
    literal_text,
    malformed,
    passthrough,
)

PROTOCOLS = ("tcp", "udp", "sctp")
LONG_FORM_KEYS = ("target", "published", "host_ip", "protocol", "mode")

_RANGE = re.compile(r"^(\d+)(?:-(\d+))?$")


def _port_range(text: str, path: Path, whole: str) -> Tuple[int, Optional[int]]:
    match = _RANGE.match(text)
    if not match:
        raise MalformedField(path, "a port or port range", whole)
    start = int(match.group(1))
    end = int(match.group(2)) if match.group(2) is not None else None
    return start, end


def _check_address(address: str, path: Path, whole: str) -> str:
    try:
        ipaddress.ip_address(address)
    except ValueError as e:
        raise MalformedField(path, "an IP address", whole) from e
    return address


def parse_port_mapping(text: str, path: Path = ()) -> PortMapping:
    """
    Parses the short port syntax.

    Examples:
        - ``"80"``
        - ``"8080:80/udp"``
        - ``"127.0.0.1:8000-8001:80-81"``
        - ``"[::1]::80"``, an ephemeral host port on ::1

    :raises MalformedField: If the text is not a valid port mapping.
    """
    body, slash, protocol = text.partition("/")
    if not slash:
        protocol = "tcp"
    elif protocol not in PROTOCOLS:
        raise MalformedField(path, f"one of the protocols {', '.join(PROTOCOLS)}", text)

    host_ip = None
    if body.startswith("["):
        address, bracket, rest = body[1:].partition("]")
        if not bracket or not rest.startswith(":"):
            raise MalformedField(path, "'[address]:host:container'", text)
        host_ip = _check_address(address, path, text)
        parts = rest[1:].rsplit(":", 1)
        if len(parts) != 2:
            raise MalformedField(path, "'[address]:host:container'", text)
        host_text, container_text = parts
    else:
        parts = body.rsplit(":", 2)
        if len(parts) == 3:
            host_ip = _check_address(parts[0], path, text)
            host_text, container_text = parts[1], parts[2]
        elif len(parts) == 2:
            host_text, container_text = parts
            if not host_text:
                raise MalformedField(path, "a host port before ':'", text)
        else:
            host_text, container_text = "", parts[0]

    container, container_end = _port_range(container_text, path, text)
    host, host_end = (None, None) if not host_text else _port_range(host_text, path, text)

    if container_end is not None and host is not None:
        if host_end is None or host_end - host != container_end - container:
            raise MalformedField(path, "host and container ranges of the same size", text)
    if container_end is None and host_end is not None:
        raise MalformedField(path, "a container range to match the host range", text)

    return build_model(
        PortMapping, path, "a valid port mapping", text,
        container=container, container_end=container_end,
        host=host, host_end=host_end, host_ip=host_ip, protocol=protocol,
    )


def format_port_mapping(port: PortMapping) -> str:
    """Renders a mapping in the short syntax."""
    text = str(port.container)
    if port.container_end is not None:
        text += f"-{port.container_end}"
    if port.host is not None:
        host = str(port.host)
        if port.host_end is not None:
            host += f"-{port.host_end}"
        text = f"{host}:{text}"
    if port.host_ip is not None:
        address = f"[{port.host_ip}]" if ":" in port.host_ip else port.host_ip
        text = f"{address}:{text}" if port.host is not None else f"{address}::{text}"
    if port.protocol != "tcp":
        text += f"/{port.protocol}"
    return text


def _short_form(port: PortMapping) -> bool:
    return port.mode is None and not port.extras


def _decode_long(node: MappingNode) -> PortMapping:
    if "target" not in node:
        raise MalformedField(node.path, "a 'target' port")
    target = literal_text(node["target"], "a container port")
    container, container_end = _port_range(target, node["target"].path, target)

    host = host_end = None
    published = node.get("published")
    if published is not None and not (isinstance(published, ScalarNode) and published.is_null):
        published_text = literal_text(published, "a published port")
        host, host_end = _port_range(published_text, published.path, published_text)

    host_ip = node.get("host_ip")
    address = None
    if host_ip is not None:
        text = literal_text(host_ip, "an IP address")
        address = _check_address(text, host_ip.path, text)

    protocol_node = node.get("protocol")
    protocol = "tcp" if protocol_node is None else literal_text(protocol_node, "a protocol")
    if protocol not in PROTOCOLS:
        raise malformed(protocol_node, f"one of the protocols {', '.join(PROTOCOLS)}")

    mode = node.get("mode")
    return build_model(
        PortMapping, node.path, "a valid port mapping", target,
        container=container, container_end=container_end,
        host=host, host_end=host_end, host_ip=address, protocol=protocol,
        mode=None if mode is None else literal_text(mode, "a port mode"),
        extras=passthrough(node, LONG_FORM_KEYS),
    )


def decode_port(node: Node) -> PortField:
    if isinstance(node, MappingNode):
        if has_references(node):
            return node
        return _decode_long(node)
    if isinstance(node, ScalarNode) and not node.is_null:
        return decode_typed(node, parse_port_mapping, "a port mapping")
    raise malformed(node, "a port mapping string or mapping")


def encode_port(value: PortField, path: Path) -> Node:
    """
    Canonical shape: the short string, unless the mapping carries a mode or
    keys the short syntax cannot express.
    """
    if isinstance(value, MappingNode):
        return value.relocate(path)
    if isinstance(value, RawString) or _short_form(value):
        return encode_typed(value, format_port_mapping, path)

    target = str(value.container)
    if value.container_end is not None:
        target += f"-{value.container_end}"
    entries = [("target", ScalarNode(value.container if value.container_end is None else target, path + ("target",)))]
    if value.host is not None:
        published: Union[int, str] = value.host
        if value.host_end is not None:
            published = f"{value.host}-{value.host_end}"
        entries.append(("published", ScalarNode(published, path + ("published",))))
    if value.host_ip is not None:
        entries.append(("host_ip", ScalarNode(escape(value.host_ip), path + ("host_ip",))))
    entries.append(("protocol", ScalarNode(value.protocol, path + ("protocol",))))
    if value.mode is not None:
        entries.append(("mode", ScalarNode(escape(value.mode), path + ("mode",))))
    entries.extend(encode_passthrough(value.extras, path))
    return MappingNode(entries, path)

