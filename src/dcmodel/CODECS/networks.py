"""
Service network attachments: a list of network names, or a mapping of
names to ``{aliases, ipv4_address, ipv6_address, ...}`` (null for none).
"""
from typing import Dict

from ..errors import Path
from ..MODELS.node_tree import MappingNode, Node, ScalarNode, SequenceNode
from ..MODELS.service_definition import NetworkAttachment
from .common import (
    decode_raw,
    decode_string_list,
    encode_passthrough,
    encode_raw,
    encode_string_list,
    malformed,
    passthrough,
)

KNOWN_KEYS = ("aliases", "ipv4_address", "ipv6_address")


def _decode_attachment(node: Node) -> NetworkAttachment:
    if isinstance(node, ScalarNode) and node.is_null:
        return NetworkAttachment()
    if not isinstance(node, MappingNode):
        raise malformed(node, "network settings")
    aliases = node.get("aliases")
    ipv4 = node.get("ipv4_address")
    ipv6 = node.get("ipv6_address")
    return NetworkAttachment(
        aliases=[] if aliases is None else decode_string_list(aliases, allow_single=False),
        ipv4_address=None if ipv4 is None else decode_raw(ipv4, "an IPv4 address"),
        ipv6_address=None if ipv6 is None else decode_raw(ipv6, "an IPv6 address"),
        extras=passthrough(node, KNOWN_KEYS),
    )


def decode_networks(node: Node) -> Dict[str, NetworkAttachment]:
    if isinstance(node, SequenceNode):
        names = {}
        for item in node:
            if not isinstance(item, ScalarNode) or item.is_null:
                raise malformed(item, "a network name")
            names[item.as_text()] = NetworkAttachment()
        return names
    if isinstance(node, MappingNode):
        return {name: _decode_attachment(child) for name, child in node.items()}
    raise malformed(node, "a list of network names or a mapping")


def _encode_attachment(attachment: NetworkAttachment, path: Path) -> Node:
    if attachment.is_default:
        return ScalarNode(None, path)
    entries = []
    if attachment.aliases:
        entries.append(("aliases", encode_string_list(attachment.aliases, path + ("aliases",))))
    if attachment.ipv4_address is not None:
        entries.append(("ipv4_address", encode_raw(attachment.ipv4_address, path + ("ipv4_address",))))
    if attachment.ipv6_address is not None:
        entries.append(("ipv6_address", encode_raw(attachment.ipv6_address, path + ("ipv6_address",))))
    entries.extend(encode_passthrough(attachment.extras, path))
    return MappingNode(entries, path)


def encode_networks(networks: Dict[str, NetworkAttachment], path: Path) -> Node:
    """Canonical shape: a list of names unless an attachment has settings."""
    if all(attachment.is_default for attachment in networks.values()):
        return SequenceNode([ScalarNode(name, path + (i,)) for i, name in enumerate(networks)], path)
    return MappingNode(
        [(name, _encode_attachment(attachment, path + (name,))) for name, attachment in networks.items()],
        path,
    )
