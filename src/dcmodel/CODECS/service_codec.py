"""
Decoding and encoding of complete service definitions.

``SERVICE_CODECS`` pairs every modeled service key with its decoder and
encoder. Its order is the order keys are emitted in; keys the model does
not know follow in their original order.
"""
from types import MappingProxyType
from typing import Any, Callable, Mapping, NamedTuple

from ..errors import Path
from ..MODELS.node_tree import MappingNode, Node, ScalarNode
from ..MODELS.service_definition import Service
from .build import decode_build, encode_build
from .command import decode_command, encode_command
from .common import (
    build_model,
    decode_items,
    decode_raw,
    decode_string_list,
    encode_items,
    encode_passthrough,
    encode_raw,
    encode_string_list,
    malformed,
)
from .dependencies import decode_depends_on, encode_depends_on
from .environment import decode_environment, decode_labels, encode_environment, encode_labels
from .image import decode_image, encode_image
from .networks import decode_networks, encode_networks
from .ports import decode_port, encode_port
from .volumes import decode_volume, encode_volume


class FieldCodec(NamedTuple):
    decode: Callable[[Node], Any]
    encode: Callable[[Any, Path], Node]


def _list(node: Node):
    return decode_string_list(node, allow_single=False)


def _string_or_list(node: Node):
    return decode_string_list(node, allow_single=True)


_TEXT = FieldCodec(decode_raw, encode_raw)
_COMMAND = FieldCodec(decode_command, encode_command)
_LIST = FieldCodec(_list, encode_string_list)
_STRING_OR_LIST = FieldCodec(_string_or_list, encode_string_list)

SERVICE_CODECS: Mapping[str, FieldCodec] = MappingProxyType({
    "image": FieldCodec(decode_image, encode_image),
    "build": FieldCodec(decode_build, encode_build),
    "command": _COMMAND,
    "entrypoint": _COMMAND,
    "working_dir": _TEXT,
    "user": _TEXT,
    "environment": FieldCodec(decode_environment, encode_environment),
    "env_file": _STRING_OR_LIST,
    "ports": FieldCodec(lambda node: decode_items(node, decode_port),
                        lambda values, path: encode_items(values, encode_port, path)),
    "expose": _LIST,
    "networks": FieldCodec(decode_networks, encode_networks),
    "network_mode": _TEXT,
    "links": _LIST,
    "dns": _STRING_OR_LIST,
    "dns_search": _STRING_OR_LIST,
    "hostname": _TEXT,
    "container_name": _TEXT,
    "volumes": FieldCodec(lambda node: decode_items(node, decode_volume),
                          lambda values, path: encode_items(values, encode_volume, path)),
    "tmpfs": _STRING_OR_LIST,
    "restart": _TEXT,
    "depends_on": FieldCodec(decode_depends_on, encode_depends_on),
    "cap_add": _LIST,
    "cap_drop": _LIST,
    "labels": FieldCodec(decode_labels, encode_labels),
})


def decode_service(node: Node, known_fields) -> Service:
    """
    Decodes one service definition.

    :param node: The service's mapping node.
    :param known_fields: Service keys the document's version defines. Keys
        outside this set are kept verbatim in ``extras`` even when the model
        has a field of the same name.
    :return: The canonical service.
    :raises MalformedField: If a modeled field has an unusable shape.
    """
    if not isinstance(node, MappingNode):
        raise malformed(node, "a service definition mapping")

    fields = {}
    extras = {}
    for key, child in node.items():
        codec = SERVICE_CODECS.get(key) if key in known_fields else None
        if codec is None:
            extras[key] = child
        elif isinstance(child, ScalarNode) and child.is_null:
            continue
        else:
            fields[key] = codec.decode(child)
    return build_model(Service, node.path, "a valid service definition", None, extras=extras, **fields)


def encode_service(service: Service, path: Path) -> MappingNode:
    """Encodes a service in canonical shape. Fields at their default are omitted."""
    entries = []
    for key, codec in SERVICE_CODECS.items():
        value = getattr(service, key)
        if value == Service.model_fields[key].default:
            continue
        entries.append((key, codec.encode(value, path + (key,))))
    emitted = {key for key, _ in entries}
    entries.extend(
        (key, node) for key, node in encode_passthrough(service.extras, path) if key not in emitted
    )
    return MappingNode(entries, path)


def encode_field(key: str, value: Any, path: Path) -> Node:
    """Encodes a single modeled service field."""
    return SERVICE_CODECS[key].encode(value, path)
