"""
Environment variables, labels and build arguments.

All three accept a mapping or a list of ``NAME=VALUE`` strings and are
emitted as a mapping.
"""
from typing import Dict, Optional

from ..errors import Path
from ..MODELS.node_tree import MappingNode, Node, ScalarNode, SequenceNode
from ..MODELS.raw_string import RawString
from ..MODELS.service_definition import EnvironmentEntry
from .common import encode_raw, malformed


def decode_environment_entry(node: Node) -> EnvironmentEntry:
    """Decodes one ``NAME=VALUE`` (or bare ``NAME``) list item."""
    if not isinstance(node, ScalarNode) or node.is_null:
        raise malformed(node, "a 'NAME=VALUE' string")
    name, sep, value = node.as_text().partition("=")
    if not name:
        raise malformed(node, "a 'NAME=VALUE' string")
    return EnvironmentEntry(name=name, value=RawString.parse(value, node.path) if sep else None)


def decode_key_value(node: Node, nullable: bool = True) -> Dict[str, Optional[RawString]]:
    """
    Decodes a mapping of names to scalars, or a list of ``NAME=VALUE``
    strings, into one ordered mapping.

    :param node: The field's node.
    :param nullable: Whether a value may be missing. When not, a missing
        value decodes to the empty string.
    """
    missing = None if nullable else RawString("")
    result: Dict[str, Optional[RawString]] = {}
    if isinstance(node, MappingNode):
        for name, child in node.items():
            if isinstance(child, ScalarNode) and child.is_null:
                result[name] = missing
            elif isinstance(child, ScalarNode):
                result[name] = RawString.parse(child.as_text(), child.path)
            else:
                raise malformed(child, "a scalar value")
        return result
    if isinstance(node, SequenceNode):
        for item in node:
            entry = decode_environment_entry(item)
            result[entry.name] = missing if entry.value is None else entry.value
        return result
    raise malformed(node, "a mapping or a list of 'NAME=VALUE' strings")


def encode_key_value(values: Dict[str, Optional[RawString]], path: Path) -> MappingNode:
    """Canonical shape: a mapping, with null for valueless entries."""
    return MappingNode(
        [
            (name, ScalarNode(None, path + (name,)) if value is None else encode_raw(value, path + (name,)))
            for name, value in values.items()
        ],
        path,
    )


def decode_environment(node: Node) -> Dict[str, Optional[RawString]]:
    return decode_key_value(node, nullable=True)


def encode_environment(values: Dict[str, Optional[RawString]], path: Path) -> MappingNode:
    return encode_key_value(values, path)


def decode_labels(node: Node) -> Dict[str, RawString]:
    return decode_key_value(node, nullable=False)


def encode_labels(values: Dict[str, RawString], path: Path) -> MappingNode:
    return encode_key_value(values, path)
