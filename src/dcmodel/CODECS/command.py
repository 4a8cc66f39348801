"""
Commands and entrypoints: a shell string or an argument list. The form
written in the document is kept.
"""
from ..errors import Path
from ..MODELS.node_tree import Node, ScalarNode, SequenceNode
from ..MODELS.raw_string import RawString
from ..MODELS.service_definition import CommandLine
from .common import decode_raw, encode_raw, encode_string_list, malformed


def decode_command(node: Node) -> CommandLine:
    if isinstance(node, SequenceNode):
        return [decode_raw(item, "a command argument") for item in node]
    if isinstance(node, ScalarNode) and not node.is_null:
        return decode_raw(node, "a command")
    raise malformed(node, "a command string or argument list")


def encode_command(value: CommandLine, path: Path) -> Node:
    if isinstance(value, RawString):
        return encode_raw(value, path)
    return encode_string_list(value, path)
