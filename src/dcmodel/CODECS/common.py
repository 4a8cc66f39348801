"""
Helpers shared by the field codecs.

Every decoder takes a node (which knows its own path) and every encoder
takes a canonical value plus the path of the node it produces.
"""
from typing import Callable, Dict, Iterable, List, TypeVar, Union

from pydantic import ValidationError as ModelValidationError

from ..errors import MalformedField, Path, PathKey
from ..MODELS.node_tree import MappingNode, Node, ScalarNode, SequenceNode, to_python
from ..MODELS.raw_string import RawString
from ..UTILS.string_interpolation import escape

T = TypeVar("T")


def malformed(node: Node, expected: str) -> MalformedField:
    return MalformedField(node.path, expected, to_python(node))


def build_model(factory: Callable[..., T], node_path: Iterable[PathKey], expected: str, text: object,
                **fields) -> T:
    """
    Constructs a pydantic model, reporting model validation failures as
    MalformedField at the node's path.
    """
    try:
        return factory(**fields)
    except ModelValidationError as e:
        reason = "; ".join(error["msg"] for error in e.errors())
        raise MalformedField(node_path, f"{expected} ({reason})", text) from e


def decode_raw(node: Node, expected: str = "a string") -> RawString:
    """Decodes a non-null scalar into a RawString."""
    if not isinstance(node, ScalarNode) or node.is_null:
        raise malformed(node, expected)
    return RawString.parse(node.as_text(), node.path)


def encode_raw(value: RawString, path: Path) -> ScalarNode:
    return ScalarNode(value.text, path)


def decode_typed(node: Node, parse: Callable[[str, Path], T], expected: str) -> Union[T, RawString]:
    """
    Decodes a scalar holding a typed value.

    Text that still references variables is kept as a RawString; ``$$``
    escapes are collapsed before the typed parser sees the text.
    """
    raw = decode_raw(node, expected)
    if not raw.is_literal:
        return raw
    return parse(raw.unescape(), node.path)


def encode_typed(value: Union[T, RawString], format_value: Callable[[T], str], path: Path) -> ScalarNode:
    if isinstance(value, RawString):
        return encode_raw(value, path)
    return ScalarNode(escape(format_value(value)), path)


def decode_string_list(node: Node, allow_single: bool = True) -> List[RawString]:
    """
    Decodes a sequence of scalars, or a single scalar when ``allow_single``.
    """
    if isinstance(node, ScalarNode) and allow_single and not node.is_null:
        return [decode_raw(node)]
    if not isinstance(node, SequenceNode):
        raise malformed(node, "a string or a list of strings" if allow_single else "a list of strings")
    return [decode_raw(item) for item in node]


def encode_string_list(values: Iterable[RawString], path: Path) -> SequenceNode:
    return SequenceNode([encode_raw(value, path + (i,)) for i, value in enumerate(values)], path)


def decode_optional_flag(node: Node, expected: str) -> bool:
    """Reads a YAML boolean, also accepting the strings true/false."""
    if isinstance(node, ScalarNode):
        if isinstance(node.value, bool):
            return node.value
        text = node.as_text().lower()
        if text in ("true", "false"):
            return text == "true"
    raise malformed(node, expected)


def passthrough(node: MappingNode, known: Iterable[str]) -> Dict[str, Node]:
    """Collects the entries of ``node`` whose keys are not in ``known``."""
    known = set(known)
    return {key: child for key, child in node.items() if key not in known}


def encode_passthrough(extras: Dict[str, Node], path: Path) -> "list[tuple[str, Node]]":
    return [(key, child.relocate(path + (key,))) for key, child in extras.items()]


def has_references(node: Node) -> bool:
    """True when any string scalar under ``node`` references a variable."""
    if isinstance(node, ScalarNode):
        return isinstance(node.value, str) and not RawString.parse(node.value, node.path).is_literal
    if isinstance(node, SequenceNode):
        return any(has_references(item) for item in node)
    if isinstance(node, MappingNode):
        return any(has_references(child) for _, child in node.items())
    return False


def decode_items(node: Node, decode_item: Callable[[Node], T]) -> List[T]:
    """Decodes every item of a sequence node."""
    if not isinstance(node, SequenceNode):
        raise malformed(node, "a list")
    return [decode_item(item) for item in node]


def encode_items(values: Iterable[T], encode_item: Callable[[T, Path], Node], path: Path) -> SequenceNode:
    return SequenceNode([encode_item(value, path + (i,)) for i, value in enumerate(values)], path)


def literal_text(node: Node, expected: str) -> str:
    """The unescaped text of a non-null scalar holding no references."""
    if not isinstance(node, ScalarNode) or node.is_null:
        raise malformed(node, expected)
    text = node.as_text()
    if "$" not in text:
        return text
    return RawString.parse(text, node.path).unescape()
