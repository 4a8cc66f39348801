"""
Parsing and formatting of image references.

Grammar: ``[registry/]repository[:tag|@sha256:<64 hex>]``. The first path
component is a registry when it contains a dot or a colon, or is
``localhost``.
"""
import re
from typing import Union

from ..errors import InvalidImageReference, Path
from ..MODELS.image_spec import ImageSpec
from ..MODELS.node_tree import Node, ScalarNode
from ..MODELS.raw_string import RawString
from .common import decode_typed, encode_typed

_REGISTRY = re.compile(r"^[A-Za-z0-9](?:[A-Za-z0-9.-]*[A-Za-z0-9])?(?::[0-9]+)?$")
_COMPONENT = re.compile(r"^[a-z0-9]+(?:(?:[._]|__|-+)[a-z0-9]+)*$")
_TAG = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9_.-]{0,127}$")
_DIGEST = re.compile(r"^[a-f0-9]{64}$")


def _is_registry(component: str) -> bool:
    return "." in component or ":" in component or component == "localhost"


def parse_image(text: str, path: Path = ()) -> ImageSpec:
    """
    Parses an image reference.

    :param text: Literal image text, without variable references.
    :param path: Path of the node holding the text, for error reporting.
    :return: The parsed reference.
    :raises InvalidImageReference: If the text does not follow the grammar.
    """
    if not text or text != text.strip():
        raise InvalidImageReference(path, text, "empty or padded with whitespace")

    name, at, digest_text = text.partition("@")
    digest = None
    if at:
        algorithm, colon, hex_digest = digest_text.partition(":")
        if not colon or algorithm != ImageSpec.DIGEST_ALGORITHM:
            raise InvalidImageReference(path, text, f"digest must use {ImageSpec.DIGEST_ALGORITHM}")
        if not _DIGEST.match(hex_digest):
            raise InvalidImageReference(path, text, "digest must be 64 lowercase hexadecimal characters")
        digest = hex_digest

    tag = None
    colon = name.rfind(":")
    if colon > name.rfind("/"):
        name, tag = name[:colon], name[colon + 1:]
        if digest is not None:
            raise InvalidImageReference(path, text, "a reference cannot carry both a tag and a digest")
        if not _TAG.match(tag):
            raise InvalidImageReference(path, text, f"malformed tag {tag!r}")

    registry = None
    first, slash, rest = name.partition("/")
    if slash and _is_registry(first):
        if not _REGISTRY.match(first):
            raise InvalidImageReference(path, text, f"malformed registry {first!r}")
        registry, name = first, rest

    if not name or not all(_COMPONENT.match(component) for component in name.split("/")):
        raise InvalidImageReference(path, text, f"malformed repository {name!r}")

    return ImageSpec(registry=registry, repository=name, tag=tag, digest=digest)


def format_image(image: ImageSpec) -> str:
    return str(image)


def decode_image(node: Node) -> Union[ImageSpec, RawString]:
    return decode_typed(node, parse_image, "an image reference")


def encode_image(value: Union[ImageSpec, RawString], path: Path) -> ScalarNode:
    return encode_typed(value, format_image, path)
