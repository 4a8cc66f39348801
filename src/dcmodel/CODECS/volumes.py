"""
Volume mounts: ``[source:]target[:options]`` and the long mapping form.
"""
import re
from typing import List, Optional

from ..errors import MalformedField, Path
from ..MODELS.node_tree import MappingNode, Node, ScalarNode
from ..MODELS.raw_string import RawString
from ..MODELS.service_definition import VolumeField, VolumeMount, VolumeType
from ..UTILS.string_interpolation import escape
from .common import (
    build_model,
    decode_optional_flag,
    decode_typed,
    encode_passthrough,
    encode_typed,
    has_references,
    literal_text,
    malformed,
    passthrough,
)

LONG_FORM_KEYS = ("type", "source", "target", "read_only")

_DRIVE = re.compile(r"^[A-Za-z]:[\\/]")


def _is_path(source: str) -> bool:
    return source.startswith(("/", ".", "~")) or bool(_DRIVE.match(source))


def infer_type(source: Optional[str]) -> VolumeType:
    """A path-like source is a bind mount; anything else names a volume."""
    if source is not None and _is_path(source):
        return VolumeType.BIND
    return VolumeType.VOLUME


def _split(text: str) -> List[str]:
    parts = text.split(":")
    # a Windows drive letter belongs to the path that follows it
    joined: List[str] = []
    i = 0
    while i < len(parts):
        part = parts[i]
        if len(part) == 1 and part.isalpha() and i + 1 < len(parts) and parts[i + 1][:1] in ("\\", "/"):
            part = f"{part}:{parts[i + 1]}"
            i += 1
        joined.append(part)
        i += 1
    return joined


def parse_volume_mount(text: str, path: Path = ()) -> VolumeMount:
    """
    Parses the short volume syntax.

    Examples:
        - ``"/var/lib/data"``, an anonymous volume
        - ``"data:/var/lib/data"``, a named volume
        - ``"./conf:/etc/app:ro,z"``, a read-only bind mount
        - ``"C:\\\\data:/data"``

    :raises MalformedField: If the text is not a valid mount.
    """
    parts = _split(text)
    if len(parts) > 3 or not all(parts):
        raise MalformedField(path, "'[source:]target[:options]'", text)

    source = None
    options: List[str] = []
    if len(parts) == 1:
        target = parts[0]
    else:
        source, target = parts[0], parts[1]
        if len(parts) == 3:
            options = parts[2].split(",")

    if not (target.startswith("/") or _DRIVE.match(target)):
        raise MalformedField(path, "an absolute container path", text)

    read_only = False
    extra_options = []
    for option in options:
        if option == "ro":
            read_only = True
        elif option == "rw":
            read_only = False
        elif option:
            extra_options.append(option)
        else:
            raise MalformedField(path, "non-empty mount options", text)

    return build_model(
        VolumeMount, path, "a valid volume mount", text,
        target=target, source=source, type=infer_type(source),
        read_only=read_only, options=extra_options,
    )


def _short_form(mount: VolumeMount) -> bool:
    if mount.extras or mount.type != infer_type(mount.source):
        return False
    # "target:ro" would read back as source:target
    return mount.source is not None or not (mount.read_only or mount.options)


def format_volume_mount(mount: VolumeMount) -> str:
    """Renders a mount in the short syntax."""
    text = mount.target if mount.source is None else f"{mount.source}:{mount.target}"
    options = (["ro"] if mount.read_only else []) + mount.options
    if options:
        text += ":" + ",".join(options)
    return text


def _decode_long(node: MappingNode) -> VolumeMount:
    if "target" not in node:
        raise MalformedField(node.path, "a 'target' path")
    source_node = node.get("source")
    source = None
    if source_node is not None and not (isinstance(source_node, ScalarNode) and source_node.is_null):
        source = literal_text(source_node, "a mount source")

    type_node = node.get("type")
    mount_type = infer_type(source) if type_node is None else literal_text(type_node, "a mount type")
    read_only = node.get("read_only")
    target = literal_text(node["target"], "a container path")

    return build_model(
        VolumeMount, node.path, "a valid volume mount", target,
        target=target,
        source=source,
        type=mount_type,
        read_only=False if read_only is None else decode_optional_flag(read_only, "a boolean"),
        extras=passthrough(node, LONG_FORM_KEYS),
    )


def decode_volume(node: Node) -> VolumeField:
    if isinstance(node, MappingNode):
        if has_references(node):
            return node
        return _decode_long(node)
    if isinstance(node, ScalarNode) and not node.is_null:
        return decode_typed(node, parse_volume_mount, "a volume mount")
    raise malformed(node, "a volume string or mapping")


def encode_volume(value: VolumeField, path: Path) -> Node:
    """
    Canonical shape: the short string, unless the mount holds information
    only the long form can express.
    """
    if isinstance(value, MappingNode):
        return value.relocate(path)
    if isinstance(value, RawString) or _short_form(value):
        return encode_typed(value, format_volume_mount, path)

    entries = [("type", ScalarNode(value.type.value, path + ("type",)))]
    if value.source is not None:
        entries.append(("source", ScalarNode(escape(value.source), path + ("source",))))
    entries.append(("target", ScalarNode(escape(value.target), path + ("target",))))
    if value.read_only:
        entries.append(("read_only", ScalarNode(True, path + ("read_only",))))
    entries.extend(encode_passthrough(value.extras, path))
    return MappingNode(entries, path)
