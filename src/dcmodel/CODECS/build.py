"""
Build specifications: a context string, or a mapping with ``context``,
``dockerfile``, ``args`` and further builder options.
"""
from ..errors import MalformedField, Path
from ..MODELS.node_tree import MappingNode, Node, ScalarNode
from ..MODELS.service_definition import BuildSpec
from .common import decode_raw, encode_passthrough, encode_raw, malformed, passthrough
from .environment import decode_key_value, encode_key_value

KNOWN_KEYS = ("context", "dockerfile", "args")


def decode_build(node: Node) -> BuildSpec:
    if isinstance(node, ScalarNode) and not node.is_null:
        return BuildSpec(context=decode_raw(node, "a build context"))
    if not isinstance(node, MappingNode):
        raise malformed(node, "a build context or mapping")
    if "context" not in node:
        raise MalformedField(node.path, "a 'context' entry")

    dockerfile = node.get("dockerfile")
    args = node.get("args")
    return BuildSpec(
        context=decode_raw(node["context"], "a build context"),
        dockerfile=None if dockerfile is None else decode_raw(dockerfile, "a Dockerfile path"),
        args={} if args is None else decode_key_value(args, nullable=True),
        extras=passthrough(node, KNOWN_KEYS),
    )


def encode_build(build: BuildSpec, path: Path) -> Node:
    """Canonical shape: the context string alone when nothing else is set."""
    if build.dockerfile is None and not build.args and not build.extras:
        return encode_raw(build.context, path)
    entries = [("context", encode_raw(build.context, path + ("context",)))]
    if build.dockerfile is not None:
        entries.append(("dockerfile", encode_raw(build.dockerfile, path + ("dockerfile",))))
    if build.args:
        entries.append(("args", encode_key_value(build.args, path + ("args",))))
    entries.extend(encode_passthrough(build.extras, path))
    return MappingNode(entries, path)
