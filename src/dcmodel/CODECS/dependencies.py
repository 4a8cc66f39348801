"""
Service dependencies (``depends_on``): a list of names, or a mapping of
names to ``{condition: ...}``.
"""
from typing import Dict

from ..errors import Path
from ..MODELS.node_tree import MappingNode, Node, ScalarNode, SequenceNode
from ..MODELS.service_definition import ServiceDependency
from .common import build_model, encode_passthrough, malformed, passthrough


def _name(node: Node) -> str:
    if not isinstance(node, ScalarNode) or node.is_null:
        raise malformed(node, "a service name")
    return node.as_text()


def _decode_entry(node: Node) -> ServiceDependency:
    if isinstance(node, ScalarNode) and node.is_null:
        return ServiceDependency()
    if not isinstance(node, MappingNode):
        raise malformed(node, "a dependency mapping")
    condition = node.get("condition")
    fields = {"extras": passthrough(node, ("condition",))}
    if condition is not None:
        fields["condition"] = _name(condition)
    return build_model(ServiceDependency, node.path, "a dependency condition",
                       None if condition is None else condition.as_text(), **fields)


def decode_depends_on(node: Node) -> Dict[str, ServiceDependency]:
    if isinstance(node, SequenceNode):
        return {_name(item): ServiceDependency() for item in node}
    if isinstance(node, MappingNode):
        return {name: _decode_entry(child) for name, child in node.items()}
    raise malformed(node, "a list of service names or a mapping")


def encode_depends_on(dependencies: Dict[str, ServiceDependency], path: Path) -> Node:
    """Canonical shape: a list of names unless an entry carries settings."""
    if all(dependency.is_default for dependency in dependencies.values()):
        return SequenceNode(
            [ScalarNode(name, path + (i,)) for i, name in enumerate(dependencies)], path
        )
    entries = []
    for name, dependency in dependencies.items():
        entry_path = path + (name,)
        condition = ScalarNode(dependency.condition.value, entry_path + ("condition",))
        entries.append((name, MappingNode(
            [("condition", condition)] + encode_passthrough(dependency.extras, entry_path), entry_path
        )))
    return MappingNode(entries, path)

