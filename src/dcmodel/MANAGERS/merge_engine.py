"""
Combines a base Document with override layers.
"""
import logging
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..errors import MergeTypeConflict, Path
from ..MODELS.node_tree import MappingNode, Node, ScalarNode
from ..MODELS.orchestration_config import Document
from ..MODELS.service_definition import BuildSpec, Service
from ..SCHEMA.registry import LEGACY_VERSION

logger = logging.getLogger(__name__)


class MergeStrategy(str, Enum):
    """
    How a field combines across layers.
    """
    SCALAR = "scalar"            # last non-absent value wins
    MAPPING = "mapping"          # key-wise union, override wins per key
    SET = "set"                  # de-duplicated union, base order first
    ORDERED = "ordered"          # a present override replaces the whole sequence
    BUILD = "build"              # field-wise
    PASSTHROUGH = "passthrough"  # deep merge of unmodeled keys


SERVICE_STRATEGIES: Mapping[str, MergeStrategy] = MappingProxyType({
    "image": MergeStrategy.SCALAR,
    "build": MergeStrategy.BUILD,
    "command": MergeStrategy.SCALAR,
    "entrypoint": MergeStrategy.SCALAR,
    "working_dir": MergeStrategy.SCALAR,
    "user": MergeStrategy.SCALAR,
    "environment": MergeStrategy.MAPPING,
    "env_file": MergeStrategy.ORDERED,
    "ports": MergeStrategy.ORDERED,
    "expose": MergeStrategy.SET,
    "networks": MergeStrategy.MAPPING,
    "network_mode": MergeStrategy.SCALAR,
    "links": MergeStrategy.SET,
    "dns": MergeStrategy.SET,
    "dns_search": MergeStrategy.SET,
    "hostname": MergeStrategy.SCALAR,
    "container_name": MergeStrategy.SCALAR,
    "volumes": MergeStrategy.ORDERED,
    "tmpfs": MergeStrategy.SET,
    "restart": MergeStrategy.SCALAR,
    # keyed by service name; an override entry replaces the base entry in place
    "depends_on": MergeStrategy.SET,
    "cap_add": MergeStrategy.SET,
    "cap_drop": MergeStrategy.SET,
    "labels": MergeStrategy.MAPPING,
    "extras": MergeStrategy.PASSTHROUGH,
})

# passthrough keys whose layers must agree on node kinds
STRUCTURED_SERVICE_KEYS = frozenset({
    "deploy", "healthcheck", "logging", "ulimits", "blkio_config", "credential_spec",
})
STRUCTURED_TOP_LEVEL_KEYS = frozenset({"secrets", "configs"})


def _compatible(base: Node, override: Node) -> bool:
    if isinstance(base, ScalarNode) and base.is_null:
        return True
    if isinstance(override, ScalarNode) and override.is_null:
        return True
    return base.kind is override.kind


def merge_nodes(base: Optional[Node], override: Optional[Node], path: Path, strict: bool = False) -> Optional[Node]:
    """
    Deep-merges two passthrough trees.

    Mappings merge key-wise; anything else is replaced by the override.

    :param path: Path of the merged node, for error reporting.
    :param strict: Require compatible node kinds. A null override then keeps
        the base value.
    :raises MergeTypeConflict: In strict mode, when the kinds differ.
    """
    if base is None:
        return override
    if override is None:
        return base
    if isinstance(base, MappingNode) and isinstance(override, MappingNode):
        entries = []
        for key, child in base.items():
            entries.append((key, merge_nodes(child, override.get(key), path + (key,), strict)))
        entries.extend((key, child) for key, child in override.items() if key not in base)
        return MappingNode(entries, base.path, base.mark)
    if strict:
        if not _compatible(base, override):
            raise MergeTypeConflict(path, base.describe(), override.describe())
        if isinstance(override, ScalarNode) and override.is_null:
            return base
    return override


def _merge_node_mapping(base: Dict[str, Any], override: Dict[str, Any], path: Path,
                        strict_keys=frozenset(), strict: bool = False) -> Dict[str, Any]:
    merged = dict(base)
    for key, node in override.items():
        merged[key] = merge_nodes(base.get(key), node, path + (key,), strict or key in strict_keys)
    return merged


def _merge_set(base: List[Any], override: List[Any]) -> List[Any]:
    merged: List[Any] = []
    for value in list(base) + list(override):
        if value not in merged:
            merged.append(value)
    return merged


def _merge_build(base: Optional[BuildSpec], override: Optional[BuildSpec], path: Path) -> Optional[BuildSpec]:
    if base is None or override is None:
        return override if override is not None else base
    return BuildSpec(
        context=override.context,
        dockerfile=override.dockerfile if override.dockerfile is not None else base.dockerfile,
        args={**base.args, **override.args},
        extras=_merge_node_mapping(base.extras, override.extras, path),
    )


class MergeEngine:
    """
    Merges Documents left to right: base first, each override on top.

    Inputs are never modified; every merge builds new values.
    """
    def merge(self, documents: Sequence[Document]) -> Document:
        """
        Merges an ordered sequence of layers.

        :param documents: Base document followed by its overrides.
        :return: The merged document. A single layer is returned as a copy.
        :raises ValueError: If no document is given.
        :raises MergeTypeConflict: If layers disagree on a structured value.
        """
        if not documents:
            raise ValueError("at least one document is required")
        merged = documents[0].model_copy()
        for override in documents[1:]:
            merged = self.merge_pair(merged, override)
        logger.debug("Merged %d layer(s) into %d service(s)", len(documents), len(merged.services))
        return merged

    def merge_pair(self, base: Document, override: Document) -> Document:
        """
        Applies one override layer on top of ``base``.

        The override's version wins, except that a version 1 layer never
        turns a versioned base back into the legacy layout, which has no
        place for top-level volumes, networks or extensions.
        """
        version = base.version if override.is_legacy and not base.is_legacy else override.version
        root: Path = () if version == LEGACY_VERSION else ("services",)
        services = dict(base.services)
        for name, service in override.services.items():
            if name in services:
                services[name] = self.merge_service(services[name], service, root + (name,))
            else:
                services[name] = service

        return Document(
            version=version,
            services=services,
            volumes=_merge_node_mapping(base.volumes, override.volumes, ("volumes",), strict=True),
            networks=_merge_node_mapping(base.networks, override.networks, ("networks",), strict=True),
            extras=_merge_node_mapping(base.extras, override.extras, (), STRUCTURED_TOP_LEVEL_KEYS),
        )

    def merge_service(self, base: Service, override: Service, path: Path = ()) -> Service:
        """
        Merges two definitions of the same service field by field.

        :param path: Path of the service, for error reporting.
        """
        fields = {}
        for name, strategy in SERVICE_STRATEGIES.items():
            old = getattr(base, name)
            new = getattr(override, name)
            if strategy is MergeStrategy.SCALAR:
                fields[name] = new if new is not None else old
            elif strategy is MergeStrategy.MAPPING:
                fields[name] = {**old, **new}
            elif strategy is MergeStrategy.SET:
                fields[name] = {**old, **new} if isinstance(old, dict) else _merge_set(old, new)
            elif strategy is MergeStrategy.ORDERED:
                fields[name] = new if new is not None else old
            elif strategy is MergeStrategy.BUILD:
                fields[name] = _merge_build(old, new, path + (name,))
            else:
                fields[name] = _merge_node_mapping(old, new, path, STRUCTURED_SERVICE_KEYS)
        return Service(**fields)
