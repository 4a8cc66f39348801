"""
Selects the schema ruleset matching a document's ``version`` field.
"""
import logging
from typing import Mapping, NamedTuple, Optional

from ..errors import UnsupportedVersion
from ..MODELS.node_tree import MappingNode, Node, ScalarNode, to_python
from .registry import LEGACY_VERSION, REGISTRY, SchemaRuleset

logger = logging.getLogger(__name__)


class DetectedVersion(NamedTuple):
    """A version identifier and the ruleset registered for it."""
    version: str
    ruleset: SchemaRuleset


class VersionDetector:
    """
    Reads the top-level ``version`` scalar. A document without one is a
    legacy version 1 file.
    """
    def __init__(self, registry: Optional[Mapping[str, SchemaRuleset]] = None):
        self.registry = registry if registry is not None else REGISTRY

    def detect(self, tree: Node) -> DetectedVersion:
        """
        Determines the version of a document tree.

        :param tree: Root node of the document.
        :return: The version and its ruleset.
        :raises UnsupportedVersion: If the version is not registered.
        """
        node = tree.get("version") if isinstance(tree, MappingNode) else None
        if node is None:
            version = LEGACY_VERSION
        elif isinstance(node, ScalarNode) and not node.is_null:
            version = node.as_text().strip()
        else:
            raise UnsupportedVersion(str(to_python(node)), list(self.registry), node.path)

        ruleset = self.registry.get(version)
        if ruleset is None:
            raise UnsupportedVersion(version, list(self.registry), node.path if node is not None else ("version",))
        logger.debug("Detected compose file version %s", version)
        return DetectedVersion(version, ruleset)
