"""
Decoding and encoding of whole compose documents.
"""
import logging

from ..MODELS.node_tree import MappingNode, Node, ScalarNode
from ..MODELS.orchestration_config import Document
from ..SCHEMA.registry import SchemaRuleset
from .common import build_model, encode_passthrough, malformed
from .service_codec import decode_service, encode_service

logger = logging.getLogger(__name__)

DECLARATION_KEYS = ("volumes", "networks")


def _declarations(node: Node):
    if isinstance(node, ScalarNode) and node.is_null:
        return {}
    if not isinstance(node, MappingNode):
        raise malformed(node, "a mapping of declarations")
    return dict(node.items())


def decode_document(tree: Node, ruleset: SchemaRuleset) -> Document:
    """
    Converts a validated tree into a Document.

    :param tree: Root node of the document.
    :param ruleset: The ruleset of the document's version.
    :return: The canonical document.
    :raises MalformedField: If a modeled field has an unusable shape.
    """
    if not isinstance(tree, MappingNode):
        raise malformed(tree, "a mapping at the document root")

    services_node = ruleset.services_node(tree)
    services = {}
    if services_node is not None:
        for name, node in services_node.items():
            services[name] = decode_service(node, ruleset.service_fields)

    fields = {"version": ruleset.version, "services": services}
    if not ruleset.legacy:
        extras = {}
        for key, node in tree.items():
            if key in DECLARATION_KEYS:
                fields[key] = _declarations(node)
            elif key not in ("version", "services"):
                extras[key] = node
        fields["extras"] = extras

    logger.debug("Decoded %d service(s) for version %s", len(services), ruleset.version)
    return build_model(Document, tree.path, "a valid document", None, **fields)


def encode_document(document: Document) -> MappingNode:
    """
    Converts a Document back into a tree in canonical shape.

    Version 1 documents are written without a ``version`` key, with their
    services at the root.
    """
    if document.is_legacy:
        return MappingNode(
            [(name, encode_service(service, (name,))) for name, service in document.services.items()]
        )

    entries = [("version", ScalarNode(document.version, ("version",)))]
    entries.append(("services", MappingNode(
        [(name, encode_service(service, ("services", name))) for name, service in document.services.items()],
        ("services",),
    )))
    if document.volumes:
        entries.append(("volumes", MappingNode(encode_passthrough(document.volumes, ("volumes",)), ("volumes",))))
    if document.networks:
        entries.append(("networks", MappingNode(encode_passthrough(document.networks, ("networks",)), ("networks",))))
    entries.extend(encode_passthrough(document.extras, ()))
    return MappingNode(entries)
