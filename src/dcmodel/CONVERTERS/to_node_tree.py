# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Converters for rendering Documents back into NodeTrees.
"""
from typing import Any, Mapping, Optional

from ..CODECS.document_codec import encode_document
from ..CODECS.service_codec import encode_field
from ..errors import Path
from ..MANAGERS.interpolation_engine import InterpolationEngine
from ..MODELS.node_tree import MappingNode, Node, ScalarNode, SequenceNode
from ..MODELS.orchestration_config import Document
from ..MODELS.raw_string import RawString
from ..UTILS.string_interpolation import InterpolationMode


def unescape_tree(node: Node) -> Node:
    """Replaces every ``$$`` escape of a reference-free tree with ``$``."""
    if isinstance(node, ScalarNode):
        if isinstance(node.value, str) and "$" in node.value:
            return ScalarNode(RawString(node.value).unescape(), node.path, node.mark)
        return node
    if isinstance(node, SequenceNode):
        return SequenceNode([unescape_tree(item) for item in node], node.path, node.mark)
    if isinstance(node, MappingNode):
        return MappingNode([(key, unescape_tree(child)) for key, child in node.items()], node.path, node.mark)
    return node


class DocumentSerializer:
    """
    Converts a Document into a NodeTree in canonical shape.

    Interpolation text is written back as it was read, so the output parses
    into an equal Document.
    """
    def serialize(self, document: Document, variables: Optional[Mapping[str, str]] = None,
                  mode: InterpolationMode = InterpolationMode.LENIENT) -> MappingNode:
        """
        Serializes a document.

        :param document: The document to render.
        :param variables: When given, render final values: every reference is
            resolved against this mapping and no ``$`` is escaped. Such output
            is meant for consumers, not for re-parsing.
        :param mode: Interpolation mode used with ``variables``.
        :return: The root mapping node.
        """
        if variables is None:
            return encode_document(document)
        resolved = InterpolationEngine(variables, mode).resolve_document(document)
        return unescape_tree(encode_document(resolved))

    def serialize_field(self, name: str, value: Any, path: Path = ()) -> Node:
        """Serializes one modeled service field value."""
        return encode_field(name, value, path or (name,))
