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
Loads YAML (and therefore JSON) text into a NodeTree.
"""

import yaml

from ..errors import ParseError, Path
from ..MODELS.node_tree import MappingNode, Node, ScalarNode, SequenceNode, SourceMark


def _mark(node: yaml.Node) -> SourceMark:
    return SourceMark(node.start_mark.line + 1, node.start_mark.column + 1)


class YamlLoader:
    """
    Converts PyYAML's representation graph into NodeTree nodes.

    Anchors, aliases and ``<<`` merge keys are expanded; scalar values are
    typed with the YAML safe schema and keep their source text.
    """
    def load(self, content: str) -> Node:
        """
        Parses a single YAML/JSON document.

        :param content: The document text.
        :return: The root node; an empty document yields an empty mapping.
        :raises ParseError: If the text is not valid YAML.
        """
        loader = yaml.SafeLoader(content)
        try:
            root = loader.get_single_node()
            if root is None:
                return MappingNode()
            return self._convert(loader, root, ())
        except yaml.MarkedYAMLError as e:
            mark = e.problem_mark or e.context_mark
            if mark is None:
                raise ParseError(str(e)) from e
            raise ParseError(e.problem or str(e), mark.line + 1, mark.column + 1) from e
        except yaml.YAMLError as e:
            raise ParseError(str(e)) from e
        finally:
            loader.dispose()

    def load_file(self, path: str) -> Node:
        """
        Parses a YAML/JSON file from a path.

        :param path: Path to the file.
        :return: The root node.
        """
        with open(path, 'r') as f:
            content = f.read()
        return self.load(content)

    def _convert(self, loader: yaml.SafeLoader, node: yaml.Node, path: Path) -> Node:
        if isinstance(node, yaml.MappingNode):
            loader.flatten_mapping(node)
            entries = {}
            for key_node, value_node in node.value:
                key = self._key(loader, key_node)
                entries[key] = self._convert(loader, value_node, path + (key,))
            return MappingNode(entries.items(), path, _mark(node))
        if isinstance(node, yaml.SequenceNode):
            items = [self._convert(loader, item, path + (i,)) for i, item in enumerate(node.value)]
            return SequenceNode(items, path, _mark(node))
        value = loader.construct_object(node, deep=True)
        if value is not None and not isinstance(value, (str, int, float, bool)):
            # timestamps, binary and other tagged scalars stay as written
            value = node.value
        return ScalarNode(value, path, _mark(node), node.value)

    def _key(self, loader: yaml.SafeLoader, node: yaml.Node) -> str:
        if not isinstance(node, yaml.ScalarNode):
            raise ParseError("mapping keys must be scalars", *_mark(node))
        value = loader.construct_object(node, deep=True)
        if isinstance(value, str):
            return value
        return node.value


def load_node_tree(content: str) -> Node:
    """Parses text into a NodeTree."""
    return YamlLoader().load(content)


def load_node_tree_file(path: str) -> Node:
    """Parses a file into a NodeTree."""
    return YamlLoader().load_file(path)
