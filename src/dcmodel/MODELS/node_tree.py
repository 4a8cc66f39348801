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
Version-agnostic tree of scalar, sequence and mapping nodes.

This is the shape every loader hands to the rest of the pipeline. Each node
knows its path from the document root and, when it came from text, where in
the text it started. Path and mark are location metadata: two nodes compare
equal when their contents are equal, wherever they live.
"""
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, NamedTuple, Optional, Tuple, Union

from ..errors import Path, PathKey

Scalar = Union[str, int, float, bool, None]


class NodeKind(str, Enum):
    """
    The three node shapes.
    """
    SCALAR = "scalar"
    SEQUENCE = "sequence"
    MAPPING = "mapping"


class SourceMark(NamedTuple):
    """1-based position of a node in its source text."""
    line: int
    column: int


class Node:
    """
    Base class for tree nodes. Not instantiated directly.
    """
    __slots__ = ("path", "mark")
    kind: NodeKind

    def __init__(self, path: Iterable[PathKey] = (), mark: Optional[SourceMark] = None):
        self.path: Path = tuple(path)
        self.mark = mark

    @property
    def is_scalar(self) -> bool:
        return self.kind is NodeKind.SCALAR

    @property
    def is_sequence(self) -> bool:
        return self.kind is NodeKind.SEQUENCE

    @property
    def is_mapping(self) -> bool:
        return self.kind is NodeKind.MAPPING

    def describe(self) -> str:
        """Short human-readable shape description used in error messages."""
        return self.kind.value

    def relocate(self, path: Iterable[PathKey]) -> "Node":
        """Returns a copy of this subtree rooted at ``path``."""
        raise NotImplementedError


class ScalarNode(Node):
    """
    A leaf value.

    ``text`` is the original source spelling when the node came from YAML;
    it lets codecs recover ``yes`` or ``3.10`` after YAML typed them.
    """
    __slots__ = ("value", "text")
    kind = NodeKind.SCALAR

    def __init__(self, value: Scalar, path: Iterable[PathKey] = (), mark: Optional[SourceMark] = None,
                 text: Optional[str] = None):
        super().__init__(path, mark)
        self.value = value
        self.text = text

    @property
    def is_null(self) -> bool:
        return self.value is None

    def as_text(self) -> str:
        """
        Returns the scalar as a string, preferring the source spelling for
        non-string values.
        """
        if isinstance(self.value, str):
            return self.value
        if self.text is not None and self.value is not None:
            return self.text
        if isinstance(self.value, bool):
            return "true" if self.value else "false"
        if self.value is None:
            return ""
        return str(self.value)

    def describe(self) -> str:
        if self.value is None:
            return "null"
        return f"scalar {type(self.value).__name__}"

    def relocate(self, path: Iterable[PathKey]) -> "ScalarNode":
        return ScalarNode(self.value, path, self.mark, self.text)

    def __eq__(self, other):
        if not isinstance(other, ScalarNode):
            return NotImplemented
        # bool is an int subclass; True must not equal 1 here
        return type(self.value) is type(other.value) and self.value == other.value

    def __hash__(self):
        return hash((type(self.value), self.value))

    def __repr__(self) -> str:
        return f"ScalarNode({self.value!r})"


class SequenceNode(Node):
    """
    An ordered list of child nodes.
    """
    __slots__ = ("items",)
    kind = NodeKind.SEQUENCE

    def __init__(self, items: Iterable[Node] = (), path: Iterable[PathKey] = (),
                 mark: Optional[SourceMark] = None):
        super().__init__(path, mark)
        self.items: Tuple[Node, ...] = tuple(items)

    def __iter__(self) -> Iterator[Node]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def __getitem__(self, index: int) -> Node:
        return self.items[index]

    def relocate(self, path: Iterable[PathKey]) -> "SequenceNode":
        path = tuple(path)
        return SequenceNode([item.relocate(path + (i,)) for i, item in enumerate(self.items)], path, self.mark)

    def __eq__(self, other):
        if not isinstance(other, SequenceNode):
            return NotImplemented
        return self.items == other.items

    def __hash__(self):
        return hash(self.items)

    def __repr__(self) -> str:
        return f"SequenceNode({list(self.items)!r})"


class MappingNode(Node):
    """
    An insertion-ordered mapping of string keys to child nodes.
    """
    __slots__ = ("entries", "_index")
    kind = NodeKind.MAPPING

    def __init__(self, entries: Iterable[Tuple[str, Node]] = (), path: Iterable[PathKey] = (),
                 mark: Optional[SourceMark] = None):
        super().__init__(path, mark)
        self.entries: Tuple[Tuple[str, Node], ...] = tuple(entries)
        self._index: Dict[str, Node] = dict(self.entries)

    def get(self, key: str, default: Optional[Node] = None) -> Optional[Node]:
        return self._index.get(key, default)

    def keys(self) -> List[str]:
        return [key for key, _ in self.entries]

    def items(self) -> Tuple[Tuple[str, Node], ...]:
        return self.entries

    def __contains__(self, key: object) -> bool:
        return key in self._index

    def __getitem__(self, key: str) -> Node:
        return self._index[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())

    def __len__(self) -> int:
        return len(self.entries)

    def relocate(self, path: Iterable[PathKey]) -> "MappingNode":
        path = tuple(path)
        return MappingNode([(key, value.relocate(path + (key,))) for key, value in self.entries], path, self.mark)

    def __eq__(self, other):
        if not isinstance(other, MappingNode):
            return NotImplemented
        return self._index == other._index

    def __hash__(self):
        return hash(tuple(sorted(self._index)))

    def __repr__(self) -> str:
        return f"MappingNode({dict(self.entries)!r})"


def from_python(value: Any, path: Iterable[PathKey] = ()) -> Node:
    """
    Builds a NodeTree from plain Python data (dicts, lists, scalars).

    :param value: The data to convert.
    :param path: Path of the resulting root node.
    :return: The root node.
    :raises TypeError: If the data holds something that is not a scalar, list or dict.
    """
    path = tuple(path)
    if isinstance(value, Node):
        return value.relocate(path)
    if isinstance(value, dict):
        return MappingNode([(str(k), from_python(v, path + (str(k),))) for k, v in value.items()], path)
    if isinstance(value, (list, tuple)):
        return SequenceNode([from_python(v, path + (i,)) for i, v in enumerate(value)], path)
    if value is None or isinstance(value, (str, int, float, bool)):
        return ScalarNode(value, path)
    raise TypeError(f"cannot convert {type(value).__name__} to a node")


def to_python(node: Node) -> Any:
    """
    Converts a NodeTree back to plain Python data.

    :param node: Root of the tree.
    :return: Nested dicts, lists and scalars.
    """
    if isinstance(node, MappingNode):
        return {key: to_python(value) for key, value in node.entries}
    if isinstance(node, SequenceNode):
        return [to_python(item) for item in node.items]
    return node.value
