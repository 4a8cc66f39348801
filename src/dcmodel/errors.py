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
Error types raised while loading, validating, decoding, interpolating and
merging compose documents.

Every error carries the path of the offending node, counted from the
document root, so tools can point at the exact location.
"""
from typing import Any, Iterable, List, Optional, Sequence, Tuple, Union

PathKey = Union[str, int]
Path = Tuple[PathKey, ...]


def format_path(path: Sequence[PathKey]) -> str:
    """
    Renders a node path as ``services.web.ports[0]``.

    :param path: Mapping keys and sequence indices from the root.
    :return: A dotted path, or ``<root>`` for the empty path.
    """
    if not path:
        return "<root>"
    text = ""
    for key in path:
        if isinstance(key, int):
            text += f"[{key}]"
        elif text:
            text += f".{key}"
        else:
            text = str(key)
    return text


class ComposeError(Exception):
    """
    Base class for all dcmodel errors.
    """
    def __init__(self, message: str, path: Iterable[PathKey] = ()):
        self.message = message
        self.path: Path = tuple(path)
        super().__init__(f"{format_path(self.path)}: {message}")


class UnsupportedVersion(ComposeError, ValueError):
    """
    The ``version`` field names a version with no registered schema.
    """
    def __init__(self, version: str, known_versions: Sequence[str], path: Iterable[PathKey] = ("version",)):
        self.version = version
        self.known_versions = list(known_versions)
        super().__init__(
            f"unsupported compose version {version!r} (known versions: {', '.join(self.known_versions)})",
            path,
        )


class ParseError(ComposeError):
    """
    The underlying YAML/JSON text could not be tokenized.
    """
    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None):
        self.line = line
        self.column = column
        if line is not None:
            message = f"{message} (line {line}, column {column})"
        super().__init__(message)


class ValidationError(ComposeError):
    """
    A single schema violation. The validator returns these as values.
    """
    def __init__(self, path: Iterable[PathKey], message: str, rule: str):
        self.rule = rule
        super().__init__(message, path)

    def __eq__(self, other):
        if not isinstance(other, ValidationError):
            return NotImplemented
        return (self.path, self.message, self.rule) == (other.path, other.message, other.rule)

    def __hash__(self):
        return hash((self.path, self.message, self.rule))

    def __repr__(self) -> str:
        return f"ValidationError({format_path(self.path)!r}, {self.message!r}, rule={self.rule!r})"


class ValidationFailed(ComposeError):
    """
    Raised when a document has one or more schema violations.
    """
    def __init__(self, errors: List[ValidationError]):
        self.errors = list(errors)
        summary = "; ".join(str(e) for e in self.errors[:3])
        if len(self.errors) > 3:
            summary += f"; ... ({len(self.errors) - 3} more)"
        super().__init__(f"{len(self.errors)} validation error(s): {summary}")


class MalformedField(ComposeError, ValueError):
    """
    A node matches none of the shapes its field accepts.
    """
    def __init__(self, path: Iterable[PathKey], expected: str, value: Any = None):
        self.expected = expected
        self.value = value
        message = f"expected {expected}"
        if value is not None:
            message += f", got {value!r}"
        super().__init__(message, path)


class InvalidImageReference(MalformedField):
    """
    Image text does not follow ``[registry/]repository[:tag|@digest]``.
    """
    def __init__(self, path: Iterable[PathKey], value: str, reason: str):
        self.reason = reason
        super().__init__(path, f"image reference ({reason})", value)


class InterpolationSyntaxError(MalformedField):
    """
    A string contains a ``$`` that starts no valid variable reference.
    """
    def __init__(self, path: Iterable[PathKey], value: str, position: int):
        self.position = position
        super().__init__(path, f"valid interpolation syntax at offset {position} (use '$$' for a literal '$')", value)


class UndefinedVariable(ComposeError, LookupError):
    """
    A referenced variable is missing from the supplied mapping.
    """
    def __init__(self, name: str, message: Optional[str] = None, path: Iterable[PathKey] = ()):
        self.name = name
        self.detail = message
        text = f"variable {name!r} is not set"
        if message:
            text += f": {message}"
        super().__init__(text, path)


class MergeTypeConflict(ComposeError, TypeError):
    """
    Two layers hold structurally incompatible values at the same path.
    """
    def __init__(self, path: Iterable[PathKey], base_kind: str, override_kind: str):
        self.base_kind = base_kind
        self.override_kind = override_kind
        super().__init__(f"cannot merge {override_kind} over {base_kind}", path)
