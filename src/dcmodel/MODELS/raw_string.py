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
Strings that may contain variable references.
"""
from typing import Iterable, Mapping, Optional, Tuple

from ..errors import PathKey
from ..UTILS.string_interpolation import (
    InterpolationMode,
    Literal,
    Reference,
    Token,
    escape,
    resolve_tokens,
    tokenize,
)


class RawString:
    """
    A scalar as written in the document, interpolation syntax included.

    The token sequence is parsed on first use and cached. A RawString never
    changes after construction, so the same value can be resolved against
    any number of variable mappings.

    Examples:
        - RawString("nginx") is literal
        - RawString("${TAG:-latest}") references TAG
        - RawString("cost: $$5") is literal, its value is "cost: $5"
    """
    __slots__ = ("_text", "_tokens")

    def __init__(self, text: str, tokens: Optional[Tuple[Token, ...]] = None):
        if not isinstance(text, str):
            raise TypeError(f"RawString expects str, got {type(text).__name__}")
        self._text = text
        self._tokens = tokens

    @classmethod
    def literal(cls, value: str) -> "RawString":
        """Wraps plain text, escaping any '$' it contains."""
        return cls(escape(value))

    @classmethod
    def parse(cls, text: str, path: Iterable[PathKey] = ()) -> "RawString":
        """
        Builds a RawString and checks its syntax right away.

        :raises InterpolationSyntaxError: If the text is malformed.
        """
        return cls(text, tokenize(text, path))

    @property
    def text(self) -> str:
        return self._text

    @property
    def tokens(self) -> Tuple[Token, ...]:
        if self._tokens is None:
            self._tokens = tokenize(self._text)
        return self._tokens

    @property
    def references(self) -> Tuple[str, ...]:
        """Names of all referenced variables, in order of appearance."""
        return tuple(token.name for token in self.tokens if isinstance(token, Reference))

    @property
    def is_literal(self) -> bool:
        """True when the text holds no variable reference."""
        return not any(isinstance(token, Reference) for token in self.tokens)

    def unescape(self) -> str:
        """
        Returns the literal value of a reference-free string.

        :raises ValueError: If the string still contains references.
        """
        if not self.is_literal:
            raise ValueError(f"{self._text!r} contains variable references")
        return "".join(token.text for token in self.tokens if isinstance(token, Literal))

    def resolve(self, variables: Mapping[str, str],
                mode: InterpolationMode = InterpolationMode.LENIENT,
                path: Iterable[PathKey] = ()) -> str:
        """Returns the fully resolved value of this string."""
        return resolve_tokens(self.tokens, variables, mode, path)

    def __eq__(self, other):
        if not isinstance(other, RawString):
            return NotImplemented
        return self._text == other._text

    def __hash__(self):
        return hash(("RawString", self._text))

    def __str__(self) -> str:
        return self._text

    def __repr__(self) -> str:
        return f"RawString({self._text!r})"
