"""
Utilities for string interpolation using a supplied variable mapping.
"""
import logging
import re
from enum import Enum
from typing import Iterable, Mapping, NamedTuple, Optional, Tuple, Union

from ..errors import InterpolationSyntaxError, PathKey, UndefinedVariable

logger = logging.getLogger(__name__)

# $$ | $NAME | ${NAME} | ${NAME<op><arg>} | anything else after a '$' is invalid
_TOKEN_PATTERN = re.compile(
    r"""
    \$(?:
        (?P<escaped>\$)
      | (?P<named>[A-Za-z_][A-Za-z0-9_]*)
      | \{(?P<braced>[A-Za-z_][A-Za-z0-9_]*)(?:(?P<operator>:?[-?+])(?P<argument>[^}]*))?\}
      | (?P<invalid>)
    )
    """,
    re.VERBOSE,
)


class InterpolationMode(str, Enum):
    """
    How plain ``${NAME}`` and ``$NAME`` references treat a missing variable.
    """
    LENIENT = "lenient"
    STRICT = "strict"


class Literal(NamedTuple):
    """A run of literal text, with ``$$`` escapes already collapsed."""
    text: str


class Reference(NamedTuple):
    """
    A variable reference.

    ``operator`` is one of ``None``, ``:-``, ``-``, ``:?``, ``?``, ``:+``, ``+``.
    """
    name: str
    operator: Optional[str]
    argument: Optional[str]
    source: str


Token = Union[Literal, Reference]


def tokenize(text: str, path: Iterable[PathKey] = ()) -> Tuple[Token, ...]:
    """
    Splits interpolation text into literal runs and variable references.

    :param text: The raw string as written in the document.
    :param path: Location of the string, used for error reporting.
    :return: Tokens in order; adjacent literal text is joined.
    :raises InterpolationSyntaxError: If a ``$`` starts no valid reference.
    """
    tokens = []
    pending = ""
    position = 0
    for match in _TOKEN_PATTERN.finditer(text):
        pending += text[position:match.start()]
        position = match.end()
        if match.group("invalid") is not None:
            raise InterpolationSyntaxError(path, text, match.start())
        if match.group("escaped") is not None:
            pending += "$"
            continue
        if pending:
            tokens.append(Literal(pending))
            pending = ""
        name = match.group("named") or match.group("braced")
        tokens.append(Reference(name, match.group("operator"), match.group("argument"), match.group(0)))
    pending += text[position:]
    if pending:
        tokens.append(Literal(pending))
    return tuple(tokens)


def escape(text: str) -> str:
    """Escapes literal text so that it survives interpolation unchanged."""
    return text.replace("$", "$$")


def resolve_reference(reference: Reference, variables: Mapping[str, str],
                      mode: InterpolationMode = InterpolationMode.LENIENT,
                      path: Iterable[PathKey] = ()) -> str:
    """
    Resolves a single reference against the variable mapping.

    ``:-`` and ``:+`` treat an empty value like a missing one; both ``:?``
    and ``?`` fail only when the variable is missing.
    """
    value = variables.get(reference.name)
    operator = reference.operator
    argument = reference.argument or ""

    if operator is None:
        if value is not None:
            return value
        if mode is InterpolationMode.STRICT:
            raise UndefinedVariable(reference.name, path=path)
        logger.warning("The %s variable is not set. Defaulting to a blank string.", reference.name)
        return ""
    if operator == ":-":
        return value if value else argument
    if operator == "-":
        return value if value is not None else argument
    if operator in (":?", "?"):
        if value is None:
            raise UndefinedVariable(reference.name, reference.argument, path)
        return value
    if operator == ":+":
        return argument if value else ""
    # "+"
    return argument if value is not None else ""


def resolve_tokens(tokens: Iterable[Token], variables: Mapping[str, str],
                   mode: InterpolationMode = InterpolationMode.LENIENT,
                   path: Iterable[PathKey] = ()) -> str:
    """
    Joins tokens into a fully resolved string. Substituted values are not
    scanned again.
    """
    path = tuple(path)
    parts = []
    for token in tokens:
        if isinstance(token, Literal):
            parts.append(token.text)
        else:
            parts.append(resolve_reference(token, variables, mode, path))
    return "".join(parts)


class EnvironmentInterpolator:
    """
    Utility for interpolating variables in strings.
    Supports $VAR, ${VAR}, ${VAR:-default}, ${VAR-default}, ${VAR:?error},
    ${VAR?error}, ${VAR:+value}, ${VAR+value} and the $$ escape.
    """
    @staticmethod
    def interpolate(template: str, context: Mapping[str, str],
                    mode: InterpolationMode = InterpolationMode.LENIENT) -> str:
        """
        Interpolates variables in the template string using the provided context.

        :param template: The string containing $VAR or ${VAR} placeholders.
        :param context: The variables to substitute.
        :param mode: Whether a missing plain reference is blank or an error.
        :return: The interpolated string.
        :raises UndefinedVariable: If a required variable is missing.
        :raises InterpolationSyntaxError: If the template is malformed.
        """
        return resolve_tokens(tokenize(template), context, mode)

    @staticmethod
    def validate(template: str) -> None:
        """
        Checks interpolation syntax without resolving anything.

        :raises InterpolationSyntaxError: If the template is malformed.
        """
        tokenize(template)
