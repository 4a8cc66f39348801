"""
Building blocks for version-specific schema rulesets.

A FieldRule describes what a node may look like: its allowed kinds, the
literal values a scalar may take, and the rules for its children. Rules are
plain immutable data; the walking logic lives in the validator.
"""
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, FrozenSet, Iterable, List, Mapping, Optional, Pattern, Tuple

from ..errors import ValidationError
from ..MODELS.node_tree import MappingNode, NodeKind

Constraint = Callable[[MappingNode], List[ValidationError]]

SCALAR = frozenset({NodeKind.SCALAR})
SEQUENCE = frozenset({NodeKind.SEQUENCE})
MAPPING = frozenset({NodeKind.MAPPING})


@dataclass(frozen=True)
class FieldRule:
    """
    Expected shape of one node.

    :param kinds: Node kinds the node may have.
    :param nullable: Whether an explicit null is accepted.
    :param choices: Allowed literal values for a scalar.
    :param pattern: Regular expression a scalar's text must match.
    :param items: Rule for every item of a sequence.
    :param fields: Rules for known keys of a mapping.
    :param values: Rule for values of a mapping with free-form keys.
    :param required: Keys a mapping must contain.
    :param key_pattern: Regular expression every mapping key must match.
    :param constraints: Cross-field checks run on a mapping.
    """
    kinds: FrozenSet[NodeKind]
    nullable: bool = False
    choices: Optional[FrozenSet[str]] = None
    pattern: Optional[Pattern] = None
    items: Optional["FieldRule"] = None
    fields: Optional[Mapping[str, "FieldRule"]] = None
    values: Optional["FieldRule"] = None
    required: FrozenSet[str] = frozenset()
    key_pattern: Optional[Pattern] = None
    constraints: Tuple[Constraint, ...] = field(default=(), compare=False)


def scalar(choices: Optional[Iterable[str]] = None, pattern: Optional[str] = None,
           nullable: bool = False) -> FieldRule:
    return FieldRule(
        SCALAR,
        nullable=nullable,
        choices=frozenset(choices) if choices is not None else None,
        pattern=re.compile(pattern) if pattern else None,
    )


def sequence(items: Optional[FieldRule] = None) -> FieldRule:
    return FieldRule(SEQUENCE, items=items or scalar())


def string_or_list() -> FieldRule:
    return FieldRule(SCALAR | SEQUENCE, items=scalar())


def mapping(fields: Optional[Mapping[str, FieldRule]] = None, values: Optional[FieldRule] = None,
            required: Iterable[str] = (), key_pattern: Optional[str] = None,
            constraints: Iterable[Constraint] = (), nullable: bool = False) -> FieldRule:
    return FieldRule(
        MAPPING,
        nullable=nullable,
        fields=MappingProxyType(dict(fields)) if fields is not None else None,
        values=values,
        required=frozenset(required),
        key_pattern=re.compile(key_pattern) if key_pattern else None,
        constraints=tuple(constraints),
    )


def key_value(nullable_values: bool = True) -> FieldRule:
    """A mapping of names to scalars, or a list of ``NAME=VALUE`` strings."""
    return FieldRule(
        MAPPING | SEQUENCE,
        items=scalar(),
        values=scalar(nullable=nullable_values),
    )


def one_of(*rules: FieldRule) -> FieldRule:
    """
    Combines rules that apply to different node kinds, e.g. a short string
    form and a long mapping form of the same field.
    """
    merged = FieldRule(frozenset())
    for rule in rules:
        merged = FieldRule(
            merged.kinds | rule.kinds,
            nullable=merged.nullable or rule.nullable,
            choices=merged.choices if merged.choices is not None else rule.choices,
            pattern=merged.pattern or rule.pattern,
            items=merged.items or rule.items,
            fields=merged.fields or rule.fields,
            values=merged.values or rule.values,
            required=merged.required | rule.required,
            key_pattern=merged.key_pattern or rule.key_pattern,
            constraints=merged.constraints + rule.constraints,
        )
    return merged


def mutually_exclusive(*keys: str) -> Constraint:
    """At most one of ``keys`` may be present."""
    def check(node: MappingNode) -> List[ValidationError]:
        present = [key for key in keys if key in node]
        if len(present) > 1:
            return [ValidationError(
                node.path,
                f"{' and '.join(repr(k) for k in present)} are mutually exclusive",
                "mutually-exclusive",
            )]
        return []
    return check


def requires_any(*keys: str) -> Constraint:
    """At least one of ``keys`` must be present."""
    def check(node: MappingNode) -> List[ValidationError]:
        if not any(key in node for key in keys):
            return [ValidationError(
                node.path,
                f"one of {', '.join(repr(k) for k in keys)} is required",
                "required-one-of",
            )]
        return []
    return check
