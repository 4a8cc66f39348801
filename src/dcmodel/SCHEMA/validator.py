"""
Structural validation of NodeTrees against a version ruleset.
"""
import logging
from typing import TYPE_CHECKING, List

from ..errors import InterpolationSyntaxError, ValidationError
from ..MODELS.node_tree import MappingNode, Node, ScalarNode, SequenceNode
from ..MODELS.orchestration_config import Document
from ..UTILS.string_interpolation import tokenize
from .rules import FieldRule

if TYPE_CHECKING:
    from .registry import SchemaRuleset

logger = logging.getLogger(__name__)


class SchemaValidator:
    """
    Walks a NodeTree against a version ruleset and collects every violation.

    Validation never stops at the first problem: each independent violation
    is reported with the exact path of the offending node. Unknown keys are
    accepted (they become passthrough data) unless ``strict_unknown_keys``
    is set.
    """
    def __init__(self, ruleset: "SchemaRuleset", strict_unknown_keys: bool = False):
        """
        Initializes the validator.

        :param ruleset: The rules of the document's version.
        :param strict_unknown_keys: Report keys the ruleset does not know.
        """
        self.ruleset = ruleset
        self.strict_unknown_keys = strict_unknown_keys

    def validate(self, tree: Node) -> List[ValidationError]:
        """
        Validates a whole document tree.

        :param tree: Root node of the document.
        :return: All violations, in document order. Empty if the tree is valid.
        """
        errors: List[ValidationError] = []
        self._check(tree, self.ruleset.document, errors)
        self._check_interpolation(tree, errors)
        logger.debug("Version %s validation found %d violation(s)", self.ruleset.version, len(errors))
        return errors

    def _check(self, node: Node, rule: FieldRule, errors: List[ValidationError]) -> None:
        if isinstance(node, ScalarNode) and node.is_null:
            if not rule.nullable:
                errors.append(ValidationError(node.path, f"expected {self._kinds(rule)}, found null", "type"))
            return
        if node.kind not in rule.kinds:
            errors.append(ValidationError(
                node.path, f"expected {self._kinds(rule)}, found {node.describe()}", "type"
            ))
            return

        if isinstance(node, ScalarNode):
            self._check_scalar(node, rule, errors)
        elif isinstance(node, SequenceNode):
            if rule.items is not None:
                for item in node:
                    self._check(item, rule.items, errors)
        elif isinstance(node, MappingNode):
            self._check_mapping(node, rule, errors)

    def _check_scalar(self, node: ScalarNode, rule: FieldRule, errors: List[ValidationError]) -> None:
        text = node.as_text()
        if "$" in text:
            # the real value is only known after interpolation
            return
        if rule.choices is not None and text not in rule.choices:
            errors.append(ValidationError(
                node.path,
                f"{text!r} is not one of {', '.join(sorted(rule.choices))}",
                "enum",
            ))
        if rule.pattern is not None and not rule.pattern.match(text):
            errors.append(ValidationError(node.path, f"{text!r} has an invalid format", "format"))

    def _check_mapping(self, node: MappingNode, rule: FieldRule, errors: List[ValidationError]) -> None:
        for key in sorted(rule.required):
            if key not in node:
                errors.append(ValidationError(node.path, f"missing required key {key!r}", "required"))

        for key, child in node.items():
            if rule.key_pattern is not None and not rule.key_pattern.match(key):
                errors.append(ValidationError(child.path, f"invalid name {key!r}", "name"))
            if rule.fields is not None and key in rule.fields:
                self._check(child, rule.fields[key], errors)
            elif rule.values is not None:
                self._check(child, rule.values, errors)
            elif rule.fields is not None and self.strict_unknown_keys and not key.startswith("x-"):
                errors.append(ValidationError(child.path, f"unknown key {key!r}", "unknown-key"))

        for constraint in rule.constraints:
            errors.extend(constraint(node))

    def _check_interpolation(self, node: Node, errors: List[ValidationError]) -> None:
        if isinstance(node, ScalarNode):
            if isinstance(node.value, str) and "$" in node.value:
                try:
                    tokenize(node.value, node.path)
                except InterpolationSyntaxError as e:
                    errors.append(ValidationError(e.path, e.message, "interpolation"))
        elif isinstance(node, SequenceNode):
            for item in node:
                self._check_interpolation(item, errors)
        elif isinstance(node, MappingNode):
            for _, child in node.items():
                self._check_interpolation(child, errors)

    @staticmethod
    def _kinds(rule: FieldRule) -> str:
        names = sorted(kind.value for kind in rule.kinds)
        return " or ".join(names) if names else "nothing"


def check_references(document: Document) -> List[ValidationError]:
    """
    Checks cross-service references of a (merged) document.

    Run this after merging: an override layer may declare a service the base
    layer depends on.

    :return: One violation per ``depends_on`` entry naming a missing service.
    """
    errors = []
    root = () if document.is_legacy else ("services",)
    for name, service in document.services.items():
        for dependency in service.depends_on:
            if dependency not in document.services:
                errors.append(ValidationError(
                    root + (name, "depends_on", dependency),
                    f"service {name!r} depends on undefined service {dependency!r}",
                    "unknown-dependency",
                ))
    return errors


def check_image_sources(document: Document) -> List[ValidationError]:
    """
    Checks that every service of a (merged) document has an image or a
    build. Override layers may leave both out.
    """
    root = () if document.is_legacy else ("services",)
    return [
        ValidationError(root + (name,), "one of 'image', 'build' is required", "required-one-of")
        for name, service in document.services.items()
        if service.image is None and service.build is None
    ]
