import logging
import random

import pytest
from dcmodel.errors import InterpolationSyntaxError, UndefinedVariable
from dcmodel.MODELS.raw_string import RawString
from dcmodel.UTILS.string_interpolation import (
    EnvironmentInterpolator,
    InterpolationMode,
    Literal,
    Reference,
    tokenize,
)


def test_tokenize_mixed_text():
    tokens = tokenize("pre-${A:-x}-$B-$$-end")
    assert tokens == (
        Literal("pre-"),
        Reference("A", ":-", "x", "${A:-x}"),
        Literal("-"),
        Reference("B", None, None, "$B"),
        Literal("-$-end"),
    )


@pytest.mark.parametrize("text", ["$", "cost $", "${", "${}", "${ x}", "${x!}", "$1"])
def test_invalid_syntax(text):
    with pytest.raises(InterpolationSyntaxError):
        tokenize(text, ("services", "web", "image"))


def test_syntax_error_carries_path():
    with pytest.raises(InterpolationSyntaxError) as excinfo:
        RawString.parse("${", ("services", "web", "command"))
    assert excinfo.value.path == ("services", "web", "command")


def test_default_when_absent_or_empty():
    raw = RawString("${FOO:-bar}")
    assert raw.resolve({}) == "bar"
    assert raw.resolve({"FOO": ""}) == "bar"
    assert raw.resolve({"FOO": "x"}) == "x"


def test_default_when_absent_only():
    raw = RawString("${FOO-bar}")
    assert raw.resolve({}) == "bar"
    assert raw.resolve({"FOO": ""}) == ""


def test_required_variable_message():
    with pytest.raises(UndefinedVariable) as excinfo:
        RawString("${DB_HOST:?database host is required}").resolve({})
    assert excinfo.value.name == "DB_HOST"
    assert excinfo.value.detail == "database host is required"
    assert RawString("${DB_HOST?oops}").resolve({"DB_HOST": ""}) == ""


def test_alternative_value():
    assert RawString("${DEBUG:+--verbose}").resolve({"DEBUG": "1"}) == "--verbose"
    assert RawString("${DEBUG:+--verbose}").resolve({"DEBUG": ""}) == ""
    assert RawString("${DEBUG+--verbose}").resolve({"DEBUG": ""}) == "--verbose"


def test_lenient_missing_variable_is_blank(caplog):
    with caplog.at_level(logging.WARNING):
        assert RawString("a${MISSING}b").resolve({}) == "ab"
    assert "MISSING variable is not set" in caplog.text


def test_strict_missing_variable_fails():
    with pytest.raises(UndefinedVariable):
        RawString("$MISSING").resolve({}, InterpolationMode.STRICT)


def test_resolution_is_not_recursive():
    assert RawString("$A").resolve({"A": "${B}", "B": "x"}) == "${B}"


def test_same_value_resolves_against_different_mappings():
    raw = RawString("nginx:${TAG}")
    assert raw.resolve({"TAG": "1"}) == "nginx:1"
    assert raw.resolve({"TAG": "2"}) == "nginx:2"
    assert raw.text == "nginx:${TAG}"


def test_literal_escapes_dollar():
    raw = RawString.literal("cost: $5")
    assert raw.text == "cost: $$5"
    assert raw.is_literal
    assert raw.unescape() == "cost: $5"


def test_unescape_refuses_references():
    with pytest.raises(ValueError):
        RawString("$A").unescape()


def test_references_listed_in_order():
    assert RawString("$A ${B:-x} $$C").references == ("A", "B")


def test_environment_interpolator():
    assert EnvironmentInterpolator.interpolate("${A}-$B", {"A": "1", "B": "2"}) == "1-2"
    with pytest.raises(InterpolationSyntaxError):
        EnvironmentInterpolator.validate("${")


def test_required_variable_may_be_empty():
    assert RawString("${FOO:?m}").resolve({"FOO": ""}) == ""
    assert RawString("${FOO?m}").resolve({"FOO": ""}) == ""


def test_resolution_is_total_when_every_name_is_set():
    forms = ["${{{0}}}", "${{{0}:-d}}", "${{{0}-d}}", "${{{0}:?m}}", "${{{0}?m}}",
             "${{{0}:+a}}", "${{{0}+a}}", "${0}", "$$", "x", "-"]
    names = ["A", "B_1", "_c"]
    for _ in range(300):
        text = "".join(random.choice(forms).format(random.choice(names))
                       for _ in range(random.randint(0, 6)))
        raw = RawString.parse(text)
        variables = {name: random.choice(["", "v", "$x"]) for name in raw.references}
        first = raw.resolve(variables, InterpolationMode.STRICT)
        assert raw.resolve(variables, InterpolationMode.STRICT) == first
