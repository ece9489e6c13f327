import pytest

from blueprint.error.exceptions import ContextValueError
from blueprint.templates.context import Context, ValueKind, as_context, kind_of, parse_value
from blueprint.templates.model import Variable, VariableType


def test_kind_of():
    """Values are classified into the closed set of kinds."""
    assert kind_of("x") is ValueKind.STRING
    assert kind_of(3) is ValueKind.INT
    assert kind_of(True) is ValueKind.BOOL
    assert kind_of(["a", "b"]) is ValueKind.STRING_LIST
    assert kind_of([]) is ValueKind.STRING_LIST


@pytest.mark.parametrize("value", [1.5, None, {"a": "b"}, [1, 2], object()])
def test_unsupported_values_are_rejected(value):
    with pytest.raises(ContextValueError):
        kind_of(value)

    with pytest.raises(ContextValueError, match="variable 'x'"):
        Context({"x": value})


def test_context_set_and_get():
    context = Context({"name": "app", "tags": ("a", "b")})
    context.set("port", 8080)

    assert context["name"] == "app"
    assert context["tags"] == ["a", "b"]
    assert context.get("missing", "fallback") == "fallback"
    assert context.kind("port") is ValueKind.INT
    assert "port" in context
    assert len(context) == 3


def test_context_rejects_empty_key():
    with pytest.raises(ContextValueError):
        Context().set("", "x")


def test_merge_other_side_wins():
    context = Context({"a": "1", "b": "2"})
    context.merge({"b": "override", "c": True})

    assert context == {"a": "1", "b": "override", "c": True}


def test_to_dict_is_a_copy():
    context = Context({"tags": ["a"]})
    data = context.to_dict()
    data["tags"].append("b")

    assert context["tags"] == ["a"]


def test_apply_defaults():
    variables = [
        Variable(name="name", type="string"),
        Variable(name="port", type="int", default=80),
        Variable(name="debug", type="bool", default=False),
    ]
    context = Context({"port": 8080})

    missing = context.apply_defaults(variables)

    assert missing == ["name"]
    assert context["port"] == 8080
    assert context["debug"] is False


@pytest.mark.parametrize("var_type,raw,expected", [
    (VariableType.STRING, "hello", "hello"),
    (VariableType.INT, " 42 ", 42),
    (VariableType.BOOL, "Yes", True),
    (VariableType.BOOL, "off", False),
    (VariableType.SELECT, "pg", "pg"),
    (VariableType.MULTISELECT, "a, b,,c", ["a", "b", "c"]),
])
def test_parse_value(var_type, raw, expected):
    assert parse_value(var_type, raw) == expected


def test_parse_value_rejects_bad_input():
    with pytest.raises(ContextValueError):
        parse_value(VariableType.INT, "forty")
    with pytest.raises(ContextValueError):
        parse_value(VariableType.BOOL, "maybe")


def test_as_context():
    context = Context({"a": "b"})
    assert as_context(context) is context
    assert as_context(None) == {}
    assert as_context({"x": 1})["x"] == 1
