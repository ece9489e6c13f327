import pytest

from blueprint.error.exceptions import NotFoundError, ParseError, ValidationError
from blueprint.templates.loader import TemplateLoader, join_location
from blueprint.templates.model import TemplateType


def test_join_location():
    assert join_location(".", "a/b") == "a/b"
    assert join_location("projects/web", "../../features/x") == "features/x"
    assert join_location("projects/web", "./main.go") == "projects/web/main.go"


def test_load_rewrites_sources(loader, web_tree):
    """File sources become relative to the tree root and the location is recorded."""
    template = loader.load("projects/web")

    assert template.name == "web"
    assert template.type is TemplateType.PROJECT
    assert template.location == "projects/web"
    assert [f.src for f in template.files] == ["projects/web/main.go.tmpl", "projects/web/static"]
    assert [f.dest for f in template.files] == ["{{ .pkg }}/main.go", "static"]


def test_load_accepts_definition_path(loader, web_tree):
    by_dir = loader.load("features/logging")
    by_file = loader.load("features/logging/template.yaml")

    assert by_dir == by_file
    assert loader.identity("features/logging/template.yaml") == loader.identity("features/logging/")


def test_load_missing_template(loader):
    with pytest.raises(NotFoundError, match="template not found"):
        loader.load("features/nope")


def test_load_invalid_yaml(loader, tmp_path):
    (tmp_path / "broken").mkdir()
    (tmp_path / "broken" / "template.yaml").write_text("name: [unclosed\n")

    with pytest.raises(ParseError, match="failed to parse template YAML"):
        loader.load("broken")


def test_load_non_mapping(loader, tmp_path):
    (tmp_path / "list").mkdir()
    (tmp_path / "list" / "template.yaml").write_text("- a\n- b\n")

    with pytest.raises(ParseError, match="must be a mapping"):
        loader.load("list")


def test_load_missing_name_fails_validation(loader, make_template, define):
    """A definition without a name never reaches composition."""
    make_template("features/anon", define(""))

    with pytest.raises(ValidationError, match="name"):
        loader.load("features/anon")


def test_load_requires_files(loader, make_template, define):
    make_template("features/empty", define("empty", files=[]))

    with pytest.raises(ValidationError, match="files must not be empty"):
        loader.load("features/empty")


def test_load_rejects_unknown_type(loader, make_template, define):
    make_template("features/odd", define("odd", "library"))

    with pytest.raises(ValidationError, match="type"):
        loader.load("features/odd")


def test_exists(loader, web_tree):
    assert loader.exists("projects/web")
    assert loader.exists("projects/web/template.yaml")
    assert not loader.exists("projects/missing")


def test_custom_definition_file(tmp_path):
    (tmp_path / "t").mkdir()
    (tmp_path / "t" / "blueprint.yml").write_text(
        "name: t\ntype: component\nversion: '1'\nfiles:\n  - src: a\n    dest: a\n"
    )
    loader = TemplateLoader(tmp_path, definition_file="blueprint.yml")

    assert loader.load("t").name == "t"
    assert list(loader.discover()) == [("t", "t")]


def test_discover(loader, web_tree, tmp_path):
    (tmp_path / "broken").mkdir()
    (tmp_path / "broken" / "template.yaml").write_text(": not yaml :\n  - [")

    assert list(loader.discover()) == [
        ("features/logging", "logging"),
        ("features/metrics", "metrics"),
        ("projects/web", "web"),
    ]
    assert list(loader.discover_by_type("project")) == [("projects/web", "web")]
    assert [t.name for t in loader.discover_all(TemplateType.FEATURE)] == ["logging", "metrics"]


def test_discover_missing_root(tmp_path):
    loader = TemplateLoader(tmp_path / "does-not-exist")
    assert list(loader.discover()) == []
