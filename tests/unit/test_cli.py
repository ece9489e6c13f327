import logging

import pytest
from typer.testing import CliRunner

from blueprint.cli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_cli(tmp_path, monkeypatch):
    """Run each command away from host configuration and reset the package logger afterwards."""
    workdir = tmp_path / "work"
    workdir.mkdir()
    monkeypatch.chdir(workdir)
    monkeypatch.setenv("HOME", str(workdir))
    monkeypatch.delenv("BLUEPRINT_TEMPLATE_DIR", raising=False)
    monkeypatch.delenv("BLUEPRINT_LOCAL_TEMPLATE_DIR", raising=False)
    yield
    package_logger = logging.getLogger("blueprint")
    for handler in package_logger.handlers[:]:
        package_logger.removeHandler(handler)
        handler.close()


def snapshot(root):
    return sorted(str(p.relative_to(root)) for p in root.rglob("*"))


def test_list(tmp_path, web_tree):
    result = runner.invoke(app, ["list", "--template-dir", str(tmp_path)])

    assert result.exit_code == 0
    assert "logging" in result.stdout
    assert "metrics" in result.stdout
    assert "Total templates: 3" in result.stdout


def test_list_by_type(tmp_path, web_tree):
    result = runner.invoke(app, ["list", "--template-dir", str(tmp_path), "--type", "project"])

    assert result.exit_code == 0
    assert "Total templates: 1" in result.stdout


def test_list_builtin_templates():
    result = runner.invoke(app, ["list"])

    assert result.exit_code == 0
    assert "python-package" in result.stdout


def test_list_unknown_type(tmp_path):
    result = runner.invoke(app, ["list", "--template-dir", str(tmp_path), "--type", "plugin"])

    assert result.exit_code == 1
    assert "unknown template type" in result.stdout


def test_show(tmp_path, web_tree):
    result = runner.invoke(app, ["show", "web", "--template-dir", str(tmp_path)])

    assert result.exit_code == 0
    assert "Template: web" in result.stdout
    assert "project_name" in result.stdout
    assert "features/metrics (default off)" in result.stdout
    assert "- foo@1.2.3" in result.stdout
    assert "go mod tidy" in result.stdout


def test_show_by_location(tmp_path, web_tree):
    result = runner.invoke(app, ["show", "features/logging", "--template-dir", str(tmp_path)])

    assert result.exit_code == 0
    assert "Template: logging" in result.stdout


def test_show_missing_template(tmp_path, web_tree):
    result = runner.invoke(app, ["show", "nope", "--template-dir", str(tmp_path)])

    assert result.exit_code == 1
    assert "template not found" in result.stdout


def test_preview(tmp_path, web_tree):
    """Rendering happens in memory only."""
    before = snapshot(tmp_path)

    result = runner.invoke(app, [
        "preview", "web",
        "--template-dir", str(tmp_path),
        "--var", "project_name=demo",
        "--include", "features/metrics",
        "--include", "features/logging=false",
        "--content",
    ])

    assert result.exit_code == 0, result.stdout
    assert "app/main.go" in result.stdout
    assert "app/metrics.go" in result.stdout
    assert "app/logger.go" not in result.stdout
    assert "metrics for demo" in result.stdout
    assert snapshot(tmp_path) == before


def test_preview_missing_variable(tmp_path, web_tree):
    result = runner.invoke(app, ["preview", "web", "--template-dir", str(tmp_path)])

    assert result.exit_code == 1
    assert "Missing values for: project_name" in result.stdout


def test_preview_bad_variable_value(tmp_path, make_template, define):
    make_template("components/counter", define("counter", "component", variables=[
        {"name": "count", "type": "int"},
    ]))

    result = runner.invoke(app, [
        "preview", "counter", "--type", "component",
        "--template-dir", str(tmp_path),
        "--var", "count=many",
    ])

    assert result.exit_code == 1
    assert "is not an integer" in result.stdout


def test_preview_builtin_template():
    result = runner.invoke(app, [
        "preview", "python-package",
        "--var", "project_name=demo",
        "--var", "package_name=demo",
    ])

    assert result.exit_code == 0, result.stdout
    assert "src/demo/__init__.py" in result.stdout
    assert "pytest@8" in result.stdout
