"""Pytest configuration and fixtures."""
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import pytest
import yaml

from blueprint.config.configuration import BlueprintConfiguration
from blueprint.templates.engine import TemplateEngine
from blueprint.templates.loader import TemplateLoader
from blueprint.templates.sources import FileSystemSource


def write_template(
    root: Path,
    location: str,
    definition: Dict[str, Any],
    files: Optional[Dict[str, Any]] = None
) -> Path:
    """Write a template definition and its files below ``root``."""
    template_dir = root / location
    template_dir.mkdir(parents=True, exist_ok=True)
    (template_dir / "template.yaml").write_text(yaml.safe_dump(definition, sort_keys=False))

    for name, content in (files or {}).items():
        path = template_dir / name
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content)
    return template_dir


def definition(name: str, template_type: str = "feature", **fields: Any) -> Dict[str, Any]:
    """A minimal valid definition; a placeholder file entry is added if none is given."""
    data: Dict[str, Any] = {"name": name, "type": template_type, "version": "1.0"}
    data.update(fields)
    data.setdefault("files", [{"src": "README.md", "dest": f"{name}.md"}])
    return data


@pytest.fixture
def define() -> Callable[..., Dict[str, Any]]:
    """Build minimal template definitions."""
    return definition


@pytest.fixture
def make_template(tmp_path: Path) -> Callable[..., Path]:
    """Write templates into the per-test template tree."""
    def _make(location: str, definition: Dict[str, Any], files: Optional[Dict[str, Any]] = None) -> Path:
        if files is None and any(f["src"] == "README.md" for f in definition.get("files", [])):
            files = {"README.md": f"# {definition['name']}\n"}
        return write_template(tmp_path, location, definition, files)
    return _make


@pytest.fixture
def source(tmp_path: Path) -> FileSystemSource:
    return FileSystemSource(tmp_path)


@pytest.fixture
def loader(source: FileSystemSource) -> TemplateLoader:
    return TemplateLoader(source)


@pytest.fixture
def config() -> BlueprintConfiguration:
    """Create a test configuration."""
    return BlueprintConfiguration(log_level="DEBUG")


@pytest.fixture
def web_tree(make_template) -> None:
    """
    A project template with a default-on and a default-off feature.

    projects/web includes features/logging (on) and features/metrics (off).
    """
    make_template(
        "projects/web",
        definition(
            "web",
            "project",
            variables=[
                {"name": "project_name", "prompt": "Project name", "type": "string", "role": "project_name"},
                {"name": "pkg", "prompt": "Package", "type": "string", "default": "app"},
            ],
            includes=[
                {"template": "features/logging", "enabled_by_default": True},
                {"template": "features/metrics"},
            ],
            dependencies=["foo"],
            files=[
                {"src": "main.go.tmpl", "dest": "{{ .pkg }}/main.go"},
                {"src": "static", "dest": "static"},
            ],
            post_init=[{"command": "go mod tidy"}],
        ),
        files={
            "main.go.tmpl": "package main // {{ .project_name }}\n",
            "static/logo.txt": "LOGO {{ .pkg }}\n",
        },
    )
    make_template(
        "features/logging",
        definition(
            "logging",
            variables=[
                {"name": "log_level", "prompt": "Log level", "type": "string", "default": "info"},
                {"name": "pkg", "prompt": "Overridden", "type": "string", "default": "ignored"},
            ],
            dependencies=["foo@1.2.3", "zap@1.26.0"],
            files=[{"src": "logger.go.tmpl", "dest": "{{ .pkg }}/logger.go"}],
            post_init=[{"command": "echo logging", "workdir": "{{ .pkg }}"}],
        ),
        files={"logger.go.tmpl": "level={{ .log_level }}\n"},
    )
    make_template(
        "features/metrics",
        definition(
            "metrics",
            dependencies=["prometheus@0.1.0"],
            files=[{"src": "metrics.go.tmpl", "dest": "{{ .pkg }}/metrics.go"}],
        ),
        files={"metrics.go.tmpl": "metrics for {{ .project_name }}\n"},
    )


@pytest.fixture
def engine(tmp_path: Path, config: BlueprintConfiguration, web_tree) -> TemplateEngine:
    return TemplateEngine(tmp_path, config)
