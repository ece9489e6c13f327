from pathlib import Path
from typing import Dict, List, NoReturn, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config.configuration import BlueprintConfiguration, ensure_config, load_config_file
from .error.exceptions import BlueprintError
from .logging.config import LogConfig
from .templates.context import Context, parse_value
from .templates.engine import TemplateEngine
from .templates.model import Template, VariableType
from .templates.resolver import TemplateRef, default_resolver, default_source

# Initialize Typer app
app = typer.Typer(help="Inspect and preview blueprint templates. Nothing is written to disk.")

# Initialize Rich console
console = Console()


def _load_settings(template_dir: Optional[Path], config_path: Optional[Path]) -> BlueprintConfiguration:
    overrides: Dict[str, object] = {}
    if config_path is not None:
        overrides.update(load_config_file(str(config_path)))
    if template_dir is not None:
        overrides["template_dir"] = template_dir

    config = ensure_config(overrides)
    LogConfig.from_configuration(config).configure()
    return config


def _create_engine(config: BlueprintConfiguration) -> TemplateEngine:
    return TemplateEngine(default_source(config), config)


def _locate(engine: TemplateEngine, config: BlueprintConfiguration, name: str, template_type: str) -> str:
    """A template location, or a bare name looked up under its type folder."""
    if "/" in name and engine.exists(name):
        return name
    return default_resolver(config).resolve(TemplateRef.parse(name, template_type)).path


def _parse_enabled(include: List[str]) -> Dict[str, bool]:
    enabled: Dict[str, bool] = {}
    for item in include:
        name, sep, flag = item.partition("=")
        if not sep:
            enabled[name] = True
            continue
        enabled[name] = parse_value(VariableType.BOOL, flag)
    return enabled


def _build_context(template: Template, var: List[str]) -> Context:
    context = Context()
    for item in var:
        if "=" not in item:
            raise typer.BadParameter(f"expected key=value, got '{item}'", param_hint="--var")
        key, value = item.split("=", 1)
        variable = template.get_variable(key)
        variable_type = variable.type if variable else VariableType.STRING
        context.set(key, parse_value(variable_type, value))
    return context


def _fail(message: str) -> NoReturn:
    console.print(f"[bold red]{escape(message)}[/bold red]")
    raise typer.Exit(code=1)


@app.command("list")
def list_templates(
    template_type: Optional[str] = typer.Option(None, "--type", "-t", help="Only list templates of this type"),
    template_dir: Optional[Path] = typer.Option(None, "--template-dir", "-d", help="Template tree to use"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to config file"),
):
    """List available templates."""
    try:
        config = _load_settings(template_dir, config_path)
        templates = list(_create_engine(config).discover_all(template_type))
    except BlueprintError as e:
        _fail(f"Error: {e}")

    if not templates:
        console.print("[bold yellow]No templates found.[/bold yellow]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Name")
    table.add_column("Type")
    table.add_column("Version")
    table.add_column("Location")
    table.add_column("Description")
    for template in templates:
        table.add_row(
            template.name,
            template.type.value,
            template.version,
            template.location or "",
            template.description,
        )
    console.print(table)
    console.print(f"\nTotal templates: {len(templates)}")


@app.command("show")
def show(
    name: str = typer.Argument(..., help="Template name or location"),
    template_type: str = typer.Option("project", "--type", "-t", help="Template type used to look the name up"),
    template_dir: Optional[Path] = typer.Option(None, "--template-dir", "-d", help="Template tree to use"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to config file"),
):
    """Show a template after composing all of its includes."""
    try:
        config = _load_settings(template_dir, config_path)
        engine = _create_engine(config)
        location = _locate(engine, config, name, template_type)
        template = engine.load(location)
        includes = engine.get_all_includes(template)
        composed = engine.compose(template)
    except BlueprintError as e:
        _fail(f"Error: {e}")

    console.print(f"\n[bold]Template: {composed.name}[/bold] ({composed.type.value}, version {composed.version})")
    if composed.description:
        console.print(composed.description)
    console.print(f"Location: {location}")

    if composed.variables:
        table = Table(title="Variables", show_header=True, header_style="bold")
        table.add_column("Name")
        table.add_column("Type")
        table.add_column("Default")
        table.add_column("Prompt")
        for variable in composed.variables:
            name_cell = variable.name
            if variable.role is not None:
                name_cell += f" ({variable.role.value})"
            default = "" if variable.default is None else str(variable.default)
            table.add_row(name_cell, variable.type.value, default, variable.prompt)
        console.print(table)

    if includes:
        console.print("\n[bold]Includes:[/bold]")
        for include in includes:
            marker = "on" if include.enabled_by_default else "off"
            console.print(f"- {include.template} (default {marker})")

    if composed.dependencies:
        console.print("\n[bold]Dependencies:[/bold]")
        for dep in composed.dependencies:
            console.print(f"- {dep}")

    console.print("\n[bold]Files:[/bold]")
    for file in composed.files:
        console.print(f"- {file.src} -> {file.dest}", markup=False)

    if composed.post_init:
        console.print("\n[bold]Post-init commands:[/bold]")
        for step in composed.post_init:
            where = f" (in {step.workdir})" if step.workdir else ""
            console.print(f"- {step.command}{where}", markup=False)


@app.command("preview")
def preview(
    name: str = typer.Argument(..., help="Template name or location"),
    template_type: str = typer.Option("project", "--type", "-t", help="Template type used to look the name up"),
    var: List[str] = typer.Option([], "--var", "-v", help="Variables in format key=value"),
    include: List[str] = typer.Option([], "--include", "-i", help="Include to toggle, as name or name=false"),
    content: bool = typer.Option(False, "--content", help="Print rendered file contents"),
    template_dir: Optional[Path] = typer.Option(None, "--template-dir", "-d", help="Template tree to use"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to config file"),
):
    """Render a template in memory and print the result."""
    try:
        config = _load_settings(template_dir, config_path)
        engine = _create_engine(config)
        location = _locate(engine, config, name, template_type)
        composed = engine.compose_with_enabled_includes(engine.load(location), _parse_enabled(include))

        context = _build_context(composed, var)
        missing = context.apply_defaults(composed.variables)
        if missing:
            _fail(f"Missing values for: {', '.join(missing)} (pass them with --var)")

        files = engine.render_all(composed, context)
    except BlueprintError as e:
        _fail(f"Error: {e}")

    table = Table(show_header=True, header_style="bold")
    table.add_column("Destination")
    table.add_column("Size", justify="right")
    for dest, rendered in files.items():
        size = len(rendered) if isinstance(rendered, bytes) else len(rendered.encode("utf-8"))
        table.add_row(dest, str(size))
    console.print(table)

    if content:
        for dest, rendered in files.items():
            console.print(f"\n[bold]== {dest} ==[/bold]")
            if isinstance(rendered, bytes):
                console.print(f"<binary, {len(rendered)} bytes>", markup=False)
            else:
                console.print(rendered, markup=False, highlight=False)

    if composed.dependencies:
        console.print("\n[bold]Dependencies:[/bold] " + ", ".join(composed.dependencies))
    if composed.post_init:
        console.print("\n[bold]Post-init commands:[/bold]")
        for step in composed.post_init:
            console.print(f"- {step.command}", markup=False)


if __name__ == "__main__":
    app()
