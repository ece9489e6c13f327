"""
Template engine: loading, composition and rendering behind one facade.
"""
import logging
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Tuple, Union

from ..config.configuration import BlueprintConfiguration
from ..error.exceptions import (
    BlueprintError,
    ErrorContext,
    TemplateComposeError,
    TemplateLoadError,
    TemplateRenderError,
)
from .composer import TemplateComposer
from .context import Context
from .loader import TemplateLoader
from .model import Include, Template, TemplateType, Variable
from .renderer import Content, TemplateRenderer
from .sources import TemplateSource, as_source

logger = logging.getLogger(__name__)

ContextLike = Union[Context, Mapping[str, Any], None]


class TemplateEngine:
    """
    Orchestrates loading, composing and rendering templates from one source.

    Each stage's failure is re-raised as TemplateLoadError,
    TemplateComposeError or TemplateRenderError, chained to the original
    exception.
    """

    def __init__(
        self,
        source: Union[TemplateSource, str, Path],
        config: Optional[BlueprintConfiguration] = None
    ):
        """
        Initialize the engine.

        Args:
            source: Template tree, or a directory path on disk
            config: Engine configuration; defaults are used when omitted
        """
        self.config = config or BlueprintConfiguration()
        self.source = as_source(source)
        self.loader = TemplateLoader(self.source, self.config.definition_file)
        self.composer = TemplateComposer(
            self.loader,
            require_project_name=self.config.require_project_name,
            deep_include_toggles=self.config.deep_include_toggles,
        )
        self.renderer = TemplateRenderer(
            self.source,
            template_marker=self.config.template_marker,
            collision_policy=self.config.collision_policy,
            strict_undefined=self.config.strict_undefined,
        )

    def load(self, location: str) -> Template:
        try:
            return self.loader.load(location)
        except BlueprintError as e:
            raise TemplateLoadError(e, context=ErrorContext("engine", "load", location=location)) from e

    def compose(self, template: Template) -> Template:
        try:
            return self.composer.compose(template)
        except BlueprintError as e:
            raise TemplateComposeError(e, context=ErrorContext("engine", "compose", template=template.name)) from e

    def compose_with_enabled_includes(self, template: Template, enabled: Optional[Mapping[str, bool]]) -> Template:
        try:
            return self.composer.compose_with_enabled_includes(template, enabled)
        except BlueprintError as e:
            error_context = ErrorContext("engine", "compose_with_enabled_includes", template=template.name)
            raise TemplateComposeError(e, context=error_context) from e

    def get_all_includes(self, template: Template) -> List[Include]:
        try:
            return self.composer.get_all_includes(template)
        except BlueprintError as e:
            raise TemplateComposeError(e, context=ErrorContext("engine", "get_all_includes", template=template.name)) from e

    def render_all(self, template: Template, context: ContextLike) -> Dict[str, Content]:
        try:
            return self.renderer.render_all(template, context)
        except BlueprintError as e:
            raise TemplateRenderError(e, context=ErrorContext("engine", "render_all", template=template.name)) from e

    def process(self, location: str, context: ContextLike) -> Dict[str, Content]:
        """Load, compose and render a template in one go."""
        template = self.load(location)
        composed = self.compose(template)
        logger.info(f"Rendering template '{composed.name}' from {location}")
        return self.render_all(composed, context)

    def process_with_includes(
        self,
        location: str,
        context: ContextLike,
        enabled: Optional[Mapping[str, bool]]
    ) -> Dict[str, Content]:
        """Like process(), composing only the selected includes."""
        template = self.load(location)
        composed = self.compose_with_enabled_includes(template, enabled)
        logger.info(f"Rendering template '{composed.name}' from {location}")
        return self.render_all(composed, context)

    def get_composed_template(self, location: str) -> Template:
        """Load and compose without rendering."""
        return self.compose(self.load(location))

    def get_template_variables(self, location: str) -> List[Variable]:
        """All variables of a template, including those of its includes."""
        return self.get_composed_template(location).variables

    def get_template_dependencies(self, location: str) -> List[str]:
        """All dependencies of a template, including those of its includes."""
        return self.get_composed_template(location).dependencies

    def discover(self) -> Iterator[Tuple[str, str]]:
        return self.loader.discover()

    def discover_by_type(self, template_type: Union[TemplateType, str]) -> Iterator[Tuple[str, str]]:
        return self.loader.discover_by_type(template_type)

    def discover_all(self, template_type: Optional[Union[TemplateType, str]] = None) -> Iterator[Template]:
        return self.loader.discover_all(template_type)

    def exists(self, location: str) -> bool:
        return self.loader.exists(location)

    def add_template_function(self, name: str, fn: Callable[..., Any]) -> None:
        self.renderer.add_function(name, fn)
