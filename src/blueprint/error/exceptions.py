"""
Centralized exception definitions for the blueprint template engine.
"""
from typing import List, Optional


class ErrorContext:
    """Context information for errors."""

    def __init__(self, component: str = None, operation: str = None, **kwargs):
        self.component = component
        self.operation = operation
        self.details = kwargs


class BlueprintError(Exception):
    """Base class for all blueprint errors."""

    def __init__(self, message: str, context: ErrorContext = None, details: dict = None):
        super().__init__(message)
        self.message = message
        self.context = context or ErrorContext()
        self.details = details or {}

    def __str__(self):
        base_str = super().__str__()
        if self.context.component and self.context.operation:
            return f"{base_str} [in {self.context.component}.{self.context.operation}]"
        return base_str


class NotFoundError(BlueprintError):
    """A template or include location does not exist."""

    def __init__(self, message: str, location: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.location = location


class IncludeNotFoundError(NotFoundError):
    """An included template could not be loaded."""
    pass


class ParseError(BlueprintError):
    """Malformed template definition or template-language syntax."""
    pass


class ValidationError(BlueprintError):
    """Missing or invalid required field."""
    pass


class ContextValueError(ValidationError):
    """A context value is outside the supported value types."""
    pass


class CircularDependencyError(BlueprintError):
    """Cycle in the include graph."""

    def __init__(self, path: List[str], target: str, **kwargs):
        self.path = list(path)
        self.target = target
        chain = " -> ".join(self.path + [target])
        super().__init__(f"circular dependency detected: {chain}", **kwargs)


class RenderError(BlueprintError):
    """Error while rendering template files."""
    pass


class RenderExecutionError(RenderError):
    """A function or coercion failed while rendering a path or content."""
    pass


class CoercionError(RenderExecutionError):
    """A value could not be coerced to the requested type."""
    pass


class DestinationCollisionError(RenderError):
    """Two file entries rendered to the same destination path."""

    def __init__(self, destination: str, first_source: str, second_source: str, **kwargs):
        self.destination = destination
        self.first_source = first_source
        self.second_source = second_source
        super().__init__(
            f"destination '{destination}' produced by both '{first_source}' and '{second_source}'",
            **kwargs
        )


class TemplateIOError(BlueprintError):
    """Underlying read failure."""
    pass


class ConfigurationError(BlueprintError):
    """Error in configuration."""
    pass


class EngineError(BlueprintError):
    """Stage-labelled failure raised by the engine."""

    stage = "process"

    def __init__(self, cause: Exception, **kwargs):
        self.cause = cause
        super().__init__(f"failed to {self.stage} template: {cause}", **kwargs)


class TemplateLoadError(EngineError):
    """Loading stage failed."""

    stage = "load"


class TemplateComposeError(EngineError):
    """Composition stage failed."""

    stage = "compose"


class TemplateRenderError(EngineError):
    """Rendering stage failed."""

    stage = "render"
