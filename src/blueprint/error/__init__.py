"""
Error types for the blueprint template engine.
"""
from .exceptions import (
    ErrorContext,
    BlueprintError,
    NotFoundError,
    IncludeNotFoundError,
    ParseError,
    ValidationError,
    ContextValueError,
    CircularDependencyError,
    RenderError,
    RenderExecutionError,
    CoercionError,
    DestinationCollisionError,
    TemplateIOError,
    ConfigurationError,
    EngineError,
    TemplateLoadError,
    TemplateComposeError,
    TemplateRenderError,
)

__all__ = [
    'ErrorContext',
    'BlueprintError',
    'NotFoundError',
    'IncludeNotFoundError',
    'ParseError',
    'ValidationError',
    'ContextValueError',
    'CircularDependencyError',
    'RenderError',
    'RenderExecutionError',
    'CoercionError',
    'DestinationCollisionError',
    'TemplateIOError',
    'ConfigurationError',
    'EngineError',
    'TemplateLoadError',
    'TemplateComposeError',
    'TemplateRenderError',
]
