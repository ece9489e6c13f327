"""
Template loading, composition and rendering.
"""
from .composer import TemplateComposer, filter_includes, merge_dependencies, parse_dependency
from .context import Context, ValueKind, as_context, kind_of, parse_value
from .engine import TemplateEngine
from .loader import DEFINITION_FILE, BaseLoader, TemplateLoader
from .model import (
    File,
    Include,
    PostInit,
    Template,
    TemplateType,
    Variable,
    VariableRole,
    VariableType,
)
from .renderer import TEMPLATE_MARKER, TemplateRenderer
from .resolver import (
    ChainResolver,
    ResolvedTemplate,
    Resolver,
    SourceResolver,
    TemplateRef,
    default_resolver,
    default_source,
)
from .sources import ChainSource, FileSystemSource, PackageSource, TemplateSource

__all__ = [
    "BaseLoader",
    "ChainResolver",
    "ChainSource",
    "Context",
    "DEFINITION_FILE",
    "File",
    "FileSystemSource",
    "Include",
    "PackageSource",
    "PostInit",
    "ResolvedTemplate",
    "Resolver",
    "SourceResolver",
    "TEMPLATE_MARKER",
    "Template",
    "TemplateComposer",
    "TemplateEngine",
    "TemplateLoader",
    "TemplateRef",
    "TemplateRenderer",
    "TemplateSource",
    "TemplateType",
    "ValueKind",
    "Variable",
    "VariableRole",
    "VariableType",
    "as_context",
    "default_resolver",
    "default_source",
    "filter_includes",
    "kind_of",
    "merge_dependencies",
    "parse_dependency",
    "parse_value",
]
