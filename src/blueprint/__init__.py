"""
Blueprint: composable project templates rendered from YAML definitions.
"""
__version__ = "0.1.0"

from .templates import Context, Template, TemplateEngine, TemplateType

__all__ = [
    "Context",
    "Template",
    "TemplateEngine",
    "TemplateType",
    "__version__",
]
