"""
Rendering of composed templates into a destination -> content mapping.
"""
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Union

from jinja2 import Environment, StrictUndefined, TemplateSyntaxError, Undefined
from jinja2 import Template as JinjaTemplate
from jinja2.ext import Extension
from jinja2.lexer import (
    TOKEN_DOT,
    TOKEN_NAME,
    TOKEN_RBRACE,
    TOKEN_RBRACKET,
    TOKEN_RPAREN,
    TOKEN_STRING,
    Token,
    TokenStream,
)

from ..error.exceptions import (
    DestinationCollisionError,
    ParseError,
    RenderExecutionError,
    TemplateIOError,
)
from .context import Context, as_context
from .functions import FILTERS, FUNCTIONS
from .loader import join_location
from .model import Template
from .sources import TemplateSource, as_source

logger = logging.getLogger(__name__)

TEMPLATE_MARKER = ".tmpl"

Content = Union[str, bytes]

# Tokens a dot can follow as attribute access (``user.name``, ``f(x).y``).
_OPERAND_TOKENS = frozenset({TOKEN_NAME, TOKEN_RPAREN, TOKEN_RBRACKET, TOKEN_RBRACE, TOKEN_STRING})
# Names that are syntax rather than operands, so ``{% if .flag %}`` still works.
_KEYWORDS = frozenset({
    "and", "or", "not", "in", "is", "if", "elif", "else", "for", "set",
    "with", "print", "recursive", "as", "import", "from", "include",
})


class DotReferenceExtension(Extension):
    """
    Accepts ``{{ .name }}`` as a synonym for ``{{ name }}``.

    Works on the lexer's token stream, so string literals, plain text and
    ``{% raw %}`` blocks are never touched.
    """

    def filter_stream(self, stream: TokenStream) -> Iterator[Token]:
        previous: Optional[Token] = None
        for token in stream:
            if token.type == TOKEN_DOT and stream.current.type == TOKEN_NAME and not _is_operand(previous):
                continue
            previous = token
            yield token


def _is_operand(token: Optional[Token]) -> bool:
    if token is None or token.type not in _OPERAND_TOKENS:
        return False
    return not (token.type == TOKEN_NAME and token.value in _KEYWORDS)


def _join_dest(dest: str, name: str) -> str:
    # Not normalised: dest is still unrendered template text.
    if dest in ("", "."):
        return name
    return f"{dest.rstrip('/')}/{name}"


@dataclass
class RenderJob:
    """A single source file scheduled for rendering."""

    src: str
    dest: str
    dest_template: JinjaTemplate
    content_template: Optional[JinjaTemplate] = None


class TemplateRenderer:
    """Renders template files with a context."""

    def __init__(
        self,
        source: Union[TemplateSource, str, Path],
        template_marker: str = TEMPLATE_MARKER,
        collision_policy: str = "error",
        strict_undefined: bool = False
    ):
        """
        Initialize the renderer.

        Args:
            source: Template tree that file sources are read from
            template_marker: Suffix of files rendered through the template language
            collision_policy: "error" or "overwrite" for repeated destinations
            strict_undefined: Fail on references to variables missing from the context
        """
        if collision_policy not in ("error", "overwrite"):
            raise ValueError(f"Invalid collision policy '{collision_policy}'")
        self.source = as_source(source)
        self.template_marker = template_marker
        self.collision_policy = collision_policy
        self.env = self._create_environment(strict_undefined)

    def _create_environment(self, strict_undefined: bool) -> Environment:
        """
        Create Jinja2 environment with the template function library.

        Returns:
            Configured Jinja2 environment
        """
        env = Environment(
            extensions=[DotReferenceExtension],
            keep_trailing_newline=True,
            autoescape=False,
            undefined=StrictUndefined if strict_undefined else Undefined,
        )
        env.filters.update(FILTERS)
        env.globals.update(FUNCTIONS)
        return env

    def add_function(self, name: str, fn: Callable[..., Any]) -> None:
        """Register a custom function as both global and filter."""
        self.env.globals[name] = fn
        self.env.filters[name] = fn

    def compile(self, content: str, name: str) -> JinjaTemplate:
        """
        Parse template text.

        Raises:
            ParseError: On template syntax errors
        """
        try:
            return self.env.from_string(content)
        except TemplateSyntaxError as e:
            raise ParseError(f"failed to parse template {name}: {e.message} (line {e.lineno})") from e

    def execute(self, compiled: JinjaTemplate, context: Union[Context, Mapping[str, Any], None], name: str) -> str:
        """
        Render a compiled template.

        Raises:
            RenderExecutionError: If rendering fails
        """
        variables = as_context(context).to_dict()
        try:
            return compiled.render(variables)
        except Exception as e:
            raise RenderExecutionError(f"failed to execute template {name}: {e}") from e

    def render_string(self, content: str, context: Union[Context, Mapping[str, Any], None], name: str = "string") -> str:
        """Render template text with the given context."""
        return self.execute(self.compile(content, name), context, name)

    def render_path(self, path_template: str, context: Union[Context, Mapping[str, Any], None]) -> str:
        """Render a destination path such as ``{{ .package_name }}/main.go``."""
        return self.render_string(path_template, context, "path")

    def render_file(self, path: str, context: Union[Context, Mapping[str, Any], None]) -> str:
        """Read a file from the source and render it."""
        return self.render_string(self.source.read_text(path), context, path)

    def copy(self, path: str) -> Content:
        """
        Read a file without template processing.

        Returns:
            Text when the file is valid UTF-8, raw bytes otherwise
        """
        data = self.source.read_bytes(path)
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError:
            return data

    def render_all(self, template: Template, context: Union[Context, Mapping[str, Any], None]) -> Dict[str, Content]:
        """
        Render all files of a composed template.

        Every path and content template is parsed before anything is
        rendered, so a syntax error anywhere aborts the call up front.

        Args:
            template: Composed template
            context: Variables for rendering

        Returns:
            Mapping of destination path -> content, in render order

        Raises:
            ParseError: On template syntax errors
            RenderExecutionError: If rendering a path or file fails
            DestinationCollisionError: If two entries share a destination
                and the collision policy is "error"
            TemplateIOError: If a source file cannot be read
        """
        context = as_context(context)
        jobs = self.plan(template)

        results: Dict[str, Content] = {}
        sources: Dict[str, str] = {}

        for job in jobs:
            dest = self.execute(job.dest_template, context, f"destination path for {job.src}")

            if job.content_template is not None:
                if dest.endswith(self.template_marker):
                    dest = dest[:-len(self.template_marker)]
                content: Content = self.execute(job.content_template, context, job.src)
            else:
                content = self.copy(job.src)

            if dest in results:
                if self.collision_policy == "error":
                    raise DestinationCollisionError(dest, sources[dest], job.src)
                logger.warning(f"Destination '{dest}' from {sources[dest]} overwritten by {job.src}")

            results[dest] = content
            sources[dest] = job.src
            logger.debug(f"Rendered {job.src} -> {dest}")

        logger.debug(f"Rendered {len(results)} files for template '{template.name}'")
        return results

    def plan(self, template: Template) -> List[RenderJob]:
        """
        Expand directories and parse all path and content templates.

        Raises:
            ParseError: On template syntax errors
            TemplateIOError: If a source entry is missing or unreadable
        """
        jobs: List[RenderJob] = []
        for file in template.files:
            self._plan_path(file.src, file.dest, jobs)
        return jobs

    def _plan_path(self, src: str, dest: str, jobs: List[RenderJob]) -> None:
        if not self.source.exists(src):
            raise TemplateIOError(f"template file not found: {src}")

        if self.source.is_dir(src):
            for name in self.source.list_dir(src):
                self._plan_path(join_location(src, name), _join_dest(dest, name), jobs)
            return

        dest_template = self.compile(dest, f"destination path for {src}")
        content_template = None
        if src.endswith(self.template_marker):
            content_template = self.compile(self.source.read_text(src), src)

        jobs.append(RenderJob(src, dest, dest_template, content_template))
