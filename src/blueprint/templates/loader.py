"""
Template loading and discovery.
"""
import logging
import posixpath
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterator, Optional, Tuple, Union

import yaml
from pydantic import ValidationError as PydanticValidationError

from ..error.exceptions import (
    BlueprintError,
    NotFoundError,
    ParseError,
    TemplateIOError,
    ValidationError,
)
from .model import Template, TemplateType
from .sources import TemplateSource, as_source

logger = logging.getLogger(__name__)

DEFINITION_FILE = "template.yaml"


def join_location(base: str, name: str) -> str:
    """Join two template-tree paths, collapsing ``.`` segments."""
    if base in ("", "."):
        return posixpath.normpath(name)
    return posixpath.normpath(posixpath.join(base, name))


def _format_validation_error(error: PydanticValidationError) -> str:
    messages = []
    for item in error.errors():
        loc = ".".join(str(part) for part in item.get("loc", ()))
        msg = item.get("msg", "invalid value")
        messages.append(f"{loc}: {msg}" if loc else msg)
    return "; ".join(messages)


class BaseLoader(ABC):
    """Anything that can load a template by location."""

    @abstractmethod
    def load(self, location: str) -> Template:
        """Load and validate the template at ``location``."""

    def identity(self, location: str) -> str:
        """Canonical identity of a location, used to detect include cycles."""
        return location


class TemplateLoader(BaseLoader):
    """
    Loads template definitions from a template source.

    A location is either the path of a definition file or of a directory
    holding one.
    """

    def __init__(
        self,
        source: Union[TemplateSource, str, Path],
        definition_file: str = DEFINITION_FILE
    ):
        """
        Initialize the loader.

        Args:
            source: Template tree, or a directory path on disk
            definition_file: Name of the definition file in each template directory
        """
        self.source = as_source(source)
        self.definition_file = definition_file

    def load(self, location: str) -> Template:
        """
        Load a template.

        The definition is parsed and validated, ``files[].src`` entries are
        rewritten relative to the source root, and ``location`` is recorded
        on the returned template.

        Args:
            location: Definition file path or template directory

        Returns:
            The loaded template

        Raises:
            NotFoundError: If no definition exists at the location
            ParseError: If the definition is not a valid YAML mapping
            ValidationError: If required fields are missing or invalid
            TemplateIOError: If the definition cannot be read
        """
        definition_path = self._resolve_definition_path(location)

        if not self.source.exists(definition_path):
            raise NotFoundError(
                f"template not found: {definition_path} in {self.source.describe()}",
                location=str(location)
            )

        raw = self.source.read_bytes(definition_path)

        try:
            data = yaml.safe_load(raw)
        except yaml.YAMLError as e:
            raise ParseError(f"failed to parse template YAML {definition_path}: {e}") from e

        if not isinstance(data, dict):
            raise ParseError(f"template definition {definition_path} must be a mapping")

        try:
            template = Template.model_validate(data)
        except PydanticValidationError as e:
            raise ValidationError(
                f"template validation failed for {definition_path}: {_format_validation_error(e)}"
            ) from e

        if not template.files:
            raise ValidationError(
                f"template validation failed for {definition_path}: files must not be empty"
            )

        template_dir = posixpath.dirname(definition_path) or "."
        for file in template.files:
            file.src = join_location(template_dir, file.src)
        template.location = template_dir

        logger.debug(f"Loaded template '{template.name}' ({template.type.value}) from {definition_path}")
        return template

    def load_from_dir(self, directory: str) -> Template:
        """Load the template whose definition lives in ``directory``."""
        return self.load(join_location(directory, self.definition_file))

    def identity(self, location: str) -> str:
        return posixpath.dirname(self._resolve_definition_path(location)) or "."

    def exists(self, location: str) -> bool:
        """Whether a definition exists at the location. Never raises."""
        try:
            return self.source.exists(self._resolve_definition_path(location))
        except (OSError, BlueprintError):
            return False

    def discover(self) -> Iterator[Tuple[str, str]]:
        """
        Lazily find all loadable templates under the source root.

        Definitions that fail to load are skipped.

        Yields:
            (template directory, template name) pairs
        """
        for template in self.discover_all():
            yield template.location, template.name

    def discover_by_type(self, template_type: Union[TemplateType, str]) -> Iterator[Tuple[str, str]]:
        """Like discover(), limited to one template type."""
        for template in self.discover_all(template_type):
            yield template.location, template.name

    def discover_all(self, template_type: Optional[Union[TemplateType, str]] = None) -> Iterator[Template]:
        """
        Lazily load every template under the source root.

        Args:
            template_type: Only yield templates of this type

        Yields:
            Loaded templates, in sorted walk order
        """
        wanted = TemplateType.from_value(template_type) if template_type is not None else None

        try:
            paths = list(self.source.walk("."))
        except TemplateIOError as e:
            logger.warning(f"Failed to walk templates in {self.source.describe()}: {e}")
            return

        for path in paths:
            if posixpath.basename(path) != self.definition_file:
                continue
            try:
                template = self.load(path)
            except BlueprintError as e:
                logger.debug(f"Skipping {path}: {e}")
                continue
            if wanted is not None and template.type != wanted:
                continue
            yield template

    def _resolve_definition_path(self, location: Union[str, Path]) -> str:
        location = str(location).replace("\\", "/")
        if posixpath.basename(location) == self.definition_file:
            return location
        return join_location(location, self.definition_file)
