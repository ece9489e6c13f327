"""
Template-location resolution.

A template reference (name + type) is turned into the source holding the
template and its path inside that source. Resolvers are chained so that
user templates override the bundled ones.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Union

from ..config.configuration import BlueprintConfiguration
from ..error.exceptions import NotFoundError
from .model import TemplateType
from .sources import ChainSource, FileSystemSource, PackageSource, TemplateSource

logger = logging.getLogger(__name__)

BUILTIN_PACKAGE = "blueprint.builtin"


@dataclass(frozen=True)
class TemplateRef:
    """Reference to a template by name and type."""

    name: str
    type: TemplateType

    @classmethod
    def parse(cls, name: str, template_type: Union[TemplateType, str] = TemplateType.PROJECT) -> "TemplateRef":
        return cls(name=name, type=TemplateType.from_value(template_type))

    @property
    def path(self) -> str:
        return f"{self.type.folder}/{self.name}"


@dataclass(frozen=True)
class ResolvedTemplate:
    """A template located inside a source."""

    source: TemplateSource
    path: str


class Resolver(ABC):
    """Resolves template references to locations."""

    @abstractmethod
    def resolve(self, ref: TemplateRef) -> ResolvedTemplate:
        """
        Locate a template.

        Raises:
            NotFoundError: If the template is not available
        """


class SourceResolver(Resolver):
    """Looks templates up as ``<type folder>/<name>`` in one source."""

    def __init__(self, source: TemplateSource):
        self.source = source

    def resolve(self, ref: TemplateRef) -> ResolvedTemplate:
        if not self.source.exists(ref.path):
            raise NotFoundError(
                f"template not found: {ref.path} in {self.source.describe()}",
                location=ref.path
            )
        return ResolvedTemplate(source=self.source, path=ref.path)


class ChainResolver(Resolver):
    """Tries resolvers in order; the first success wins."""

    def __init__(self, *resolvers: Resolver):
        self.resolvers = list(resolvers)

    def resolve(self, ref: TemplateRef) -> ResolvedTemplate:
        last_error: Optional[NotFoundError] = None
        for resolver in self.resolvers:
            try:
                resolved = resolver.resolve(ref)
            except NotFoundError as e:
                last_error = e
                continue
            logger.debug(f"Resolved {ref.path} in {resolved.source.describe()}")
            return resolved

        if last_error is not None:
            raise last_error
        raise NotFoundError(f"template not found: {ref.path}", location=ref.path)


def template_sources(config: BlueprintConfiguration) -> List[TemplateSource]:
    """
    Template sources in lookup order.

    An explicit ``template_dir`` replaces the default chain; otherwise the
    local template directory (if any) comes before the bundled templates.
    """
    if config.template_dir is not None:
        return [FileSystemSource(config.template_dir)]

    sources: List[TemplateSource] = []
    if config.local_template_dir is not None:
        sources.append(FileSystemSource(config.local_template_dir))
    sources.append(PackageSource(BUILTIN_PACKAGE))
    return sources


def default_source(config: BlueprintConfiguration) -> TemplateSource:
    """All template sources layered into one tree."""
    sources = template_sources(config)
    if len(sources) == 1:
        return sources[0]
    return ChainSource(*sources)


def default_resolver(config: BlueprintConfiguration) -> ChainResolver:
    return ChainResolver(*(SourceResolver(source) for source in template_sources(config)))
