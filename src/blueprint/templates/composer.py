"""
Template composition: resolving includes into one effective template.
"""
import logging
from typing import Dict, List, Mapping, Optional, Tuple

from ..error.exceptions import (
    CircularDependencyError,
    IncludeNotFoundError,
    NotFoundError,
    ParseError,
    TemplateIOError,
    ValidationError,
)
from .loader import BaseLoader
from .model import Include, Template, TemplateType, VariableRole

logger = logging.getLogger(__name__)


def parse_dependency(dep: str) -> Tuple[str, str]:
    """
    Split a dependency on its first ``@``.

    Returns:
        (package, version) where version may be empty
    """
    package, _, version = dep.partition("@")
    return package, version


def merge_dependencies(dst: List[str], src: List[str]) -> List[str]:
    """
    Merge two dependency lists into one entry per package.

    An explicit version always beats an unversioned reference; between two
    explicit versions the one seen first (``dst`` side) is kept. The result
    is sorted by package name.
    """
    versions: Dict[str, str] = {}
    for dep in list(dst) + list(src):
        package, version = parse_dependency(dep)
        if package not in versions or not versions[package]:
            versions[package] = version

    return [
        f"{package}@{versions[package]}" if versions[package] else package
        for package in sorted(versions)
    ]


def filter_includes(includes: List[Include], enabled: Mapping[str, bool]) -> List[Include]:
    """
    Keep the includes selected by ``enabled``.

    An include is kept if it is explicitly enabled, or has no entry and is
    enabled by default.
    """
    selected = []
    for include in includes:
        if include.template in enabled:
            if enabled[include.template]:
                selected.append(include)
        elif include.enabled_by_default:
            selected.append(include)
    return selected


class TemplateComposer:
    """Resolves and merges template includes."""

    def __init__(
        self,
        loader: BaseLoader,
        require_project_name: bool = True,
        deep_include_toggles: bool = False
    ):
        """
        Initialize the composer.

        Args:
            loader: Loader used to fetch included templates
            require_project_name: Check the project_name role after composing
            deep_include_toggles: Apply include selection below the root too
        """
        self.loader = loader
        self.require_project_name = require_project_name
        self.deep_include_toggles = deep_include_toggles

    def compose(self, template: Template) -> Template:
        """
        Merge a template with all of its transitively included templates.

        Args:
            template: Root template

        Returns:
            A new template with no includes

        Raises:
            CircularDependencyError: If the include graph has a cycle
            IncludeNotFoundError: If an include cannot be found
            ValidationError: If the composed tree breaks the project_name rule
        """
        composed = self._compose_with_path(template, [template.identity])
        return self._finish(composed)

    def compose_with_enabled_includes(
        self,
        template: Template,
        enabled: Optional[Mapping[str, bool]] = None,
        deep: Optional[bool] = None
    ) -> Template:
        """
        Compose a template using only the selected includes.

        Selection applies to the root's direct includes. Includes of an
        accepted include are composed unconditionally unless ``deep`` (or the
        composer's ``deep_include_toggles``) is set.

        Args:
            template: Root template
            enabled: Include identity -> enabled flag
            deep: Override the composer's deep_include_toggles setting

        Returns:
            The composed template
        """
        enabled = dict(enabled or {})
        deep = self.deep_include_toggles if deep is None else deep

        root = template.model_copy(update={"includes": filter_includes(template.includes, enabled)})
        logger.debug(
            f"Composing '{template.name}' with includes "
            f"{[inc.template for inc in root.includes]} (deep={deep})"
        )
        composed = self._compose_with_path(root, [template.identity], enabled if deep else None)
        return self._finish(composed)

    def get_all_includes(self, template: Template) -> List[Include]:
        """
        Collect every include reachable from a template.

        Includes are deduplicated by identity in first-discovery order.

        Raises:
            CircularDependencyError: If the include graph has a cycle
            IncludeNotFoundError: If an include cannot be found
        """
        return self._collect_includes(template, [template.identity])

    def validate_composed(self, template: Template) -> None:
        """
        Check the project_name role on a composed template.

        At most one variable may carry the role; a project template must have
        exactly one.

        Raises:
            ValidationError: If the rule is broken
        """
        names = [v.name for v in template.variables if v.role == VariableRole.PROJECT_NAME]
        if len(names) > 1:
            raise ValidationError(
                f"template '{template.name}' has {len(names)} variables with role "
                f"'{VariableRole.PROJECT_NAME.value}': {', '.join(names)}"
            )
        if not names and template.type == TemplateType.PROJECT:
            raise ValidationError(
                f"project template '{template.name}' has no variable with role "
                f"'{VariableRole.PROJECT_NAME.value}'"
            )

    def _finish(self, composed: Template) -> Template:
        if self.require_project_name:
            self.validate_composed(composed)
        return composed

    def _compose_with_path(
        self,
        template: Template,
        path: List[str],
        enabled: Optional[Mapping[str, bool]] = None
    ) -> Template:
        composed = template.model_copy(update={
            "variables": list(template.variables),
            "includes": [],
            "dependencies": merge_dependencies(template.dependencies, []),
            "files": list(template.files),
            "post_init": list(template.post_init),
        })

        includes = template.includes
        if enabled is not None and len(path) > 1:
            includes = filter_includes(includes, enabled)

        for include in includes:
            identity = self.loader.identity(include.template)
            if identity in path:
                raise CircularDependencyError(path, identity)

            included = self._load_include(include)
            resolved = self._compose_with_path(included, path + [identity], enabled)
            self._merge(composed, resolved)

        return composed

    def _collect_includes(self, template: Template, path: List[str]) -> List[Include]:
        collected: List[Include] = []
        seen = set()

        for include in template.includes:
            identity = self.loader.identity(include.template)
            if identity in path:
                raise CircularDependencyError(path, identity)

            if identity not in seen:
                collected.append(include)
                seen.add(identity)

            included = self._load_include(include)
            for nested in self._collect_includes(included, path + [identity]):
                nested_identity = self.loader.identity(nested.template)
                if nested_identity not in seen:
                    collected.append(nested)
                    seen.add(nested_identity)

        return collected

    def _load_include(self, include: Include) -> Template:
        message = f"failed to load included template '{include.template}'"
        try:
            return self.loader.load(include.template)
        except NotFoundError as e:
            raise IncludeNotFoundError(f"{message}: {e}", location=include.template) from e
        except (ParseError, ValidationError, TemplateIOError) as e:
            raise type(e)(f"{message}: {e}") from e

    def _merge(self, dst: Template, src: Template) -> None:
        """Merge ``src`` into the accumulator ``dst`` in place."""
        existing_vars = {v.name for v in dst.variables}
        for variable in src.variables:
            if variable.name not in existing_vars:
                dst.variables.append(variable)
                existing_vars.add(variable.name)

        dst.dependencies = merge_dependencies(dst.dependencies, src.dependencies)

        existing_dests = {f.dest for f in dst.files}
        for file in src.files:
            if file.dest not in existing_dests:
                dst.files.append(file)
                existing_dests.add(file.dest)
            else:
                logger.debug(f"Keeping earlier file for '{file.dest}', skipping {file.src}")

        dst.post_init.extend(src.post_init)
        logger.debug(f"Merged '{src.name}' into '{dst.name}'")
