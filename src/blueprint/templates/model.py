"""
Data model for template definitions.

A template definition is a YAML document (``template.yaml``) describing the
variables a template asks for, the other templates it includes, the
dependencies and post-init commands it reports, and the files it renders.
"""
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..error.exceptions import ValidationError


class TemplateType(str, Enum):
    """Semantic type of a template. Does not affect processing."""

    PROJECT = "project"
    FEATURE = "feature"
    COMPONENT = "component"

    @property
    def folder(self) -> str:
        """Folder holding templates of this type in a template tree."""
        return _TYPE_FOLDERS[self]

    @classmethod
    def from_value(cls, value: Any) -> "TemplateType":
        """
        Look up a template type by value.

        Args:
            value: A TemplateType or its string value

        Returns:
            The matching TemplateType

        Raises:
            ValidationError: If the value names no template type
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            valid = ", ".join(t.value for t in cls)
            raise ValidationError(f"unknown template type '{value}' (expected one of: {valid})") from None


_TYPE_FOLDERS = {
    TemplateType.PROJECT: "projects",
    TemplateType.FEATURE: "features",
    TemplateType.COMPONENT: "components",
}


class VariableType(str, Enum):
    """Type of input expected for a variable."""

    STRING = "string"
    INT = "int"
    BOOL = "bool"
    SELECT = "select"
    MULTISELECT = "multiselect"


class VariableRole(str, Enum):
    """Reserved variable roles."""

    PROJECT_NAME = "project_name"


class Variable(BaseModel):
    """A user-configurable variable with an interactive prompt."""

    name: str = Field(min_length=1)
    prompt: str = ""
    type: VariableType
    role: Optional[VariableRole] = None
    default: Any = None
    options: List[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_options_and_default(self) -> "Variable":
        """Select variables need options; defaults must match the variable type."""
        if self.type in (VariableType.SELECT, VariableType.MULTISELECT) and not self.options:
            raise ValueError(f"variable '{self.name}' of type {self.type.value} requires options")

        if self.default is None:
            return self

        value = self.default
        if self.type == VariableType.STRING and not isinstance(value, str):
            raise ValueError(f"default of variable '{self.name}' must be a string")
        if self.type == VariableType.INT and (isinstance(value, bool) or not isinstance(value, int)):
            raise ValueError(f"default of variable '{self.name}' must be an integer")
        if self.type == VariableType.BOOL and not isinstance(value, bool):
            raise ValueError(f"default of variable '{self.name}' must be a boolean")
        if self.type == VariableType.SELECT and value not in self.options:
            raise ValueError(f"default of variable '{self.name}' must be one of its options")
        if self.type == VariableType.MULTISELECT:
            if not isinstance(value, list) or any(item not in self.options for item in value):
                raise ValueError(f"default of variable '{self.name}' must be a list of its options")
        return self


class Include(BaseModel):
    """Another template to compose into this one."""

    template: str = Field(min_length=1)
    enabled_by_default: bool = False


class File(BaseModel):
    """A file (or directory) to render into the output."""

    src: str = Field(min_length=1)
    dest: str = Field(min_length=1)


class PostInit(BaseModel):
    """A command reported to the caller after scaffolding. Never executed here."""

    command: str = Field(min_length=1)
    workdir: Optional[str] = None


class Template(BaseModel):
    """A complete template definition."""

    model_config = ConfigDict(extra="ignore")

    name: str = Field(min_length=1)
    type: TemplateType
    version: str = Field(min_length=1)
    description: str = ""
    variables: List[Variable] = Field(default_factory=list)
    includes: List[Include] = Field(default_factory=list)
    dependencies: List[str] = Field(default_factory=list)
    files: List[File] = Field(default_factory=list)
    post_init: List[PostInit] = Field(default_factory=list)

    # Set by the loader; not part of the definition document.
    location: Optional[str] = Field(default=None, exclude=True)

    @field_validator("version", mode="before")
    @classmethod
    def coerce_version(cls, value: Any) -> Any:
        """Accept unquoted YAML versions such as ``1.0``."""
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("description", mode="before")
    @classmethod
    def coerce_description(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("variables", "includes", "dependencies", "files", "post_init", mode="before")
    @classmethod
    def coerce_empty_lists(cls, value: Any) -> Any:
        """An empty YAML key (``files:``) means an empty list."""
        return [] if value is None else value

    @field_validator("dependencies")
    @classmethod
    def check_dependencies(cls, value: List[str]) -> List[str]:
        for dep in value:
            if not dep or dep.startswith("@"):
                raise ValueError(f"invalid dependency '{dep}'")
        return value

    @model_validator(mode="after")
    def check_unique_variables(self) -> "Template":
        """Variable names are unique among a template's own variables."""
        seen = set()
        for variable in self.variables:
            if variable.name in seen:
                raise ValueError(f"duplicate variable '{variable.name}' in template '{self.name}'")
            seen.add(variable.name)
        return self

    @property
    def identity(self) -> str:
        """Identity used for include-cycle detection."""
        return self.location or self.name

    def get_variable(self, name: str) -> Optional[Variable]:
        for variable in self.variables:
            if variable.name == name:
                return variable
        return None
