"""
Rendering context: the resolved variable name -> value mapping.

Values form a closed set of kinds: string, integer, boolean and list of
strings. Anything else is rejected when it enters the context.
"""
import logging
from enum import Enum
from typing import Any, Dict, Iterator, List, Mapping, Optional, Union

from ..error.exceptions import ContextValueError
from .model import Variable, VariableType

logger = logging.getLogger(__name__)

ContextValue = Union[str, int, bool, List[str]]

_TRUE_STRINGS = {"true", "1", "yes", "y", "on"}
_FALSE_STRINGS = {"false", "0", "no", "n", "off"}


class ValueKind(str, Enum):
    """Kinds of values a context can hold."""

    STRING = "string"
    INT = "int"
    BOOL = "bool"
    STRING_LIST = "string_list"


def kind_of(value: Any) -> ValueKind:
    """
    Classify a value into its kind.

    Args:
        value: Candidate context value

    Returns:
        The value's kind

    Raises:
        ContextValueError: If the value is not representable
    """
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return ValueKind.BOOL
    if isinstance(value, int):
        return ValueKind.INT
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, (list, tuple)) and all(isinstance(item, str) for item in value):
        return ValueKind.STRING_LIST
    raise ContextValueError(f"unsupported context value {value!r} of type {type(value).__name__}")


def _normalize(value: Any) -> ContextValue:
    if kind_of(value) == ValueKind.STRING_LIST:
        return list(value)
    return value


def parse_value(variable_type: VariableType, raw: str) -> ContextValue:
    """
    Convert a raw ``key=value`` input into a value of the variable's type.

    Multiselect values are comma separated.

    Raises:
        ContextValueError: If the input does not fit the type
    """
    variable_type = VariableType(variable_type)
    if variable_type == VariableType.INT:
        try:
            return int(raw.strip())
        except ValueError:
            raise ContextValueError(f"'{raw}' is not an integer") from None
    if variable_type == VariableType.BOOL:
        lowered = raw.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
        raise ContextValueError(f"'{raw}' is not a boolean")
    if variable_type == VariableType.MULTISELECT:
        return [item.strip() for item in raw.split(",") if item.strip()]
    return raw


class Context:
    """Variables available while rendering a template."""

    def __init__(self, variables: Optional[Mapping[str, Any]] = None):
        self._variables: Dict[str, ContextValue] = {}
        for key, value in (variables or {}).items():
            self.set(key, value)

    def get(self, key: str, default: Any = None) -> Any:
        return self._variables.get(key, default)

    def set(self, key: str, value: Any) -> None:
        if not isinstance(key, str) or not key:
            raise ContextValueError(f"invalid context key {key!r}")
        try:
            self._variables[key] = _normalize(value)
        except ContextValueError as e:
            raise ContextValueError(f"variable '{key}': {e}") from None

    def kind(self, key: str) -> ValueKind:
        return kind_of(self._variables[key])

    def merge(self, other: Union["Context", Mapping[str, Any]]) -> None:
        """Merge another context into this one; the other side wins."""
        for key, value in other.items():
            self.set(key, value)

    def apply_defaults(self, variables: List[Variable]) -> List[str]:
        """
        Fill in declared defaults for variables missing from the context.

        Args:
            variables: Variables of a composed template

        Returns:
            Names of variables that are still missing (no value, no default)
        """
        missing = []
        for variable in variables:
            if variable.name in self._variables:
                continue
            if variable.default is None:
                missing.append(variable.name)
                continue
            self.set(variable.name, variable.default)
            logger.debug(f"Using default for variable '{variable.name}'")
        return missing

    def items(self):
        return self._variables.items()

    def to_dict(self) -> Dict[str, ContextValue]:
        return {
            key: list(value) if isinstance(value, list) else value
            for key, value in self._variables.items()
        }

    def __contains__(self, key: object) -> bool:
        return key in self._variables

    def __getitem__(self, key: str) -> ContextValue:
        return self._variables[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._variables)

    def __len__(self) -> int:
        return len(self._variables)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Context):
            return self._variables == other._variables
        if isinstance(other, Mapping):
            return self._variables == dict(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"Context({self._variables!r})"


def as_context(value: Union[Context, Mapping[str, Any], None]) -> Context:
    """Accept a Context, a plain mapping or None."""
    if isinstance(value, Context):
        return value
    return Context(value)
