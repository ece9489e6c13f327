"""
Function library available inside templates.

Every function is registered both as a global (``{{ toUpper(name) }}``) and
as a filter (``{{ name | toUpper }}``). Filters receive the piped value as
their first argument; ``default`` is the one function whose global and
filter forms order their arguments differently.
"""
import posixpath
import re
from typing import Any, Callable, Dict, List, Optional

from jinja2 import Undefined

from ..error.exceptions import CoercionError

_INT_PREFIX = re.compile(r"^[+-]?\d+")


def is_empty(value: Any) -> bool:
    """None, undefined, empty string and empty list/map are empty."""
    if value is None or isinstance(value, Undefined):
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, (list, tuple, dict)):
        return len(value) == 0
    return False


def default_value(fallback: Any, value: Any) -> Any:
    """Return ``value`` unless it is empty, else ``fallback``."""
    if is_empty(value):
        return fallback
    return value


def coalesce(*values: Any) -> Any:
    """First non-empty argument, or None."""
    for value in values:
        if not is_empty(value):
            return value
    return None


def to_string(value: Any) -> str:
    if value is None or isinstance(value, Undefined):
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return "[" + " ".join(to_string(item) for item in value) + "]"
    return str(value)


def to_int(value: Any) -> int:
    """
    Coerce a value to an integer.

    Strings are parsed from their leading integer (``"42px"`` -> 42).

    Raises:
        CoercionError: If the value has no integer representation
    """
    if isinstance(value, bool):
        raise CoercionError(f"cannot convert bool {value!r} to int")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        match = _INT_PREFIX.match(value.strip())
        if match is None:
            raise CoercionError(f"cannot convert {value!r} to int")
        return int(match.group(0))
    if isinstance(value, Undefined):
        raise CoercionError("cannot convert undefined value to int")
    raise CoercionError(f"cannot convert {type(value).__name__} to int")


def to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value in ("true", "1", "yes")
    if isinstance(value, int):
        return value != 0
    return False


def title(value: Any) -> str:
    """Title-case mapping of every character, which upper-cases ASCII (``"my app"`` -> ``"MY APP"``)."""
    return to_string(value).upper()


def trim_left(value: str, cutset: Optional[str] = None) -> str:
    return value.lstrip(cutset)


def trim_right(value: str, cutset: Optional[str] = None) -> str:
    return value.rstrip(cutset)


def split(value: str, sep: str) -> List[str]:
    return value.split(sep)


def join(values: List[Any], sep: str = "") -> str:
    return sep.join(to_string(item) for item in values)


def path_base(path: str) -> str:
    if path == "":
        return "."
    stripped = path.rstrip("/")
    if stripped == "":
        return "/"
    return posixpath.basename(stripped)


def path_dir(path: str) -> str:
    return posixpath.normpath(posixpath.dirname(path) or ".")


def path_ext(path: str) -> str:
    name = path.rsplit("/", 1)[-1]
    index = name.rfind(".")
    return name[index:] if index >= 0 else ""


def join_path(*parts: str) -> str:
    parts = [part for part in parts if part]
    if not parts:
        return ""
    return posixpath.normpath(posixpath.join(*parts))


def _default_filter(value: Any, fallback: Any = "") -> Any:
    return default_value(fallback, value)


FUNCTIONS: Dict[str, Callable[..., Any]] = {
    # String manipulation
    "toLower": lambda s: to_string(s).lower(),
    "toUpper": lambda s: to_string(s).upper(),
    "title": title,
    "trim": lambda s: to_string(s).strip(),
    "trimLeft": trim_left,
    "trimRight": trim_right,
    "replace": lambda s, old, new: to_string(s).replace(old, new),
    "contains": lambda s, sub: sub in s,
    "hasPrefix": lambda s, prefix: to_string(s).startswith(prefix),
    "hasSuffix": lambda s, suffix: to_string(s).endswith(suffix),
    "split": split,
    "join": join,
    # Path manipulation
    "base": path_base,
    "dir": path_dir,
    "ext": path_ext,
    "joinPath": join_path,
    # Type conversions
    "toString": to_string,
    "toInt": to_int,
    "toBool": to_bool,
    # Utility
    "default": default_value,
    "empty": is_empty,
    "coalesce": coalesce,
}

FILTERS: Dict[str, Callable[..., Any]] = {
    **FUNCTIONS,
    "default": _default_filter,
}
