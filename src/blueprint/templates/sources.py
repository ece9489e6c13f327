"""
Read-only template trees.

Paths handed to a source are POSIX-style and relative to the source root;
``"."`` names the root itself. Filesystem sources also accept absolute paths.
"""
import importlib.resources as ilr
import os
from abc import ABC, abstractmethod
from pathlib import Path, PurePosixPath
from typing import Iterator, List, Union

from ..error.exceptions import TemplateIOError


def _parts(path: str) -> List[str]:
    return [part for part in PurePosixPath(str(path).replace("\\", "/")).parts if part not in ("", ".")]


class TemplateSource(ABC):
    """A read-only tree of template files."""

    @abstractmethod
    def exists(self, path: str) -> bool:
        """Whether a file or directory exists at ``path``."""

    @abstractmethod
    def is_dir(self, path: str) -> bool:
        """Whether ``path`` is a directory."""

    @abstractmethod
    def read_bytes(self, path: str) -> bytes:
        """Read a file. Raises TemplateIOError on failure."""

    @abstractmethod
    def list_dir(self, path: str) -> List[str]:
        """Sorted entry names of a directory."""

    @abstractmethod
    def describe(self) -> str:
        """Human readable description used in log messages."""

    def read_text(self, path: str) -> str:
        data = self.read_bytes(path)
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise TemplateIOError(f"{path} is not valid UTF-8: {e}") from e

    def walk(self, path: str = ".") -> Iterator[str]:
        """Yield every file below ``path``, depth first in sorted order."""
        for name in self.list_dir(path):
            child = name if path in ("", ".") else f"{path.rstrip('/')}/{name}"
            if self.is_dir(child):
                yield from self.walk(child)
            else:
                yield child

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.describe()})"


class FileSystemSource(TemplateSource):
    """Templates in a directory on disk."""

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)

    def _resolve(self, path: str) -> Path:
        candidate = Path(path)
        if candidate.is_absolute():
            return candidate
        return self.root.joinpath(*_parts(path))

    def exists(self, path: str) -> bool:
        return self._resolve(path).exists()

    def is_dir(self, path: str) -> bool:
        return self._resolve(path).is_dir()

    def read_bytes(self, path: str) -> bytes:
        try:
            return self._resolve(path).read_bytes()
        except OSError as e:
            raise TemplateIOError(f"failed to read {path}: {e}") from e

    def list_dir(self, path: str) -> List[str]:
        try:
            return sorted(os.listdir(self._resolve(path)))
        except OSError as e:
            raise TemplateIOError(f"failed to read directory {path}: {e}") from e

    def describe(self) -> str:
        return str(self.root)


class PackageSource(TemplateSource):
    """Templates bundled as package resources."""

    def __init__(self, package: str):
        self.package = package

    def _traversable(self, path: str):
        node = ilr.files(self.package)
        for part in _parts(path):
            node = node.joinpath(part)
        return node

    def exists(self, path: str) -> bool:
        node = self._traversable(path)
        return node.is_file() or node.is_dir()

    def is_dir(self, path: str) -> bool:
        return self._traversable(path).is_dir()

    def read_bytes(self, path: str) -> bytes:
        try:
            return self._traversable(path).read_bytes()
        except OSError as e:
            raise TemplateIOError(f"failed to read {path} from {self.package}: {e}") from e

    def list_dir(self, path: str) -> List[str]:
        node = self._traversable(path)
        if not node.is_dir():
            raise TemplateIOError(f"failed to read directory {path} from {self.package}")
        # The package's own module files are not templates.
        hidden = {"__pycache__"}
        if not _parts(path):
            hidden.add("__init__.py")
        return sorted(child.name for child in node.iterdir() if child.name not in hidden)

    def describe(self) -> str:
        return f"package:{self.package}"


class ChainSource(TemplateSource):
    """
    Several sources layered in order.

    A path is served by the first source that has it, so earlier sources
    override later ones. Directory listings are the union of all layers.
    """

    def __init__(self, *sources: TemplateSource):
        self.sources = list(sources)

    def _owner(self, path: str) -> TemplateSource:
        for source in self.sources:
            if source.exists(path):
                return source
        raise TemplateIOError(f"{path} not found in any of: {self.describe()}")

    def exists(self, path: str) -> bool:
        return any(source.exists(path) for source in self.sources)

    def is_dir(self, path: str) -> bool:
        return self.exists(path) and self._owner(path).is_dir(path)

    def read_bytes(self, path: str) -> bytes:
        return self._owner(path).read_bytes(path)

    def list_dir(self, path: str) -> List[str]:
        names = set()
        for source in self.sources:
            if source.exists(path) and source.is_dir(path):
                names.update(source.list_dir(path))
        return sorted(names)

    def describe(self) -> str:
        return ", ".join(source.describe() for source in self.sources)


def as_source(value: Union[TemplateSource, str, Path]) -> TemplateSource:
    """Accept a source or a directory path."""
    if isinstance(value, TemplateSource):
        return value
    return FileSystemSource(value)
