"""
Import-root context.

Relative import references resolve against a single base directory, not
against the directory of the file that contains them. The process-wide
default context holds that directory; explicit ``ImportContext`` instances
can be passed to the loader functions for isolated loads.
"""

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Union

from yaml_import.config.settings import Settings, get_settings
from yaml_import.resolvers.path_pattern import PathPatternResolver
from yaml_import.utils.logger import setup_logger


logger = setup_logger(__name__)

PathLike = Union[str, Path]


class ImportContext:
    """Configuration shared by every import resolved during a load."""

    def __init__(
        self,
        root: Optional[PathLike] = None,
        resolver: Optional[PathPatternResolver] = None,
        encoding: str = "utf-8",
        detect_cycles: bool = True,
    ):
        """
        Initialize the context.

        Args:
            root: Base directory for relative imports (defaults to the cwd)
            resolver: Pattern resolver, owning its own match cache
            encoding: Encoding used to read imported files
            detect_cycles: Raise CyclicImportError on import cycles
        """
        self.root = root if root is not None else Path.cwd()
        self.resolver = resolver or PathPatternResolver()
        self.encoding = encoding
        self.detect_cycles = detect_cycles

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "ImportContext":
        settings = settings or get_settings()
        return cls(
            root=settings.import_root,
            encoding=settings.encoding,
            detect_cycles=settings.detect_cycles,
        )

    @property
    def root(self) -> Path:
        return self._root

    @root.setter
    def root(self, value: PathLike) -> None:
        self._root = Path(value).expanduser().absolute()

    def resolve_path(self, reference: PathLike, root: Optional[PathLike] = None) -> Path:
        """
        Resolve an import reference to a concrete path.

        Args:
            reference: Absolute path, or path relative to the import root
            root: Root to use instead of the context's current one

        Returns:
            Absolute path
        """
        path = Path(reference).expanduser()
        if path.is_absolute():
            return path
        return Path(root if root is not None else self.root) / path


_default_context: Optional[ImportContext] = None


def get_default_context() -> ImportContext:
    """Return the process-wide context, creating it from settings on first use."""
    global _default_context
    if _default_context is None:
        _default_context = ImportContext.from_settings()
        logger.debug(f"Import root initialized to {_default_context.root}")
    return _default_context


def reset_default_context() -> None:
    """Drop the process-wide context so the next use rebuilds it."""
    global _default_context
    _default_context = None


def get_relative_import_dir() -> Path:
    """Return the directory relative imports are resolved against."""
    return get_default_context().root


def set_relative_import_dir(path: PathLike) -> None:
    """
    Set the directory relative imports are resolved against.

    Loads already in progress keep the root they started with.

    Args:
        path: New import root
    """
    context = get_default_context()
    context.root = path
    logger.info(f"Relative import dir set to {context.root}")


@contextmanager
def relative_import_dir(path: PathLike) -> Iterator[Path]:
    """
    Temporarily override the import root, restoring the previous one on exit.

    Args:
        path: Import root to use inside the block

    Yields:
        The active import root
    """
    previous = get_relative_import_dir()
    set_relative_import_dir(path)
    try:
        yield get_relative_import_dir()
    finally:
        set_relative_import_dir(previous)
