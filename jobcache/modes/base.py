"""
Load Mode Base - Strategy interface for finding the files to load.

A load mode turns ModeOptions into the set of local files that make up a job
cache. Modes hold no state: resolve() depends only on its options and the
local filesystem, so repeated calls return the same set.

Exports:
    LoadMode: Enum of registered mode names
    ModeOptions: Immutable options record shared by all modes
    LoadJobCacheMode: Abstract base class for modes
"""

import os
from abc import ABC, abstractmethod
from collections import defaultdict
from enum import Enum
from typing import ClassVar, FrozenSet, Iterable, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from ..exceptions import ConfigurationError, ResolutionError
from ..util_logger import LoggerFactory, ComponentType

logger = LoggerFactory.create_logger(ComponentType.MODE, __name__)


class LoadMode(str, Enum):
    """Registered load mode names."""
    CLASSPATH = "classpath"
    DIRECTORY = "directory"


class ModeOptions(BaseModel):
    """
    Options consumed by load modes.

    Each mode reads the fields it needs and ignores the rest.

    Attributes:
        classpath: ':'-joined classpath (classpath mode)
        classpath_base_dir: Directory relative classpath entries resolve against
        directory: Directory whose files are loaded (directory mode)
        recursive: Descend into sub-directories (directory mode)
    """
    model_config = ConfigDict(frozen=True)

    classpath: Optional[str] = Field(default=None, description="Classpath used to find files to load")
    classpath_base_dir: Optional[str] = Field(default=None, description="Base directory for relative classpath entries")
    directory: Optional[str] = Field(default=None, description="Directory containing the files to load")
    recursive: bool = Field(default=False, description="Include files in sub-directories")


class LoadJobCacheMode(ABC):
    """
    Base class for load modes.

    Subclasses declare `mode`, `description` and `required_options`, and
    implement _find_files(). resolve() is the public entry point: it validates
    the options, finds the files, normalizes them to absolute paths, and
    rejects base-name collisions (the staging directory is flat).
    """

    mode: ClassVar[LoadMode]
    description: ClassVar[str] = ""
    required_options: ClassVar[Tuple[str, ...]] = ()

    def validate(self, options: ModeOptions) -> None:
        """
        Check that every option this mode needs is set.

        Raises:
            ConfigurationError: Naming the first missing option
        """
        for field_name in self.required_options:
            value = getattr(options, field_name, None)
            if value is None or (isinstance(value, str) and not value.strip()):
                raise ConfigurationError(
                    f"Load mode '{self.mode.value}' requires option '{field_name}'"
                )

    def resolve(self, options: ModeOptions) -> FrozenSet[str]:
        """
        Find the files to load.

        Returns:
            Absolute local file paths; empty when nothing matches

        Raises:
            ConfigurationError: Required option missing
            ResolutionError: Files could not be enumerated
        """
        self.validate(options)
        try:
            found = self._find_files(options)
            files = frozenset(os.path.abspath(path) for path in found)
        except OSError as e:
            raise ResolutionError(f"Load mode '{self.mode.value}' failed to list files: {e}") from e

        self._check_unique_names(files)
        logger.info(f"Load mode '{self.mode.value}' resolved {len(files)} file(s)")
        return files

    @abstractmethod
    def _find_files(self, options: ModeOptions) -> Iterable[str]:
        """Yield local file paths for validated options."""
        pass

    def _check_unique_names(self, files: FrozenSet[str]) -> None:
        by_name = defaultdict(list)
        for path in files:
            by_name[os.path.basename(path)].append(path)
        collisions = {name: sorted(paths) for name, paths in by_name.items() if len(paths) > 1}
        if collisions:
            details = "; ".join(f"{name}: {paths}" for name, paths in sorted(collisions.items()))
            raise ResolutionError(
                f"Load mode '{self.mode.value}' resolved files with the same name, "
                f"which would overwrite each other in the job cache: {details}"
            )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(mode={self.mode.value!r})"
