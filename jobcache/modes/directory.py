"""
Directory Mode - Load every file in one directory.
"""

import os
from typing import Iterator

from .base import LoadJobCacheMode, LoadMode, ModeOptions
from ..exceptions import ConfigurationError


class DirectoryMode(LoadJobCacheMode):
    """Finds files to load in a directory, optionally recursively."""

    mode = LoadMode.DIRECTORY
    description = "Regular files in a directory (sub-directories only when recursive)"
    required_options = ("directory",)

    def validate(self, options: ModeOptions) -> None:
        super().validate(options)
        if not os.path.isdir(options.directory):
            raise ConfigurationError(f"Load directory does not exist: {options.directory}")

    def _find_files(self, options: ModeOptions) -> Iterator[str]:
        if not options.recursive:
            with os.scandir(options.directory) as entries:
                for entry in entries:
                    if entry.is_file():
                        yield entry.path
            return

        def _raise(error: OSError):
            raise error

        for root, _dirs, names in os.walk(options.directory, onerror=_raise):
            for name in names:
                path = os.path.join(root, name)
                if os.path.isfile(path):
                    yield path
