"""
Classpath Mode - Load the files named by a Java-style classpath.

Entry rules (relative entries resolve against classpath_base_dir):
    lib/app.jar       the file itself
    conf              regular files directly inside the directory
    lib/*, lib/*.jar  matching regular files in lib
    lib/**            every regular file under lib, at any depth
    missing entries   skipped, as the JVM does
"""

import glob
import os
from typing import Iterator

from .base import LoadJobCacheMode, LoadMode, ModeOptions
from ..util_logger import LoggerFactory, ComponentType

logger = LoggerFactory.create_logger(ComponentType.MODE, __name__)

CLASSPATH_DELIM = ":"
GLOB_CHARS = ("*", "?", "[")


def _files_in(directory: str) -> Iterator[str]:
    with os.scandir(directory) as entries:
        for entry in entries:
            if entry.is_file():
                yield entry.path


class ClasspathMode(LoadJobCacheMode):
    """Finds files to load from a classpath and a base directory."""

    mode = LoadMode.CLASSPATH
    description = "Files named by a ':'-separated classpath, relative to a base directory"
    required_options = ("classpath_base_dir", "classpath")

    def _find_files(self, options: ModeOptions) -> Iterator[str]:
        base_dir = options.classpath_base_dir
        for raw_entry in options.classpath.split(CLASSPATH_DELIM):
            entry = raw_entry.strip()
            if not entry:
                continue
            path = os.path.join(base_dir, os.path.expanduser(entry))

            if any(char in entry for char in GLOB_CHARS):
                matches = sorted(glob.glob(path, recursive=True))
                files = [match for match in matches if os.path.isfile(match)]
                if not files:
                    logger.debug(f"Classpath entry matched no files: {entry}")
                yield from files
            elif os.path.isfile(path):
                yield path
            elif os.path.isdir(path):
                yield from _files_in(path)
            else:
                logger.debug(f"Skipping missing classpath entry: {entry}")
