"""
Load Mode Registry - Explicit mode registration.

All modes are registered here explicitly. No decorators, no auto-discovery.
If it's not in ALL_MODES, it's not registered.

Registration Process:
    1. Create your mode class in modes/your_mode.py (subclass LoadJobCacheMode)
    2. Add its name to LoadMode
    3. Import it at the top of this file and add it to ALL_MODES

Exports:
    ALL_MODES: Dict mapping mode name to mode class
    get_mode: Build a mode instance from its name
    LoadJobCacheMode, LoadMode, ModeOptions
"""

from typing import Dict, Type, Union

from .base import LoadJobCacheMode, LoadMode, ModeOptions
from .classpath import ClasspathMode, CLASSPATH_DELIM
from .directory import DirectoryMode
from ..exceptions import ConfigurationError

ALL_MODES: Dict[str, Type[LoadJobCacheMode]] = {
    LoadMode.CLASSPATH.value: ClasspathMode,
    LoadMode.DIRECTORY.value: DirectoryMode,
}


def get_mode(name: Union[str, LoadMode]) -> LoadJobCacheMode:
    """
    Build the load mode registered under `name`.

    Raises:
        ConfigurationError: If no mode is registered under that name
    """
    key = name.value if isinstance(name, LoadMode) else str(name).strip().lower()
    mode_class = ALL_MODES.get(key)
    if mode_class is None:
        raise ConfigurationError(
            f"Unknown load mode: {name}. Valid options: {', '.join(sorted(ALL_MODES))}"
        )
    return mode_class()


__all__ = [
    'ALL_MODES',
    'get_mode',
    'LoadJobCacheMode',
    'LoadMode',
    'ModeOptions',
    'ClasspathMode',
    'DirectoryMode',
    'CLASSPATH_DELIM',
]
