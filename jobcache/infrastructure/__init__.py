"""
Infrastructure Package - Connections to remote filesystems.

Exports:
    FileSystemPath: Scoped connection to one target cluster
"""

from .filesystem_path import FileSystemPath

__all__ = ['FileSystemPath']
