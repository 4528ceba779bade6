"""
Job Cache Loader.

Stages local jars and configuration files into a timestamped job cache
directory (jobCache_YYYYMMDDHHMMSS) on one or more Hadoop-compatible
filesystems, then optionally promotes it with an atomic directory rename.

Usage:
    from jobcache import LoadJobCacheLauncher, LoadJobCacheConfig, ModeOptions

    config = LoadJobCacheConfig(output_paths=["hdfs://nn:8020/data"],
                                hadoop_conf_dirs=["/etc/hadoop/conf"])
    LoadJobCacheLauncher(config).run(
        ModeOptions(classpath_base_dir="/opt/app", classpath="lib/*:conf")
    )
"""

__version__ = "0.1.0"

from .config import LoadJobCacheConfig, ClusterConfiguration
from .core import CacheLoadRequest, LoadResult, load
from .exceptions import (
    JobCacheError,
    ConfigurationError,
    ResolutionError,
    TransferError,
    PromotionError,
    CompositeLoadError,
)
from .infrastructure import FileSystemPath
from .launcher import LoadJobCacheLauncher, main
from .modes import ALL_MODES, LoadJobCacheMode, LoadMode, ModeOptions, get_mode

__all__ = [
    '__version__',
    'LoadJobCacheConfig',
    'ClusterConfiguration',
    'CacheLoadRequest',
    'LoadResult',
    'load',
    'JobCacheError',
    'ConfigurationError',
    'ResolutionError',
    'TransferError',
    'PromotionError',
    'CompositeLoadError',
    'FileSystemPath',
    'LoadJobCacheLauncher',
    'main',
    'ALL_MODES',
    'LoadJobCacheMode',
    'LoadMode',
    'ModeOptions',
    'get_mode',
]
