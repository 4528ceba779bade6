"""
Configuration Package.

Structure:
    config/
    ├── __init__.py          # This file - exports
    ├── defaults.py          # Default values
    ├── load_config.py       # Run-level settings (LoadJobCacheConfig)
    └── cluster_config.py    # Hadoop configuration directories

Usage:
    from jobcache.config import LoadJobCacheConfig, load_cluster_configurations

    config = LoadJobCacheConfig.from_environment()
    clusters = load_cluster_configurations(config.hadoop_conf_dirs)
"""

from .defaults import LoadDefaults, HadoopDefaults, FileSystemDefaults
from .load_config import LoadJobCacheConfig, make_staging_dir_name
from .cluster_config import (
    ClusterConfiguration,
    load_cluster_configuration,
    load_cluster_configurations,
    read_site_file,
)

__all__ = [
    'LoadDefaults',
    'HadoopDefaults',
    'FileSystemDefaults',
    'LoadJobCacheConfig',
    'make_staging_dir_name',
    'ClusterConfiguration',
    'load_cluster_configuration',
    'load_cluster_configurations',
    'read_site_file',
]
