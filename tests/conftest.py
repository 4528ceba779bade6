"""
Root conftest.py - sys.path, env vars, shared fixtures.

Remote clusters are simulated by the recording in-memory filesystem in
tests/factories/recording_fs.py, so no Hadoop or Azure services are needed.
"""

import os
import sys

import fsspec
import pytest

# Add project root to sys.path so 'jobcache' is importable without installing
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from jobcache.config import ClusterConfiguration
from tests.factories.file_factories import make_app_tree, make_file
from tests.factories.recording_fs import PROTOCOL, RecordingFileSystem

JOBCACHE_ENV_VARS = [
    "JOBCACHE_OUTPUT_PATHS",
    "JOBCACHE_REPLICATION",
    "JOBCACHE_EXECUTOR_THREADS",
    "JOBCACHE_FINALIZE",
    "JOBCACHE_LOAD_MODE",
    "JOBCACHE_SUB_DIR",
    "JOBCACHE_CACHE_ALIAS",
    "JOBCACHE_TIMEOUT_SECONDS",
    "INGEST_HADOOP_CONF",
    "WAREHOUSE_HADOOP_CONF",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Remove every env var the config layer reads, for isolation."""
    for var in JOBCACHE_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    return monkeypatch


@pytest.fixture
def recording_fs():
    """Register the recording filesystem and start from an empty store."""
    fsspec.register_implementation(PROTOCOL, RecordingFileSystem, clobber=True)
    RecordingFileSystem.reset()
    yield RecordingFileSystem
    RecordingFileSystem.reset()


@pytest.fixture
def clusters():
    """Two fake clusters with atomic rename, like two HDFS namenodes."""
    return [
        ClusterConfiguration(name="clusterA", default_fs=f"{PROTOCOL}://clusterA", atomic_rename=True),
        ClusterConfiguration(name="clusterB", default_fs=f"{PROTOCOL}://clusterB", atomic_rename=True),
    ]


@pytest.fixture
def app_tree(tmp_path):
    """Application layout under tmp_path/app; returns relative -> absolute paths."""
    return make_app_tree(tmp_path / "app")


@pytest.fixture
def two_files(tmp_path):
    """app.jar and config.xml in different local directories."""
    return [
        make_file(tmp_path / "src" / "lib", "app.jar", b"jar-bytes"),
        make_file(tmp_path / "src" / "conf", "config.xml", b"<configuration/>"),
    ]
