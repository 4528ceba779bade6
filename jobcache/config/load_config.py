# ============================================================================
# LOAD CONFIGURATION
# ============================================================================
# STATUS: Config - run-level settings for one job cache load
# PURPOSE: Validated knobs consumed by the launcher and orchestrator
# EXPORTS: LoadJobCacheConfig, make_staging_dir_name
# DEPENDENCIES: pydantic, os, datetime
# SOURCE: Environment variables (JOBCACHE_*, INGEST_HADOOP_CONF, WAREHOUSE_HADOOP_CONF)
# ============================================================================

"""
Load Configuration.

Run-level settings for a job cache load: where to write, how many replicas,
how many threads, whether to promote, and the staging directory name.

The staging directory name is computed once, when the config is built, and
then reused for every target and file of the run.

Usage:
    from jobcache.config import LoadJobCacheConfig

    config = LoadJobCacheConfig.from_environment()
    config = config.model_copy(update={"replication": 2})
"""

import os
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from .defaults import LoadDefaults, HadoopDefaults


def make_staging_dir_name(now: Optional[datetime] = None) -> str:
    """
    Build the staging directory name for a run.

    Args:
        now: Moment to stamp (default: current UTC time). Naive datetimes
             are treated as UTC.

    Returns:
        e.g. "jobCache_20260118093015"
    """
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return LoadDefaults.STAGING_DIR_PREFIX + now.strftime(LoadDefaults.TIMESTAMP_FORMAT)


def _split_list(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


class LoadJobCacheConfig(BaseModel):
    """
    Settings for one job cache load.

    Attributes:
        output_paths: Destination root URLs, one per target cluster
        hadoop_conf_dirs: Hadoop configuration directories to read
        replication: Replication factor applied to every uploaded file
        executor_threads: Worker pool size shared by all copies
        finalize: Promote staging directories after a successful upload
        load_mode: Name of the file resolution strategy
        sub_dir: Optional sub-directory under the staging directory
        staging_dir_name: Timestamped staging directory (computed once)
        cache_alias: Final directory name when no sub_dir is given
        timeout_seconds: Optional bound on the whole copy batch
    """

    output_paths: List[str] = Field(
        default_factory=list,
        description="Destination root URLs (hdfs://nn:8020/data/cache, abfs://..., /local/dir)"
    )

    hadoop_conf_dirs: List[str] = Field(
        default_factory=list,
        description="Hadoop configuration directories containing *-site.xml files"
    )

    replication: int = Field(
        default=LoadDefaults.REPLICATION,
        ge=1,
        le=LoadDefaults.MAX_REPLICATION,
        description="Number of replicas for loaded cache files"
    )

    executor_threads: int = Field(
        default=LoadDefaults.EXECUTOR_THREADS,
        ge=1,
        description="Number of threads used to copy files"
    )

    finalize: bool = Field(
        default=LoadDefaults.FINALIZE,
        description="Move the staging directory to its final path after loading"
    )

    load_mode: str = Field(
        default=LoadDefaults.LOAD_MODE,
        description="Mode used to find the files to load"
    )

    sub_dir: Optional[str] = Field(
        default=None,
        description="Optional sub-directory added under the staging directory"
    )

    staging_dir_name: str = Field(
        default_factory=make_staging_dir_name,
        description="Timestamped staging directory name, shared by all targets"
    )

    cache_alias: str = Field(
        default=LoadDefaults.CACHE_ALIAS,
        description="Final directory name used when no sub_dir is given"
    )

    timeout_seconds: Optional[float] = Field(
        default=None,
        gt=0,
        description="Abandon copies still pending after this many seconds"
    )

    @field_validator("sub_dir", "staging_dir_name", "cache_alias")
    @classmethod
    def validate_relative_name(cls, value: Optional[str]) -> Optional[str]:
        """Directory names must stay under the output root."""
        if value is None:
            return value
        value = value.strip().strip("/")
        if not value:
            raise ValueError("directory name must not be empty")
        if ".." in value.split("/"):
            raise ValueError(f"directory name must not leave the output root: {value}")
        return value

    @field_validator("sub_dir", mode="before")
    @classmethod
    def empty_sub_dir_is_none(cls, value):
        if isinstance(value, str) and not value.strip().strip("/"):
            return None
        return value

    @classmethod
    def from_environment(cls):
        """Load from environment variables."""
        conf_dirs = [
            os.environ[name] for name in HadoopDefaults.CONF_DIR_ENV_VARS
            if os.environ.get(name)
        ]
        timeout = os.environ.get("JOBCACHE_TIMEOUT_SECONDS")
        kwargs = dict(
            output_paths=_split_list(os.environ.get("JOBCACHE_OUTPUT_PATHS")),
            hadoop_conf_dirs=conf_dirs,
            replication=int(os.environ.get("JOBCACHE_REPLICATION", str(LoadDefaults.REPLICATION))),
            executor_threads=int(os.environ.get("JOBCACHE_EXECUTOR_THREADS", str(LoadDefaults.EXECUTOR_THREADS))),
            finalize=os.environ.get("JOBCACHE_FINALIZE", str(LoadDefaults.FINALIZE).lower()).lower() == "true",
            load_mode=os.environ.get("JOBCACHE_LOAD_MODE", LoadDefaults.LOAD_MODE),
            sub_dir=os.environ.get("JOBCACHE_SUB_DIR"),
            cache_alias=os.environ.get("JOBCACHE_CACHE_ALIAS", LoadDefaults.CACHE_ALIAS),
            timeout_seconds=float(timeout) if timeout else None,
        )
        return cls(**kwargs)

    def debug_dict(self) -> dict:
        """Config values safe to log."""
        return self.model_dump()
