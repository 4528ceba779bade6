"""
Load configuration tests.

Tests defaults, validation, environment loading and staging directory naming.
"""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from jobcache.config import LoadDefaults, LoadJobCacheConfig, make_staging_dir_name


class TestStagingDirName:
    """jobCache_YYYYMMDDHHMMSS in UTC."""

    def test_format(self):
        now = datetime(2026, 1, 18, 9, 30, 15, tzinfo=timezone.utc)
        assert make_staging_dir_name(now) == "jobCache_20260118093015"

    def test_converted_to_utc(self):
        eastern = timezone(timedelta(hours=-5))
        now = datetime(2026, 1, 18, 4, 30, 15, tzinfo=eastern)
        assert make_staging_dir_name(now) == "jobCache_20260118093015"

    def test_naive_treated_as_utc(self):
        assert make_staging_dir_name(datetime(2026, 1, 18, 9, 30, 15)) == "jobCache_20260118093015"

    def test_default_is_now(self):
        name = make_staging_dir_name()
        assert name.startswith(LoadDefaults.STAGING_DIR_PREFIX)
        assert len(name) == len("jobCache_") + 14


class TestLoadJobCacheConfigDefaults:
    """Defaults match the command line."""

    def test_defaults(self):
        config = LoadJobCacheConfig()
        assert config.output_paths == []
        assert config.replication == 3
        assert config.executor_threads == 30
        assert config.finalize is True
        assert config.load_mode == "classpath"
        assert config.sub_dir is None
        assert config.cache_alias == "jobCache"
        assert config.timeout_seconds is None

    def test_staging_name_computed_once(self):
        config = LoadJobCacheConfig()
        assert config.staging_dir_name == config.staging_dir_name
        assert config.model_copy().staging_dir_name == config.staging_dir_name


class TestLoadJobCacheConfigValidation:
    """Out-of-range values are rejected."""

    @pytest.mark.parametrize("replication", [0, -1, 32768])
    def test_replication_range(self, replication):
        with pytest.raises(ValidationError):
            LoadJobCacheConfig(replication=replication)

    def test_replication_upper_bound_accepted(self):
        assert LoadJobCacheConfig(replication=32767).replication == 32767

    def test_threads_positive(self):
        with pytest.raises(ValidationError):
            LoadJobCacheConfig(executor_threads=0)

    def test_timeout_positive(self):
        with pytest.raises(ValidationError):
            LoadJobCacheConfig(timeout_seconds=0)

    @pytest.mark.parametrize("value", ["", "/", "  "])
    def test_blank_sub_dir_is_none(self, value):
        assert LoadJobCacheConfig(sub_dir=value).sub_dir is None

    def test_sub_dir_slashes_trimmed(self):
        assert LoadJobCacheConfig(sub_dir="/ingest/").sub_dir == "ingest"

    @pytest.mark.parametrize("field", ["sub_dir", "staging_dir_name", "cache_alias"])
    def test_parent_reference_rejected(self, field):
        with pytest.raises(ValidationError, match="output root"):
            LoadJobCacheConfig(**{field: "../escape"})

    def test_empty_cache_alias_rejected(self):
        with pytest.raises(ValidationError):
            LoadJobCacheConfig(cache_alias="")


class TestFromEnvironment:
    """Environment variables feed the config."""

    def test_empty_environment_gives_defaults(self):
        config = LoadJobCacheConfig.from_environment()
        assert config.output_paths == []
        assert config.hadoop_conf_dirs == []
        assert config.replication == LoadDefaults.REPLICATION

    def test_all_variables(self, clean_env):
        clean_env.setenv("JOBCACHE_OUTPUT_PATHS", "hdfs://a:8020/x, hdfs://b:8020/x")
        clean_env.setenv("JOBCACHE_REPLICATION", "2")
        clean_env.setenv("JOBCACHE_EXECUTOR_THREADS", "12")
        clean_env.setenv("JOBCACHE_FINALIZE", "FALSE")
        clean_env.setenv("JOBCACHE_LOAD_MODE", "directory")
        clean_env.setenv("JOBCACHE_SUB_DIR", "ingest")
        clean_env.setenv("JOBCACHE_CACHE_ALIAS", "current")
        clean_env.setenv("JOBCACHE_TIMEOUT_SECONDS", "90")

        config = LoadJobCacheConfig.from_environment()

        assert config.output_paths == ["hdfs://a:8020/x", "hdfs://b:8020/x"]
        assert config.replication == 2
        assert config.executor_threads == 12
        assert config.finalize is False
        assert config.load_mode == "directory"
        assert config.sub_dir == "ingest"
        assert config.cache_alias == "current"
        assert config.timeout_seconds == 90.0

    def test_conf_dirs_from_both_variables(self, clean_env):
        clean_env.setenv("INGEST_HADOOP_CONF", "/etc/ingest")
        clean_env.setenv("WAREHOUSE_HADOOP_CONF", "/etc/warehouse")
        assert LoadJobCacheConfig.from_environment().hadoop_conf_dirs == ["/etc/ingest", "/etc/warehouse"]

    def test_unset_conf_dir_skipped(self, clean_env):
        clean_env.setenv("WAREHOUSE_HADOOP_CONF", "/etc/warehouse")
        assert LoadJobCacheConfig.from_environment().hadoop_conf_dirs == ["/etc/warehouse"]

    def test_invalid_number_rejected(self, clean_env):
        clean_env.setenv("JOBCACHE_REPLICATION", "three")
        with pytest.raises(ValueError):
            LoadJobCacheConfig.from_environment()

    def test_debug_dict(self):
        config = LoadJobCacheConfig(output_paths=["/x"])
        assert config.debug_dict()["output_paths"] == ["/x"]
