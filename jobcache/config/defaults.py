"""
Configuration Defaults - Single source of truth for all default values.

Organization:
    - LoadDefaults: Run-level knobs (replication, threads, finalize, naming)
    - HadoopDefaults: Hadoop configuration discovery
    - FileSystemDefaults: Protocol capabilities and temporary-name conventions

Usage:
    from jobcache.config.defaults import LoadDefaults

    # In Pydantic Field definitions:
    replication: int = Field(default=LoadDefaults.REPLICATION, ...)
"""


# =============================================================================
# LOAD DEFAULTS
# =============================================================================

class LoadDefaults:
    """
    Defaults for a single job cache load run.

    Values match the command-line defaults.
    """

    REPLICATION = 3
    # HDFS stores replication as a short
    MAX_REPLICATION = 32767
    EXECUTOR_THREADS = 30
    FINALIZE = True
    LOAD_MODE = "classpath"

    # Staging directory: jobCache_YYYYMMDDHHMMSS (UTC)
    STAGING_DIR_PREFIX = "jobCache_"
    TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"

    # Final location name when no sub-directory is given
    CACHE_ALIAS = "jobCache"


# =============================================================================
# HADOOP DEFAULTS
# =============================================================================

class HadoopDefaults:
    """
    Hadoop configuration discovery.

    Each environment variable names one configuration directory; unset
    variables are skipped.
    """

    CONF_DIR_ENV_VARS = ("INGEST_HADOOP_CONF", "WAREHOUSE_HADOOP_CONF")

    # Read in this order; later files override earlier ones
    SITE_FILES = ("core-site.xml", "hdfs-site.xml")
    SITE_FILE_SUFFIX = "-site.xml"

    DEFAULT_FS_KEY = "fs.defaultFS"
    LEGACY_DEFAULT_FS_KEY = "fs.default.name"
    DEFAULT_FS = "file:///"

    # Azure account keys: fs.azure.account.key.<account>.dfs.core.windows.net
    AZURE_ACCOUNT_KEY_PREFIX = "fs.azure.account.key."

    # Property names containing any of these are masked in debug output
    SECRET_MARKERS = ("key", "secret", "password", "token", "credential")


# =============================================================================
# FILESYSTEM DEFAULTS
# =============================================================================

class FileSystemDefaults:
    """
    Filesystem protocol capabilities.

    ATOMIC_RENAME_PROTOCOLS: rename is a single metadata operation, so a
    staging directory can be promoted without readers seeing a partial cache.
    Object stores (s3, gcs, plain blob) copy-then-delete and are excluded.
    """

    ATOMIC_RENAME_PROTOCOLS = frozenset({
        "file", "local", "memory",
        "hdfs", "viewfs",
        "webhdfs", "swebhdfs",
    })

    # Protocols that can be opened without a cluster configuration
    UNCONFIGURED_PROTOCOLS = frozenset({"file", "local", "memory"})

    # Hadoop schemes fsspec does not register, mapped to the implementation
    # that serves them (swebhdfs additionally gets use_https=True)
    FSSPEC_IMPLEMENTATIONS = {
        "swebhdfs": "webhdfs",
        "viewfs": "hdfs",
    }

    # Directory renames go through os.rename so EXDEV surfaces instead of
    # shutil.move's copy-and-delete fallback
    LOCAL_PROTOCOLS = frozenset({"file", "local"})

    # open(..., replication=n) is honoured per file
    PER_FILE_REPLICATION_PROTOCOLS = frozenset({"webhdfs", "swebhdfs"})

    # Replication is fixed when the client is created (pyarrow
    # HadoopFileSystem(replication=n)) and applies to every file it writes
    CLIENT_REPLICATION_PROTOCOLS = frozenset({"hdfs", "viewfs"})

    # Hadoop's own in-flight suffix for `hdfs dfs -put`
    COPYING_SUFFIX = "._COPYING_"

    # Previous cache kept next to the final location after promotion
    RETIRED_SUFFIX = ".previous"
