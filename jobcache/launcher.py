# ============================================================================
# LOAD JOB CACHE LAUNCHER
# ============================================================================
# STATUS: Entry point - CLI and programmatic launcher
# PURPOSE: Open one FileSystemPath per output path, resolve the files to load,
#          run the orchestrator, and always release every connection
# EXPORTS: LoadJobCacheLauncher, build_parser, main
# ENTRY_POINTS: jobcache-load (console script), python -m jobcache
# ============================================================================

"""
Load Job Cache Launcher.

Copies local configuration and jar files to a timestamped job cache directory
on one or more clusters.

Exit codes:
    0  success, including "no files found"
    1  load failure (copy, promotion or file resolution)
    2  invalid arguments or configuration

Examples:
  # Stage and promote the application classpath on two clusters
  jobcache-load --output-paths hdfs://ingest-nn:8020/data,hdfs://warehouse-nn:8020/data \\
      --classpath-base-dir /opt/app --classpath "lib/*:conf"

  # Stage a directory without promoting it
  jobcache-load --output-paths hdfs://nn:8020/data --load-mode directory \\
      --directory /opt/app/cache --finalize-load false
"""

import argparse
import contextlib
import sys
from typing import List, Optional, Sequence

from pydantic import ValidationError

from .config import (
    ClusterConfiguration,
    LoadDefaults,
    LoadJobCacheConfig,
    load_cluster_configurations,
)
from .core import LoadResult, load
from .exceptions import ConfigurationError, JobCacheError
from .infrastructure import FileSystemPath
from .modes import ALL_MODES, LoadJobCacheMode, ModeOptions, get_mode
from .util_logger import LoggerFactory, ComponentType, log_exceptions

logger = LoggerFactory.create_logger(ComponentType.LAUNCHER, __name__)


class LoadJobCacheLauncher:
    """
    Runs one job cache load from a LoadJobCacheConfig.

    Args:
        config: Run settings
        mode: Load mode (default: the mode named by config.load_mode)
        clusters: Cluster configurations (default: read from
                  config.hadoop_conf_dirs when run() is called)
    """

    def __init__(self, config: LoadJobCacheConfig,
                 mode: Optional[LoadJobCacheMode] = None,
                 clusters: Optional[Sequence[ClusterConfiguration]] = None):
        self.config = config
        self.mode = mode if mode is not None else get_mode(config.load_mode)
        self._clusters = list(clusters) if clusters is not None else None

    def run(self, options: ModeOptions) -> Optional[LoadResult]:
        """
        Load the job cache.

        Returns:
            LoadResult, or None when the mode found no files

        Raises:
            ConfigurationError: Bad options or cluster configuration
            ResolutionError: Files could not be listed
            CompositeLoadError: Copies or promotions failed
        """
        config = self.config
        if not config.output_paths:
            raise ConfigurationError("At least one output path is required")

        self.mode.validate(options)
        run_logger = LoggerFactory.create_with_context(
            ComponentType.LAUNCHER, f"{__name__}.run",
            staging_dir=config.staging_dir_name,
            load_mode=self.mode.mode.value,
        )

        logger.info("Converting hadoop conf dirs to cluster configurations")
        clusters = self._clusters
        if clusters is None:
            clusters = load_cluster_configurations(config.hadoop_conf_dirs)

        with contextlib.ExitStack() as stack:
            logger.info("Constructing file system paths")
            targets = [
                stack.enter_context(FileSystemPath(url, clusters, replication=config.replication))
                for url in config.output_paths
            ]

            logger.info("Finding files to load")
            files = self.mode.resolve(options)
            if not files:
                run_logger.warning(
                    f"No files were found to load cache for mode {self.mode.mode.value} "
                    f"with options {options.model_dump(exclude_none=True)}"
                )
                return None

            run_logger.info(f"Loading job cache with timestamp {config.staging_dir_name}")
            return load(
                targets,
                files,
                finalize=config.finalize,
                replication=config.replication,
                worker_count=config.executor_threads,
                staging_dir_name=config.staging_dir_name,
                sub_dir=config.sub_dir,
                cache_alias=config.cache_alias,
                timeout=config.timeout_seconds,
            )


# ============================================================================
# COMMAND LINE
# ============================================================================

def _str_to_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ("true", "yes", "1"):
        return True
    if lowered in ("false", "no", "0"):
        return False
    raise argparse.ArgumentTypeError(f"expected true or false, got '{value}'")


def _comma_list(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jobcache-load",
        description="Copy local configuration and jar files to a timestamped job cache "
                    "directory on one or more Hadoop-compatible filesystems.",
    )
    parser.add_argument(
        "--output-paths", type=_comma_list, default=None,
        help="Comma-separated output directories to load (default: $JOBCACHE_OUTPUT_PATHS)",
    )
    parser.add_argument(
        "--hadoop-conf-dirs", type=_comma_list, default=None,
        help="Comma-separated Hadoop configuration directories "
             "(default: $INGEST_HADOOP_CONF,$WAREHOUSE_HADOOP_CONF)",
    )
    parser.add_argument(
        "--cache-replication-cnt", type=int, default=None,
        help=f"Number of replicas for loaded cache files (default: {LoadDefaults.REPLICATION})",
    )
    parser.add_argument(
        "--executor-thread-cnt", type=int, default=None,
        help=f"Number of threads used to load the cache (default: {LoadDefaults.EXECUTOR_THREADS})",
    )
    parser.add_argument(
        "--finalize-load", type=_str_to_bool, default=None, metavar="{true,false}",
        help="Move the staging directory to its final path after loading (default: true)",
    )
    parser.add_argument(
        "--load-mode", type=str, default=None, choices=sorted(ALL_MODES),
        help=f"Mode used to find files to load (default: {LoadDefaults.LOAD_MODE})",
    )
    parser.add_argument(
        "--sub-dir", type=str, default=None,
        help="Optional sub-directory to add to the cache directory",
    )
    parser.add_argument(
        "--timestamp-dir", type=str, default=None,
        help="Staging directory name (default: jobCache_<UTC yyyyMMddHHmmss>)",
    )
    parser.add_argument(
        "--cache-alias", type=str, default=None,
        help=f"Final directory name when no sub-dir is given (default: {LoadDefaults.CACHE_ALIAS})",
    )
    parser.add_argument(
        "--timeout", type=float, default=None,
        help="Abandon copies still running after this many seconds",
    )

    mode_group = parser.add_argument_group("mode options")
    mode_group.add_argument("--classpath", type=str, default=None,
                            help="':'-separated classpath of files to load (classpath mode)")
    mode_group.add_argument("--classpath-base-dir", type=str, default=None,
                            help="Base directory for relative classpath entries (classpath mode)")
    mode_group.add_argument("--directory", type=str, default=None,
                            help="Directory whose files are loaded (directory mode)")
    mode_group.add_argument("--recursive", action="store_true",
                            help="Include files in sub-directories (directory mode)")
    return parser


def config_from_args(args: argparse.Namespace) -> LoadJobCacheConfig:
    """
    Environment settings overridden by any flag given on the command line.

    Raises:
        ValidationError / ValueError: Invalid values
    """
    config = LoadJobCacheConfig.from_environment()
    overrides = {
        "output_paths": args.output_paths,
        "hadoop_conf_dirs": args.hadoop_conf_dirs,
        "replication": args.cache_replication_cnt,
        "executor_threads": args.executor_thread_cnt,
        "finalize": args.finalize_load,
        "load_mode": args.load_mode,
        "sub_dir": args.sub_dir,
        "staging_dir_name": args.timestamp_dir,
        "cache_alias": args.cache_alias,
        "timeout_seconds": args.timeout,
    }
    overrides = {key: value for key, value in overrides.items() if value is not None}
    # Re-validate: model_copy skips validation
    return LoadJobCacheConfig(**{**config.model_dump(), **overrides})


def mode_options_from_args(args: argparse.Namespace) -> ModeOptions:
    return ModeOptions(
        classpath=args.classpath,
        classpath_base_dir=args.classpath_base_dir,
        directory=args.directory,
        recursive=args.recursive,
    )


@log_exceptions(ComponentType.LAUNCHER, "main")
def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Command line entry point.

    Returns:
        Process exit code
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = config_from_args(args)
        options = mode_options_from_args(args)
    except (ValidationError, ValueError) as e:
        parser.error(str(e))

    if not config.output_paths:
        parser.error("--output-paths is required")

    logger.info("Starting load job cache utility", extra={'custom_dimensions': config.debug_dict()})
    try:
        LoadJobCacheLauncher(config).run(options)
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        print(f"error: {e}", file=sys.stderr)
        return 2
    except JobCacheError as e:
        logger.error(f"Job cache load failed: {e}")
        print(f"error: {e}", file=sys.stderr)
        return 1

    logger.info("Finished load job cache utility")
    return 0


__all__ = [
    'LoadJobCacheLauncher',
    'build_parser',
    'config_from_args',
    'mode_options_from_args',
    'main',
]
