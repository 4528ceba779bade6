# ============================================================================
# FILESYSTEM PATH
# ============================================================================
# STATUS: Infrastructure - one connection to one Hadoop-compatible filesystem
# PURPOSE: Upload files into a staging directory and promote it atomically
# EXPORTS: FileSystemPath
# DEPENDENCIES: fsspec (pyarrow for hdfs, adlfs for abfs), config, exceptions
# PATTERNS: Scoped resource (context manager), connection per target
# ENTRY_POINTS: with FileSystemPath(url, clusters) as target: ...
# ============================================================================

"""
FileSystemPath - Scoped connection to one target cluster.

Owns a private fsspec filesystem for one destination URL plus the destination
root on that filesystem. The launcher creates one per output path and closes
each exactly once; the orchestrator only borrows them.

Key Features:
- Picks the cluster configuration whose fs.defaultFS matches the destination
- Uploads through a `._COPYING_` temporary name, so readers never see a
  partially written file under its final name
- Applies the replication factor per file where the filesystem supports it
- Promotes a staging directory by directory rename, keeping the previous
  cache as `<final>.previous`
- close() is idempotent and never raises

Thread safety:
    One FileSystemPath is shared by every worker copying to that target.
    fsspec filesystems are safe for concurrent independent operations; the
    only shared state here (created directories, closed flag) is guarded by
    locks.

Usage:
    with FileSystemPath("hdfs://namenode:8020/data/cache", clusters) as target:
        staging = target.staging_root("jobCache_20260118093015")
        target.copy_into("/opt/app/lib/app.jar", f"{staging}/app.jar", replication=3)
        target.promote(staging, target.cache_root("jobCache"))
"""

import errno
import os
import posixpath
import threading
from typing import Any, Dict, Optional, Sequence
from urllib.parse import urlsplit

import fsspec

from ..config.cluster_config import ClusterConfiguration
from ..config.defaults import FileSystemDefaults
from ..exceptions import ConfigurationError, PromotionError, TransferError
from ..util_logger import LoggerFactory, ComponentType

logger = LoggerFactory.create_logger(ComponentType.FILESYSTEM, __name__)


class FileSystemPath:
    """
    One destination root on one remote filesystem.

    Attributes:
        url: Destination URL as given (hdfs://nn:8020/data/cache)
        protocol: URL scheme ("file" for plain paths)
        authority: URL authority (host:port, container@account)
        clusters: Cluster configurations this path was built from
        cluster: The configuration selected for this destination, if any
        fs: Live fsspec filesystem (private to this instance; None once closed)
    """

    def __init__(self, url: str, clusters: Sequence[ClusterConfiguration] = (),
                 replication: Optional[int] = None):
        """
        Open the connection for a destination.

        Args:
            url: Destination root URL
            clusters: Candidate cluster configurations
            replication: Replication factor for protocols that fix it when
                         the client is created (hdfs, viewfs)

        Raises:
            ConfigurationError: No configuration matches, or the filesystem
                                cannot be opened
        """
        if not url or not url.strip():
            raise ConfigurationError("Output path must not be empty")

        self.url = url.strip()
        parts = urlsplit(self.url)
        self.protocol = parts.scheme or "file"
        self.authority = parts.netloc
        self.clusters = list(clusters)
        self.cluster = self._select_cluster()
        self.replication = replication

        self._closed = False
        self._close_lock = threading.Lock()
        self._created_dirs = set()
        self._dirs_lock = threading.Lock()

        implementation = FileSystemDefaults.FSSPEC_IMPLEMENTATIONS.get(self.protocol, self.protocol)
        options = self._storage_options()
        try:
            # Private instance: closing it must not affect other targets
            self.fs = fsspec.filesystem(implementation, skip_instance_cache=True, **options)
        except (ImportError, ValueError, OSError) as e:
            raise ConfigurationError(f"Cannot open '{self.protocol}' filesystem for {self.url}: {e}") from e

        fs_url = self.url
        if implementation != self.protocol:
            fs_url = implementation + self.url[len(self.protocol):]
        self._root = self._normalize(self.fs._strip_protocol(fs_url))
        logger.info(
            f"Opened {self.protocol} filesystem for {self.url} "
            f"(cluster={self.cluster.name if self.cluster else None}, root={self._root})"
        )

    # ========================================================================
    # CONNECTION SETUP
    # ========================================================================

    def _select_cluster(self) -> Optional[ClusterConfiguration]:
        for cluster in self.clusters:
            if cluster.matches(self.protocol, self.authority):
                return cluster

        if self.protocol in FileSystemDefaults.UNCONFIGURED_PROTOCOLS:
            return None

        raise ConfigurationError(
            f"No cluster configuration matches {self.url}. "
            f"Configured filesystems: {[c.default_fs for c in self.clusters]}"
        )

    def _storage_options(self) -> Dict[str, Any]:
        if self.cluster is None:
            return {}
        return self.cluster.storage_options(self.protocol, self.authority, replication=self.replication)

    @staticmethod
    def _normalize(path: str) -> str:
        path = path.rstrip("/")
        return path or "/"

    # ========================================================================
    # PATHS
    # ========================================================================

    @property
    def root(self) -> str:
        """Destination root on this filesystem (protocol stripped)."""
        return self._root

    @property
    def supports_atomic_rename(self) -> bool:
        if self.cluster is not None and self.cluster.atomic_rename is not None:
            return self.cluster.atomic_rename
        return self.protocol in FileSystemDefaults.ATOMIC_RENAME_PROTOCOLS

    def staging_root(self, staging_dir_name: str, sub_dir: Optional[str] = None) -> str:
        """
        Staging directory for a run: root/staging_dir_name[/sub_dir].
        """
        parts = [self._root, staging_dir_name]
        if sub_dir:
            parts.append(sub_dir)
        return posixpath.join(*parts)

    def cache_root(self, cache_alias: str, sub_dir: Optional[str] = None) -> str:
        """
        Final cache location: root/sub_dir, or root/cache_alias without one.
        """
        return posixpath.join(self._root, sub_dir or cache_alias)

    # ========================================================================
    # OPERATIONS
    # ========================================================================

    def copy_into(self, local_file: str, dest_file: str, replication: int) -> str:
        """
        Upload one local file.

        Writes to `dest_file._COPYING_`, sets replication, then renames into
        place. On failure the temporary file is removed.

        Args:
            local_file: Absolute local path
            dest_file: Destination path on this filesystem
            replication: Replication factor for the file

        Returns:
            dest_file

        Raises:
            TransferError: Any failure while uploading or renaming
        """
        self._check_open()
        tmp_file = dest_file + FileSystemDefaults.COPYING_SUFFIX
        open_kwargs = {}
        if self.protocol in FileSystemDefaults.PER_FILE_REPLICATION_PROTOCOLS:
            open_kwargs["replication"] = replication

        try:
            self._ensure_dir(posixpath.dirname(dest_file))
            logger.debug(f"Uploading {local_file} -> {tmp_file}")
            self.fs.put_file(local_file, tmp_file, **open_kwargs)
            self._set_replication(tmp_file, replication)
            self.fs.mv(tmp_file, dest_file)
        except Exception as e:
            self._discard(tmp_file)
            raise TransferError(self.url, local_file, dest_file, reason=str(e) or type(e).__name__) from e

        logger.debug(f"Copied {local_file} -> {dest_file} (replication={replication})")
        return dest_file

    def promote(self, staging_path: str, final_path: str) -> str:
        """
        Make the staged cache the active one with a directory rename.

        An existing final directory is first moved to `final_path.previous`
        (replacing any older one). Each rename is atomic, but the pair is
        not: between retiring the old cache and renaming the staging
        directory, final_path briefly does not exist.

        A staging parent left empty by the rename (root/jobCache_<ts> when
        a sub-directory was staged) is removed afterwards.

        Args:
            staging_path: Fully uploaded staging directory
            final_path: Active cache location

        Returns:
            final_path

        Raises:
            PromotionError: No atomic rename on this filesystem, staging
                            directory missing, or the rename failed
        """
        self._check_open()
        if not self.supports_atomic_rename:
            raise PromotionError(
                self.url, staging_path, final_path,
                reason=f"'{self.protocol}' filesystem cannot rename directories atomically"
            )

        try:
            self._rename_into_place(staging_path, final_path)
        except PromotionError:
            raise
        except OSError as e:
            reason = "rename crosses devices" if e.errno == errno.EXDEV else (str(e) or type(e).__name__)
            raise PromotionError(self.url, staging_path, final_path, reason=reason) from e
        except Exception as e:
            raise PromotionError(self.url, staging_path, final_path, reason=str(e) or type(e).__name__) from e

        logger.info(f"✅ Promoted {staging_path} -> {final_path} on {self.url}")
        self._remove_empty_parent(staging_path, final_path)
        return final_path

    def _rename_into_place(self, staging_path: str, final_path: str) -> None:
        if not self.fs.exists(staging_path):
            raise PromotionError(self.url, staging_path, final_path, reason="staging directory does not exist")

        if self.fs.exists(final_path):
            retired = final_path + FileSystemDefaults.RETIRED_SUFFIX
            if self.fs.exists(retired):
                self.fs.rm(retired, recursive=True)
            self._rename(final_path, retired)
            logger.info(f"Retired previous cache {final_path} -> {retired}")

        self._ensure_dir(posixpath.dirname(final_path))
        self._rename(staging_path, final_path)

    def _rename(self, source: str, dest: str) -> None:
        if self.protocol in FileSystemDefaults.LOCAL_PROTOCOLS:
            os.rename(source, dest)
        else:
            self.fs.mv(source, dest, recursive=True)

    def _remove_empty_parent(self, staging_path: str, final_path: str) -> None:
        parent = posixpath.dirname(staging_path)
        if parent in (self._root, posixpath.dirname(final_path)) or not parent.startswith(self._root):
            return
        try:
            if self.fs.exists(parent) and not self.fs.ls(parent, detail=False):
                self.fs.rmdir(parent)
                logger.debug(f"Removed empty staging directory {parent}")
        except Exception as e:
            logger.warning(f"Could not remove empty staging directory {parent}: {e}")
        with self._dirs_lock:
            self._created_dirs.discard(parent)

    def close(self) -> None:
        """
        Release the connection. Safe to call more than once; never raises.

        Closes the filesystem's HTTP session (webhdfs) and its own close()
        where it has one, then drops the reference so the client can be
        collected.
        """
        with self._close_lock:
            if self._closed:
                return
            self._closed = True
            fs, self.fs = self.fs, None

        try:
            session = getattr(fs, "session", None)
            if session is not None and callable(getattr(session, "close", None)):
                session.close()
            closer = getattr(fs, "close", None)
            if callable(closer):
                closer()
            logger.debug(f"Closed filesystem for {self.url}")
        except Exception as e:
            logger.warning(f"Error while closing filesystem for {self.url}: {e}")

    @property
    def closed(self) -> bool:
        return self._closed

    # ========================================================================
    # HELPERS
    # ========================================================================

    def _check_open(self) -> None:
        if self._closed:
            raise ValueError(f"FileSystemPath for {self.url} is closed")

    def _ensure_dir(self, path: str) -> None:
        if not path:
            return
        with self._dirs_lock:
            if path in self._created_dirs:
                return
        self.fs.makedirs(path, exist_ok=True)
        with self._dirs_lock:
            self._created_dirs.add(path)

    def _set_replication(self, path: str, replication: int) -> None:
        setrep = getattr(self.fs, "setrep", None)
        if callable(setrep):
            setrep(path, replication)
        elif self.protocol in FileSystemDefaults.CLIENT_REPLICATION_PROTOCOLS:
            if replication != self.replication:
                logger.warning(
                    f"{self.url} was opened with replication={self.replication}; "
                    f"{path} is written with that, not {replication}"
                )
        elif self.protocol not in FileSystemDefaults.PER_FILE_REPLICATION_PROTOCOLS:
            logger.debug(f"{self.protocol} filesystem manages replication itself; ignoring {replication}")

    def _discard(self, tmp_file: str) -> None:
        try:
            if self.fs.exists(tmp_file):
                self.fs.rm(tmp_file)
        except Exception as cleanup_error:
            logger.warning(f"Could not remove partial upload {tmp_file}: {cleanup_error}")

    def __enter__(self) -> "FileSystemPath":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"FileSystemPath({self.url!r}, {state})"


__all__ = ['FileSystemPath']
