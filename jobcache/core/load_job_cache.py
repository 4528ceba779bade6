# ============================================================================
# LOAD JOB CACHE ORCHESTRATOR
# ============================================================================
# STATUS: Core - fans copies out over a thread pool, then promotes
# PURPOSE: Copy every resolved file to every target's staging directory and
#          optionally promote each fully copied target
# EXPORTS: LoadJobCache, load
# DEPENDENCIES: concurrent.futures, pydantic (request validation)
# ============================================================================

"""
Load Job Cache - Batch orchestrator.

Flow:
    1. Validate the batch (CacheLoadRequest); empty file set -> empty result
    2. Submit one unit per (target, file) to a bounded ThreadPoolExecutor
    3. Wait for every unit (or the timeout); collect failures, never cancel
       siblings because one unit failed
    4. With finalize, promote each target whose copies all succeeded
    5. Raise CompositeLoadError naming every failure, carrying the partial
       LoadResult

Targets are borrowed: this module never closes a FileSystemPath.
"""

import concurrent.futures
import os
import posixpath
from typing import Dict, Iterable, List, Optional, Set, Tuple, Union

from pydantic import ValidationError

from ..config.defaults import LoadDefaults
from ..exceptions import (
    CompositeLoadError,
    ConfigurationError,
    PromotionError,
    TransferError,
)
from ..infrastructure.filesystem_path import FileSystemPath
from ..util_logger import LoggerFactory, ComponentType, LogContext
from .models import CacheLoadRequest, LoadResult

logger = LoggerFactory.create_logger(ComponentType.ORCHESTRATOR, __name__)

Failure = Union[TransferError, PromotionError]


class LoadJobCache:
    """
    Runs one validated CacheLoadRequest.

    Usage:
        result = LoadJobCache(request).execute()
    """

    def __init__(self, request: CacheLoadRequest):
        self.request = request
        self._context = LogContext(staging_dir=request.staging_dir_name)

    def execute(self) -> LoadResult:
        """
        Copy, then promote.

        Returns:
            LoadResult for a fully successful batch

        Raises:
            CompositeLoadError: One or more copies or promotions failed
        """
        request = self.request
        result = LoadResult(staging_dir_name=request.staging_dir_name)

        if not request.files:
            logger.info("No files to load; nothing copied", extra=self._dims())
            return result

        logger.info(
            f"Loading {len(request.files)} file(s) to {len(request.targets)} target(s) "
            f"with {request.worker_count} thread(s), replication={request.replication}",
            extra=self._dims(),
        )

        failures: List[Failure] = []
        failed_targets: Set[str] = set()

        for target, local_file, error in self._copy_all():
            if error is None:
                result.copied.append((target.url, local_file))
            else:
                failures.append(error)
                failed_targets.add(target.url)
                logger.error(f"❌ {error}", extra=self._dims(target))

        logger.info(
            f"Copy phase complete: {result.copy_count}/{request.unit_count} successful",
            extra=self._dims(),
        )

        if request.finalize:
            failures.extend(self._promote_all(result, failed_targets))
        else:
            logger.info(
                f"Finalize disabled; leaving {request.staging_dir_name} staged on every target",
                extra=self._dims(),
            )

        if failures:
            raise CompositeLoadError(failures, result=result)

        logger.info(
            f"✅ Job cache loaded: {result.copy_count} copies, {result.promotion_count} promotions",
            extra=self._dims(),
        )
        return result

    # ========================================================================
    # COPY PHASE
    # ========================================================================

    def _copy_all(self) -> Iterable[Tuple[FileSystemPath, str, Optional[TransferError]]]:
        """Yield (target, local_file, error-or-None) in submission order."""
        request = self.request
        units: Dict[concurrent.futures.Future, Tuple[FileSystemPath, str, str]] = {}
        pending = set()

        executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=request.worker_count,
            thread_name_prefix="jobcache-copy",
        )
        try:
            for target in request.targets:
                staging_path = target.staging_root(request.staging_dir_name, request.sub_dir)
                for local_file in sorted(request.files):
                    dest_file = posixpath.join(staging_path, os.path.basename(local_file))
                    future = executor.submit(target.copy_into, local_file, dest_file, request.replication)
                    units[future] = (target, local_file, dest_file)

            _done, pending = concurrent.futures.wait(units, timeout=request.timeout)
        finally:
            # Abandon whatever is still queued or running once the timeout hits
            executor.shutdown(wait=not pending, cancel_futures=bool(pending))

        if pending:
            logger.warning(
                f"Timed out after {request.timeout}s with {len(pending)} copy(ies) unfinished",
                extra=self._dims(),
            )

        results = []
        for future, (target, local_file, dest_file) in units.items():
            if future in pending:
                future.cancel()
                error = TransferError(
                    target.url, local_file, dest_file,
                    reason=f"timed out after {request.timeout}s",
                )
                results.append((target, local_file, error))
                continue

            exc = future.exception()
            if exc is None:
                results.append((target, local_file, None))
            elif isinstance(exc, TransferError):
                results.append((target, local_file, exc))
            else:
                error = TransferError(target.url, local_file, dest_file, reason=str(exc) or type(exc).__name__)
                error.__cause__ = exc
                results.append((target, local_file, error))
        return results

    # ========================================================================
    # PROMOTION PHASE
    # ========================================================================

    def _promote_all(self, result: LoadResult, failed_targets: Set[str]) -> List[PromotionError]:
        request = self.request
        failures = []

        for target in request.targets:
            if target.url in failed_targets:
                logger.warning(
                    f"Not promoting {target.url}: copies failed, "
                    f"staging directory {request.staging_dir_name} left in place",
                    extra=self._dims(target),
                )
                continue

            staging_path = target.staging_root(request.staging_dir_name, request.sub_dir)
            final_path = target.cache_root(request.cache_alias, request.sub_dir)
            try:
                target.promote(staging_path, final_path)
            except PromotionError as e:
                logger.error(f"❌ {e}", extra=self._dims(target))
                failures.append(e)
                continue

            result.promoted.append(target.url)
            result.final_paths[target.url] = final_path

        return failures

    def _dims(self, target: Optional[FileSystemPath] = None) -> dict:
        dims = self._context.to_dict()
        if target is not None:
            dims['target'] = target.url
        return {'custom_dimensions': dims}


def load(targets: List[FileSystemPath],
         files: Iterable[str],
         finalize: bool,
         replication: int,
         worker_count: int,
         staging_dir_name: str,
         sub_dir: Optional[str] = None,
         cache_alias: str = LoadDefaults.CACHE_ALIAS,
         timeout: Optional[float] = None) -> LoadResult:
    """
    Load every file into every target's staging directory.

    Args:
        targets: Open filesystem paths (borrowed; never closed here)
        files: Absolute local paths
        finalize: Promote each fully copied target
        replication: Replication factor for every file
        worker_count: Thread pool size
        staging_dir_name: Staging directory shared by all targets
        sub_dir: Optional sub-directory under the staging directory
        cache_alias: Final directory name when no sub_dir is given
        timeout: Optional bound in seconds on the copy phase

    Returns:
        LoadResult

    Raises:
        ConfigurationError: Invalid request, before anything is copied
        CompositeLoadError: Some copies or promotions failed
    """
    try:
        request = CacheLoadRequest(
            targets=list(targets),
            files=frozenset(files),
            finalize=finalize,
            replication=replication,
            worker_count=worker_count,
            staging_dir_name=staging_dir_name,
            sub_dir=sub_dir,
            cache_alias=cache_alias,
            timeout=timeout,
        )
    except ValidationError as e:
        raise ConfigurationError(f"Invalid load request: {e}") from e

    return LoadJobCache(request).execute()


__all__ = ['LoadJobCache', 'load']
