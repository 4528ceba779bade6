# ============================================================================
# JOB CACHE EXCEPTIONS
# ============================================================================
# STATUS: Shared - raised by modes, filesystem paths, orchestrator, launcher
# PURPOSE: Exception hierarchy separating fatal configuration problems from
#          per-unit transfer/promotion failures collected across a batch
# EXPORTS: JobCacheError, ConfigurationError, ResolutionError, TransferError,
#          PromotionError, CompositeLoadError
# DEPENDENCIES: None (standard library only)
# ============================================================================

"""
Custom Exception Hierarchy

Distinguishes between:
1. Fatal errors (bad configuration, unresolvable files) raised before any
   copy starts
2. Per-unit failures (one file to one cluster, one promotion) that are
   collected across the whole batch and surfaced together

Callers normally only need to catch JobCacheError, or CompositeLoadError when
they want to inspect which targets failed.
"""

from typing import List, Optional, Sequence, Union


class JobCacheError(Exception):
    """
    Base class for all job cache loading failures.
    """
    pass


class ConfigurationError(JobCacheError):
    """
    Missing or invalid configuration.

    Fatal, and always raised before any file is written.

    Examples:
        - Classpath mode selected without a classpath
        - Unknown load mode name
        - Hadoop configuration directory does not exist
        - No cluster configuration matches an output path
    """
    pass


class ResolutionError(JobCacheError):
    """
    A load mode could not enumerate the files to load.

    Examples:
        - Permission denied while listing a classpath directory
        - Two resolved files share a base name
    """
    pass


class TransferError(JobCacheError):
    """
    One local file could not be copied to one target.

    Collected by the orchestrator; sibling copies keep running.
    """

    def __init__(self, target: str, local_file: str, dest_file: Optional[str] = None,
                 reason: Optional[str] = None):
        self.target = target
        self.local_file = local_file
        self.dest_file = dest_file
        self.reason = reason
        message = f"Failed to copy {local_file} to {target}"
        if dest_file:
            message += f" ({dest_file})"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class PromotionError(JobCacheError):
    """
    A staged cache could not be renamed into its final location.

    Examples:
        - Target filesystem has no atomic rename (object stores)
        - Rename crosses devices (EXDEV)
        - Staging directory is missing
    """

    def __init__(self, target: str, staging_path: str, final_path: str,
                 reason: Optional[str] = None):
        self.target = target
        self.staging_path = staging_path
        self.final_path = final_path
        self.reason = reason
        message = f"Failed to promote {staging_path} to {final_path} on {target}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class CompositeLoadError(JobCacheError):
    """
    Every transfer and promotion failure from one load batch.

    Attributes:
        failures: TransferError and PromotionError instances, in the order
                  they were collected
        result: Partial LoadResult (what did succeed), if available
    """

    def __init__(self, failures: Sequence[Union[TransferError, PromotionError]], result=None):
        self.failures: List[Union[TransferError, PromotionError]] = list(failures)
        self.result = result
        lines = [f"{len(self.failures)} failure(s) while loading job cache:"]
        lines.extend(f"  - {failure}" for failure in self.failures)
        super().__init__("\n".join(lines))

    @property
    def transfer_failures(self) -> List[TransferError]:
        return [f for f in self.failures if isinstance(f, TransferError)]

    @property
    def promotion_failures(self) -> List[PromotionError]:
        return [f for f in self.failures if isinstance(f, PromotionError)]

    @property
    def failed_pairs(self) -> List[tuple]:
        """(target, local_file) for every failed copy."""
        return [(f.target, f.local_file) for f in self.transfer_failures]


__all__ = [
    'JobCacheError',
    'ConfigurationError',
    'ResolutionError',
    'TransferError',
    'PromotionError',
    'CompositeLoadError',
]
