# ============================================================================
# JOB CACHE LOAD MODELS
# ============================================================================
# STATUS: Model - Pydantic request/result models for the load orchestrator
# PURPOSE: Validate a batch before any copy starts and report what it produced
# EXPORTS: CacheLoadRequest, LoadResult
# ============================================================================
"""
Job Cache Load Models.

CacheLoadRequest is checked before the worker pool starts, so a bad batch
(replication out of range, zero workers, relative file paths) fails before
anything is written to any cluster.

Usage:
    request = CacheLoadRequest(
        targets=[cluster_a, cluster_b],
        files={"/opt/app/lib/app.jar", "/opt/app/conf/config.xml"},
        replication=3,
        worker_count=4,
        staging_dir_name="jobCache_20260118093015",
    )
"""

import os
from typing import Dict, FrozenSet, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..config.defaults import LoadDefaults
from ..infrastructure.filesystem_path import FileSystemPath


# =============================================================================
# REQUEST MODEL
# =============================================================================

class CacheLoadRequest(BaseModel):
    """
    One batch: every file to every target.

    Attributes:
        targets: Open FileSystemPath per cluster (borrowed, never closed here)
        files: Absolute local file paths
        finalize: Promote each target after its copies succeed
        replication: Replication factor for every uploaded file
        worker_count: Size of the shared worker pool
        staging_dir_name: Staging directory name shared by all targets
        sub_dir: Optional sub-directory under the staging directory
        cache_alias: Final directory name when no sub_dir is given
        timeout: Optional bound in seconds on the whole copy phase
    """
    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    targets: List[FileSystemPath] = Field(
        default_factory=list,
        description="Destination filesystems"
    )
    files: FrozenSet[str] = Field(
        default_factory=frozenset,
        description="Absolute local paths of the files to load"
    )
    finalize: bool = Field(
        default=LoadDefaults.FINALIZE,
        description="Rename staging directories into place after loading"
    )
    replication: int = Field(
        default=LoadDefaults.REPLICATION,
        ge=1,
        le=LoadDefaults.MAX_REPLICATION,
        description="Replication factor"
    )
    worker_count: int = Field(
        default=LoadDefaults.EXECUTOR_THREADS,
        ge=1,
        description="Number of copy threads"
    )
    staging_dir_name: str = Field(
        ...,
        min_length=1,
        description="Staging directory name"
    )
    sub_dir: Optional[str] = Field(
        default=None,
        description="Optional sub-directory"
    )
    cache_alias: str = Field(
        default=LoadDefaults.CACHE_ALIAS,
        min_length=1,
        description="Final directory name when no sub_dir is given"
    )
    timeout: Optional[float] = Field(
        default=None,
        gt=0,
        description="Seconds to wait for the copy phase"
    )

    @field_validator('targets')
    @classmethod
    def validate_targets_distinct(cls, v: List[FileSystemPath]) -> List[FileSystemPath]:
        """Each output path may appear once."""
        urls = [target.url for target in v]
        duplicates = sorted({url for url in urls if urls.count(url) > 1})
        if duplicates:
            raise ValueError(f"output paths listed more than once: {duplicates}")
        return v

    @field_validator('files')
    @classmethod
    def validate_files(cls, v: FrozenSet[str]) -> FrozenSet[str]:
        """Files must be absolute and have distinct base names."""
        relative = sorted(path for path in v if not os.path.isabs(path))
        if relative:
            raise ValueError(f"files must be absolute paths, got: {relative}")

        names = [os.path.basename(path) for path in v]
        clashing = sorted({name for name in names if names.count(name) > 1})
        if clashing:
            raise ValueError(f"files share base names in the flat staging directory: {clashing}")
        return v

    @field_validator('sub_dir')
    @classmethod
    def normalize_sub_dir(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip().strip("/")
        return v or None

    @property
    def unit_count(self) -> int:
        """Number of (target, file) copies in the batch."""
        return len(self.targets) * len(self.files)


# =============================================================================
# RESULT MODEL
# =============================================================================

class LoadResult(BaseModel):
    """
    What a batch produced.

    Returned on success; attached to CompositeLoadError on partial failure.

    Attributes:
        staging_dir_name: Staging directory used on every target
        copied: (target URL, local file) for every completed copy
        promoted: Target URLs whose staging directory was promoted
        final_paths: Target URL -> final cache path, for promoted targets
    """

    staging_dir_name: str
    copied: List[Tuple[str, str]] = Field(default_factory=list)
    promoted: List[str] = Field(default_factory=list)
    final_paths: Dict[str, str] = Field(default_factory=dict)

    @property
    def copy_count(self) -> int:
        return len(self.copied)

    @property
    def promotion_count(self) -> int:
        return len(self.promoted)

    def files_for(self, target_url: str) -> List[str]:
        """Local files copied to one target, sorted."""
        return sorted(local_file for url, local_file in self.copied if url == target_url)


__all__ = ['CacheLoadRequest', 'LoadResult']
