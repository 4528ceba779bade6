"""
Core Package - Job cache load orchestration.

Exports:
    load: Copy files to every target and optionally promote
    LoadJobCache: Orchestrator for one validated request
    CacheLoadRequest, LoadResult: Request/result models
"""

from .models import CacheLoadRequest, LoadResult
from .load_job_cache import LoadJobCache, load

__all__ = [
    'CacheLoadRequest',
    'LoadResult',
    'LoadJobCache',
    'load',
]
