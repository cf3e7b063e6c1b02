"""Working copy synchronisation against upstream git repositories."""

from __future__ import annotations

from .engine import (
    RepoSyncEngine,
    SyncResult,
    SyncStatus,
    WorkingCopy,
    WorkingCopyState,
)
from .git import GitClient

__all__ = [
    "GitClient",
    "RepoSyncEngine",
    "SyncResult",
    "SyncStatus",
    "WorkingCopy",
    "WorkingCopyState",
]
