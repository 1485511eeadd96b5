"""Versioned charm directories backed by git.

This package provides:
- SnapshotStore: init/stage/commit/status/log primitives over one directory
- GitDir: clone, pull with conflict detection, revert and snapshot
- PullResult/ERR_CONFLICT: the outcome of a pull
- read_charm_url/write_charm_url: the deployed charm marker
"""
from .gitdir import ERR_CONFLICT, GitDir, PullResult
from .marker import CHARM_URL_FILE, read_charm_url, write_charm_url
from .snapshot import (
    CommitInfo,
    ConflictedStateError,
    GitDirError,
    GitError,
    GitTimeoutError,
    LocalChangesError,
    NotInitializedError,
    SnapshotStore,
)

__all__ = [
    "CHARM_URL_FILE",
    "CommitInfo",
    "ConflictedStateError",
    "ERR_CONFLICT",
    "GitDir",
    "GitDirError",
    "GitError",
    "GitTimeoutError",
    "LocalChangesError",
    "NotInitializedError",
    "PullResult",
    "SnapshotStore",
    "read_charm_url",
    "write_charm_url",
]
