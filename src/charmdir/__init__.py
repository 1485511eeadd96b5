"""charmdir: git-backed deployment state for a unit's charm directory."""
from .charm import CharmArchive, CharmDir, CharmURL, CharmURLError
from .config import GitDirSettings, load_settings
from .deployer import Deployer, DeployError
from .gitdir import (
    CHARM_URL_FILE,
    ERR_CONFLICT,
    ConflictedStateError,
    GitDir,
    GitDirError,
    GitError,
    GitTimeoutError,
    LocalChangesError,
    NotInitializedError,
    PullResult,
    SnapshotStore,
    read_charm_url,
    write_charm_url,
)

__version__ = "0.1.0"

__all__ = [
    "CHARM_URL_FILE",
    "CharmArchive",
    "CharmDir",
    "CharmURL",
    "CharmURLError",
    "ConflictedStateError",
    "Deployer",
    "DeployError",
    "ERR_CONFLICT",
    "GitDir",
    "GitDirError",
    "GitDirSettings",
    "GitError",
    "GitTimeoutError",
    "LocalChangesError",
    "NotInitializedError",
    "PullResult",
    "SnapshotStore",
    "load_settings",
    "read_charm_url",
    "write_charm_url",
]
