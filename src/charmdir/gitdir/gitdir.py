"""Deployment-oriented operations on a versioned charm directory."""
import enum
import logging
from pathlib import Path
from typing import Optional

from ..utils.logging_config import timed
from .snapshot import ConflictedStateError, GitError, LocalChangesError, SnapshotStore

logger = logging.getLogger(__name__)

# Emitted by git when a merge would clobber uncommitted changes
OVERWRITE_REFUSAL = "would be overwritten by merge"


class PullResult(enum.Enum):
    """Outcome of GitDir.pull(). Generic failures raise GitError instead."""
    CLEAN = "clean"
    CONFLICT = "conflict"


# The conflict signal: compare with `is`, never by message text
ERR_CONFLICT = PullResult.CONFLICT


class GitDir(SnapshotStore):
    """
    A charm directory whose every change is committed to git.

    State machine:
        absent --init--> clean
        clean --(file mutation)--> dirty --snapshot--> clean
        clean/dirty --pull--> clean | conflicted
        any --revert--> clean

    While conflicted, only revert() is accepted.
    """

    def init(self) -> bool:
        """Create and initialize the directory. Idempotent."""
        return self.initialize()

    def add_all(self) -> None:
        self.stage_all()

    def dirty(self) -> bool:
        return self.is_dirty()

    def conflicted(self) -> bool:
        return self.is_conflicted()

    def _require_resolved(self, operation: str) -> None:
        if self.is_conflicted():
            raise ConflictedStateError(
                f"cannot {operation} {self.path}: unresolved conflicts, revert first"
            )

    def commit(self, message: str, *args: object) -> Optional[str]:
        self._require_resolved("commit")
        return super().commit(message, *args)

    def commitf(self, message: str, *args: object) -> Optional[str]:
        return self.commit(message, *args)

    @timed("snapshot")
    def snapshot(self, message: str, *args: object) -> Optional[str]:
        """
        Stage everything and commit it in one step.

        Returns:
            Short id of the new commit, or None if nothing changed
        """
        self._require_resolved("snapshot")
        self.stage_all()
        return super().commit(message, *args)

    @timed("clone")
    def clone(self, destination: Path) -> "GitDir":
        """
        Clone committed history into a new directory.

        The clone's working tree is left empty: it reports dirty until the
        caller lays down files and snapshots, or calls revert() to check
        out the last commit.

        Args:
            destination: Path for the new directory (created if needed)

        Returns:
            GitDir for the clone
        """
        self._require_initialized()
        target = GitDir(destination, self.settings)
        target.exists()
        target.path.mkdir(parents=True, exist_ok=True)

        self._run_git("clone", "--quiet", "--no-checkout", ".", str(target.path))
        target._configure_identity()

        logger.info(f"Cloned {self.path} to {target.path}")
        return target

    @timed("pull")
    def pull(self, source: "GitDir") -> PullResult:
        """
        Merge the committed history of source into this directory.

        Returns:
            PullResult.CLEAN on success, PullResult.CONFLICT if the merge
            stopped with unresolved paths (the tree keeps the markers)

        Uncommitted changes survive the pull when they do not touch
        incoming paths. When they do, git refuses before changing anything
        and LocalChangesError is raised; snapshot or revert first.

        Raises:
            LocalChangesError: If uncommitted changes overlap incoming ones
            GitError: If the pull failed for any other reason
        """
        self._require_initialized()
        self._require_resolved("pull")

        try:
            self._run_git(
                "pull", "--quiet", "--no-rebase", "--ff", "--no-edit",
                "--allow-unrelated-histories",
                str(source.path), "HEAD",
            )
        except GitError as e:
            if self.is_conflicted():
                logger.warning(f"Pull from {source.path} into {self.path} has conflicts")
                return PullResult.CONFLICT
            # Message text is stable: the locale is pinned for every invocation
            if OVERWRITE_REFUSAL in e.stderr:
                raise LocalChangesError(
                    f"cannot pull into {self.path}: uncommitted changes would be "
                    f"overwritten, snapshot or revert first"
                ) from e
            raise

        logger.info(f"Pulled {source.path} into {self.path}")
        return PullResult.CLEAN

    @timed("revert")
    def revert(self) -> None:
        """
        Discard uncommitted changes and any in-progress merge.

        Restores the working tree to the last commit; untracked files are
        removed, ignored ones included. History is never rewritten.
        """
        self._require_initialized()
        if self.has_commits():
            self._run_git("reset", "--quiet", "--hard", "HEAD")
        self._run_git("clean", "--quiet", "--force", "-d", "-x")
        logger.info(f"Reverted {self.path} to last commit")
