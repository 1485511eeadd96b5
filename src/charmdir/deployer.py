"""Staging and deployment of charms into a unit's charm directory.

Directory layout managed under the deployer path:
    <path>/
    ├── current -> update-XXXX   # Symlink to the latest staged charm
    ├── update-XXXX/             # Staged charm repositories
    └── install-XXXX/            # Fresh installs before they move into place

Staged charms share history: each new stage is cloned from the previous
one, so upgrading a deployed directory is a three-way merge that keeps
local changes made by hooks.
"""
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Optional

from .charm import Bundle, CharmURL
from .config import GitDirSettings
from .gitdir import GitDir, GitDirError, GitError, PullResult, read_charm_url, write_charm_url
from .utils.audit_log import ChangeTracker
from .utils.logging_config import timed_section

logger = logging.getLogger(__name__)

UPDATE_PREFIX = "update-"
INSTALL_PREFIX = "install-"


class DeployError(Exception):
    """Raised when a charm cannot be staged or deployed."""
    pass


class Deployer:
    """Stages charm bundles and deploys them into target GitDirs."""

    def __init__(self, path: Path, settings: Optional[GitDirSettings] = None):
        """
        Args:
            path: Directory holding staged charms (created if needed)
            settings: Git invocation settings shared by all staged dirs
        """
        self.path = Path(path).absolute()
        self.settings = settings or GitDirSettings()
        self.path.mkdir(parents=True, exist_ok=True)
        self.current = GitDir(self.path / "current", self.settings)
        self._tracker = ChangeTracker(self.path)

    def current_url(self) -> Optional[CharmURL]:
        """URL of the staged charm, or None if nothing is staged."""
        if not self.current.exists():
            return None
        return read_charm_url(self.current)

    def stage(self, bundle: Bundle, url: CharmURL) -> None:
        """
        Make bundle, identified by url, the charm that deploy() installs.

        Staging the URL that is already current does nothing.
        """
        if self.current_url() == url:
            logger.debug(f"Charm {url} already staged")
            return

        update_path = Path(tempfile.mkdtemp(prefix=UPDATE_PREFIX, dir=self.path))
        try:
            with timed_section("stage", path=str(self.path), url=str(url)):
                if self.current.exists():
                    repo = self.current.clone(update_path)
                else:
                    repo = GitDir(update_path, self.settings)
                    repo.init()

                bundle.expand_to(repo.path)
                write_charm_url(repo, url)
                repo.snapshot('Imported charm "%s" from "%s".', url, bundle.path)

                # Swap the symlink in one rename
                tmplink = update_path / "tmplink"
                os.symlink(update_path, tmplink)
                os.replace(tmplink, self.current.path)
        except Exception as e:
            shutil.rmtree(update_path, ignore_errors=True)
            self._tracker.log_change("stage", False, charm_url=str(url), error=str(e))
            raise DeployError(f"cannot stage charm {url}: {e}") from e

        logger.info(f"Staged charm {url} at {update_path}")
        self._tracker.log_change(
            "stage", True, charm_url=str(url),
            parameters={"bundle": str(bundle.path), "staged": str(update_path)},
        )
        self._collect_orphans()

    def deploy(self, target: GitDir) -> PullResult:
        """
        Install the staged charm into target, or upgrade target to it.

        Returns:
            PullResult.CLEAN, or PullResult.CONFLICT when an upgrade left
            conflicts in target that must be resolved or reverted

        Raises:
            DeployError: If nothing is staged or the deployment failed
        """
        operation = "upgrade"
        url = None
        try:
            url = self.current_url()
            if url is None:
                raise DeployError(f"no charm staged in {self.path}")

            if not target.exists():
                operation = "install"
                self._install(target)
                result = PullResult.CLEAN
            else:
                result = self._upgrade(target, url)
        except (GitError, GitDirError, OSError, DeployError) as e:
            logger.error(f"Charm deployment failed: {e}")
            self._tracker.log_change(
                operation, False, charm_url=str(url) if url else None,
                parameters={"target": str(target.path)}, error=str(e),
            )
            if isinstance(e, DeployError):
                raise
            raise DeployError(f"charm deployment failed: {e}") from e

        if result is PullResult.CONFLICT:
            logger.warning("Charm deployment completed with conflicts")
        else:
            logger.info("Charm deployment succeeded")

        self._tracker.log_change(
            operation, True, charm_url=str(url), outcome=result.value,
            parameters={"target": str(target.path)},
        )
        return result

    def _install(self, target: GitDir) -> None:
        logger.info(f"Preparing new charm deployment in {target.path}")
        install_path = Path(tempfile.mkdtemp(prefix=INSTALL_PREFIX, dir=self.path))
        try:
            repo = GitDir(install_path, self.settings)
            repo.init()
            repo.pull(self.current)

            logger.info(f"Deploying charm to {target.path}")
            target.path.parent.mkdir(parents=True, exist_ok=True)
            os.rename(install_path, target.path)
        finally:
            if install_path.exists():
                shutil.rmtree(install_path, ignore_errors=True)

    def _upgrade(self, target: GitDir, url: CharmURL) -> PullResult:
        logger.info(f"Preparing charm upgrade of {target.path}")
        target.init()
        if target.conflicted():
            raise DeployError(
                f"cannot upgrade {target.path}: unresolved conflicts, revert first"
            )
        if target.dirty():
            target.snapshot("Pre-upgrade snapshot.")
            logger.info("Committed local changes to charm directory")

        logger.info(f"Deploying charm {url} to {target.path}")
        result = target.pull(self.current)
        if result is PullResult.CONFLICT:
            return result

        target.snapshot('Upgraded charm to "%s".', url)
        return result

    def _collect_orphans(self) -> None:
        """Remove staging directories that current no longer points at."""
        current = self.current.path.resolve() if self.current.path.is_symlink() else None

        for prefix in (UPDATE_PREFIX, INSTALL_PREFIX):
            for orphan in self.path.glob(f"{prefix}*"):
                if orphan.resolve() == current:
                    continue
                logger.debug(f"Removing orphaned staging directory {orphan}")
                shutil.rmtree(orphan, ignore_errors=True)
