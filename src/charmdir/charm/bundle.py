"""Local charm sources that can be expanded into a staging directory."""
import logging
import shutil
import stat
import zipfile
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


class BundleError(Exception):
    """Raised when charm content cannot be expanded."""
    pass


class Bundle(Protocol):
    """Anything that can lay charm files down in a directory."""

    path: Path

    def expand_to(self, dest: Path) -> None:
        """Write the charm's files into dest, overwriting what is there."""


class CharmDir:
    """An unpacked charm directory on local disk."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def expand_to(self, dest: Path) -> None:
        if not self.path.is_dir():
            raise BundleError(f"Charm directory not found: {self.path}")

        shutil.copytree(
            self.path,
            dest,
            symlinks=True,
            ignore=shutil.ignore_patterns(".git"),
            dirs_exist_ok=True,
        )
        logger.debug(f"Copied charm {self.path} to {dest}")


class CharmArchive:
    """A zipped charm archive already present on local disk."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def expand_to(self, dest: Path) -> None:
        dest = Path(dest).resolve()
        try:
            with zipfile.ZipFile(self.path) as archive:
                for member in archive.infolist():
                    target = (dest / member.filename).resolve()
                    if target != dest and dest not in target.parents:
                        raise BundleError(
                            f"Archive member escapes target directory: {member.filename}"
                        )
                    archive.extract(member, dest)

                    # zipfile drops unix permissions; hooks must stay executable
                    mode = (member.external_attr >> 16) & 0o777
                    if mode and not member.is_dir():
                        target.chmod(mode | stat.S_IRUSR)
        except (zipfile.BadZipFile, OSError) as e:
            raise BundleError(f"Cannot expand charm archive {self.path}: {e}") from e

        logger.debug(f"Extracted charm archive {self.path} to {dest}")
