"""The charm marker: which charm is deployed in a directory.

The marker is a plain file holding one charm URL and a trailing newline.
Writing it does not commit; callers snapshot it together with the charm
files it describes.
"""
import logging
import os
import tempfile

from ..charm.url import CharmURL
from .snapshot import SnapshotStore

logger = logging.getLogger(__name__)

CHARM_URL_FILE = ".juju-charm"


def read_charm_url(gitdir: SnapshotStore) -> CharmURL:
    """
    Read the charm URL recorded in gitdir.

    Raises:
        FileNotFoundError: If no marker has been written yet
        CharmURLError: If the marker does not hold a valid charm URL
    """
    marker = gitdir.path / CHARM_URL_FILE
    content = marker.read_text(encoding="utf-8")
    return CharmURL.parse(content.strip())


def write_charm_url(gitdir: SnapshotStore, url: CharmURL) -> None:
    """Record url in gitdir, replacing any previous marker atomically."""
    marker = gitdir.path / CHARM_URL_FILE
    fd, tmp_path = tempfile.mkstemp(prefix=f"{CHARM_URL_FILE}.", dir=gitdir.path)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(f"{url}\n")
        os.chmod(tmp_path, 0o644)
        os.replace(tmp_path, marker)
    except BaseException:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise

    logger.debug(f"Wrote charm URL {url} to {marker}")
