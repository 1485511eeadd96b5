"""Tests for local charm bundles."""
import os
import stat
import zipfile

import pytest

from charmdir import CharmArchive, CharmDir
from charmdir.charm import BundleError


class TestCharmDir:
    """Tests for CharmDir."""

    def test_expand_to(self, tmp_path, make_charm):
        src = make_charm(tmp_path / "src")
        (src / ".git").mkdir()
        dest = tmp_path / "dest"
        dest.mkdir()
        (dest / "existing").write_text("kept")

        CharmDir(src).expand_to(dest)

        assert (dest / "metadata.yaml").read_text() == "name: dummy\n"
        assert os.access(dest / "hooks" / "install", os.X_OK)
        assert not (dest / ".git").exists()
        assert (dest / "existing").read_text() == "kept"

    def test_missing_dir(self, tmp_path):
        with pytest.raises(BundleError):
            CharmDir(tmp_path / "missing").expand_to(tmp_path / "dest")


class TestCharmArchive:
    """Tests for CharmArchive."""

    def test_expand_to(self, tmp_path):
        archive_path = tmp_path / "charm.zip"
        with zipfile.ZipFile(archive_path, "w") as archive:
            archive.writestr("metadata.yaml", "name: dummy\n")
            info = zipfile.ZipInfo("hooks/install")
            info.external_attr = (stat.S_IFREG | 0o755) << 16
            archive.writestr(info, "#!/bin/sh\n")
        dest = tmp_path / "dest"
        dest.mkdir()

        CharmArchive(archive_path).expand_to(dest)

        assert (dest / "metadata.yaml").read_text() == "name: dummy\n"
        assert os.access(dest / "hooks" / "install", os.X_OK)

    def test_rejects_escaping_members(self, tmp_path):
        archive_path = tmp_path / "evil.zip"
        with zipfile.ZipFile(archive_path, "w") as archive:
            archive.writestr("../escaped", "gotcha")
        dest = tmp_path / "dest"
        dest.mkdir()

        with pytest.raises(BundleError, match="escapes"):
            CharmArchive(archive_path).expand_to(dest)
        assert not (tmp_path / "escaped").exists()

    def test_bad_archive(self, tmp_path):
        archive_path = tmp_path / "broken.zip"
        archive_path.write_text("not a zip")

        with pytest.raises(BundleError):
            CharmArchive(archive_path).expand_to(tmp_path)
