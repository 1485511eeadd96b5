"""Shared fixtures for charmdir tests."""
import logging

import pytest

from charmdir import CharmURL, GitDir
from charmdir.utils.audit_log import audit_logger


CURL = CharmURL.parse("cs:series/blah-blah-123")


@pytest.fixture
def curl():
    return CURL


@pytest.fixture
def new_repo(tmp_path):
    """Factory for a GitDir holding 'some-dir' and 'some-file' in one commit."""
    counter = iter(range(1000))

    def make() -> GitDir:
        repo = GitDir(tmp_path / f"repo-{next(counter)}")
        repo.init()
        (repo.path / "some-dir").mkdir()
        (repo.path / "some-file").write_text("hello")
        repo.add_all()
        repo.commitf("im in ur repo committin ur %s", "files")
        return repo

    return make


@pytest.fixture(autouse=True)
def reset_audit_handlers():
    """Keep audit handlers from leaking between tests."""
    yield
    for handler in list(audit_logger.handlers):
        audit_logger.removeHandler(handler)
        handler.close()
    audit_logger.setLevel(logging.NOTSET)


@pytest.fixture
def make_charm():
    """Factory writing a minimal charm directory at a path."""

    def make(path, revision=1):
        path.mkdir(parents=True)
        (path / "metadata.yaml").write_text("name: dummy\n")
        (path / "revision").write_text(f"{revision}\n")
        hooks = path / "hooks"
        hooks.mkdir()
        install = hooks / "install"
        install.write_text("#!/bin/sh\necho installed\n")
        install.chmod(0o755)
        return path

    return make
