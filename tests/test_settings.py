"""Tests for settings loading."""
import pytest

from charmdir import GitDirSettings, load_settings
from charmdir.config import SettingsError


@pytest.fixture
def no_default_files(tmp_path, monkeypatch):
    """Run with a cwd and home that hold no charmdir.yaml."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    for var in ("CHARMDIR_GIT", "CHARMDIR_AUTHOR_NAME", "CHARMDIR_AUTHOR_EMAIL",
                "CHARMDIR_LOCALE", "CHARMDIR_GIT_TIMEOUT"):
        monkeypatch.delenv(var, raising=False)


class TestLoadSettings:
    """Tests for load_settings()."""

    def test_defaults(self, no_default_files):
        settings = load_settings()

        assert settings == GitDirSettings()
        assert settings.author_name == "juju"
        assert settings.author_email == "juju@localhost"
        assert settings.locale == "C"
        assert settings.timeout is None

    def test_load_gitdir_section(self, no_default_files, tmp_path):
        path = tmp_path / "custom.yaml"
        path.write_text("""
gitdir:
  author_name: unit-agent
  author_email: agent@example.com
  timeout: 30
""")

        settings = load_settings(path)

        assert settings.author_name == "unit-agent"
        assert settings.author_email == "agent@example.com"
        assert settings.timeout == 30.0
        assert settings.git_binary == "git"

    def test_load_top_level(self, no_default_files, tmp_path):
        (tmp_path / "charmdir.yaml").write_text("git_binary: /usr/local/bin/git\n")

        assert load_settings().git_binary == "/usr/local/bin/git"

    def test_env_overrides(self, no_default_files, tmp_path, monkeypatch):
        path = tmp_path / "custom.yaml"
        path.write_text("locale: C\n")
        monkeypatch.setenv("CHARMDIR_LOCALE", "C.UTF-8")
        monkeypatch.setenv("CHARMDIR_GIT_TIMEOUT", "2.5")

        settings = load_settings(path)

        assert settings.locale == "C.UTF-8"
        assert settings.timeout == 2.5

    def test_unknown_key(self, no_default_files, tmp_path):
        path = tmp_path / "custom.yaml"
        path.write_text("author: someone\n")

        with pytest.raises(SettingsError, match="Unknown settings: author"):
            load_settings(path)

    @pytest.mark.parametrize("content", [
        "timeout: soon\n",
        "timeout: -1\n",
        "author_name: ''\n",
        "- just\n- a list\n",
        "key: [unclosed\n",
    ])
    def test_invalid(self, no_default_files, tmp_path, content):
        path = tmp_path / "custom.yaml"
        path.write_text(content)

        with pytest.raises(SettingsError):
            load_settings(path)

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_settings(tmp_path / "missing.yaml")

    def test_empty_file(self, no_default_files, tmp_path):
        path = tmp_path / "custom.yaml"
        path.write_text("")

        assert load_settings(path) == GitDirSettings()


class TestGitEnv:
    """Tests for GitDirSettings.git_env()."""

    def test_pins_identity_and_locale(self, monkeypatch):
        monkeypatch.setenv("LANG", "de_DE.UTF-8")
        monkeypatch.setenv("GIT_WORK_TREE", "/elsewhere")

        env = GitDirSettings(locale="C.UTF-8").git_env()

        assert env["LANG"] == "C.UTF-8"
        assert env["LC_ALL"] == "C.UTF-8"
        assert env["GIT_AUTHOR_NAME"] == env["GIT_COMMITTER_NAME"] == "juju"
        assert "GIT_WORK_TREE" not in env
