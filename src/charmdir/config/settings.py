"""Settings loading from YAML with environment overrides.

Example ``charmdir.yaml``:

```yaml
gitdir:
  git_binary: /usr/bin/git
  author_name: juju
  author_email: juju@localhost
  locale: C
  timeout: 30
```

Environment Variables:
    CHARMDIR_GIT: git executable
    CHARMDIR_AUTHOR_NAME / CHARMDIR_AUTHOR_EMAIL: commit identity
    CHARMDIR_LOCALE: locale pinned for every git invocation
    CHARMDIR_GIT_TIMEOUT: seconds before a git command is killed
"""
import logging
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Optional

import yaml

logger = logging.getLogger(__name__)

ENV_OVERRIDES = {
    "CHARMDIR_GIT": "git_binary",
    "CHARMDIR_AUTHOR_NAME": "author_name",
    "CHARMDIR_AUTHOR_EMAIL": "author_email",
    "CHARMDIR_LOCALE": "locale",
    "CHARMDIR_GIT_TIMEOUT": "timeout",
}


class SettingsError(Exception):
    """Raised when settings cannot be loaded or are invalid."""
    pass


@dataclass(frozen=True)
class GitDirSettings:
    """How git is invoked for a charm directory."""
    git_binary: str = "git"
    author_name: str = "juju"
    author_email: str = "juju@localhost"
    locale: str = "C"
    timeout: Optional[float] = None

    def git_env(self) -> dict[str, str]:
        """Environment for a git child process: pinned identity and locale."""
        env = {
            k: v for k, v in os.environ.items()
            if k not in ("GIT_DIR", "GIT_WORK_TREE", "GIT_INDEX_FILE")
        }
        env.update({
            "GIT_AUTHOR_NAME": self.author_name,
            "GIT_AUTHOR_EMAIL": self.author_email,
            "GIT_COMMITTER_NAME": self.author_name,
            "GIT_COMMITTER_EMAIL": self.author_email,
            "LC_ALL": self.locale,
            "LANG": self.locale,
            "LANGUAGE": self.locale,
            "GIT_TERMINAL_PROMPT": "0",
        })
        return env


def _find_settings() -> Optional[Path]:
    """Find a charmdir.yaml in the usual places."""
    search_paths = [
        Path.cwd() / "charmdir.yaml",
        Path.home() / ".config" / "charmdir" / "charmdir.yaml",
        Path("/etc/charmdir/charmdir.yaml"),
    ]

    for path in search_paths:
        if path.exists():
            return path
    return None


def _coerce(key: str, value: Any) -> Any:
    if key == "timeout":
        if value is None or value == "":
            return None
        try:
            timeout = float(value)
        except (TypeError, ValueError):
            raise SettingsError(f"timeout must be a number, got {value!r}")
        if timeout <= 0:
            raise SettingsError(f"timeout must be positive, got {timeout}")
        return timeout

    if not isinstance(value, str) or not value:
        raise SettingsError(f"{key} must be a non-empty string, got {value!r}")
    return value


def settings_from_dict(data: dict[str, Any]) -> GitDirSettings:
    """Build settings from a mapping, rejecting unknown keys."""
    known = {f.name for f in fields(GitDirSettings)}
    unknown = set(data) - known
    if unknown:
        raise SettingsError(f"Unknown settings: {', '.join(sorted(unknown))}")

    return GitDirSettings(**{k: _coerce(k, v) for k, v in data.items()})


def load_settings(path: Optional[Path] = None) -> GitDirSettings:
    """
    Load settings from YAML, then apply environment overrides.

    Args:
        path: Settings file. When omitted the default locations are
            searched and missing files mean defaults.

    Returns:
        GitDirSettings
    """
    if path is not None:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Settings file not found: {path}")
    else:
        path = _find_settings()

    data: dict[str, Any] = {}
    if path is not None:
        try:
            loaded = yaml.safe_load(path.read_text()) or {}
        except yaml.YAMLError as e:
            raise SettingsError(f"Invalid YAML in {path}: {e}") from e
        if not isinstance(loaded, dict):
            raise SettingsError(f"{path} must contain a mapping")
        data = loaded.get("gitdir", loaded)
        if not isinstance(data, dict):
            raise SettingsError(f"'gitdir' section in {path} must be a mapping")
        logger.debug(f"Loaded settings from {path}")

    settings = settings_from_dict(data)

    overrides = {}
    for env_var, key in ENV_OVERRIDES.items():
        value = os.environ.get(env_var)
        if value is not None:
            overrides[key] = _coerce(key, value)

    if overrides:
        settings = replace(settings, **overrides)

    return settings
