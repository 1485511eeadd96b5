"""Settings for git-backed charm directories."""
from .settings import GitDirSettings, SettingsError, load_settings

__all__ = ["GitDirSettings", "SettingsError", "load_settings"]
