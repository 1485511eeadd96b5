"""Charm identities and local charm content."""
from .bundle import Bundle, BundleError, CharmArchive, CharmDir
from .url import CharmURL, CharmURLError

__all__ = [
    "Bundle",
    "BundleError",
    "CharmArchive",
    "CharmDir",
    "CharmURL",
    "CharmURLError",
]
