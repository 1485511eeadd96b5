"""Charm URLs: the identity recorded for a deployed charm.

Format: ``<schema>:[~<user>/]<series>/<name>[-<revision>]``, for example
``cs:precise/mysql-12`` or ``cs:~alice/trusty/wordpress``.
"""
import re
from dataclasses import dataclass, replace
from typing import Optional

SCHEMAS = ("cs", "local")

VALID_USER = re.compile(r"^[a-z0-9][a-zA-Z0-9+.-]+$")
VALID_SERIES = re.compile(r"^[a-z]+([a-z0-9]+)?$")
VALID_NAME = re.compile(r"^[a-z][a-z0-9]*(-[a-z0-9]*[a-z][a-z0-9]*)*$")


class CharmURLError(ValueError):
    """Raised when a charm URL cannot be parsed."""
    pass


@dataclass(frozen=True)
class CharmURL:
    """A parsed charm URL. Revision -1 means unrevisioned."""
    schema: str
    series: str
    name: str
    revision: int = -1
    user: Optional[str] = None

    def __post_init__(self):
        if self.schema not in SCHEMAS:
            raise CharmURLError(f"charm URL has invalid schema: {self.schema!r}")
        if self.user is not None:
            if self.schema == "local":
                raise CharmURLError("local charm URL with user name")
            if not VALID_USER.match(self.user):
                raise CharmURLError(f"charm URL has invalid user name: {self.user!r}")
        if not VALID_SERIES.match(self.series):
            raise CharmURLError(f"charm URL has invalid series: {self.series!r}")
        if not VALID_NAME.match(self.name):
            raise CharmURLError(f"charm URL has invalid charm name: {self.name!r}")
        if self.revision < -1:
            raise CharmURLError(f"charm URL has invalid revision: {self.revision}")

    @classmethod
    def parse(cls, url: str) -> "CharmURL":
        """Parse a charm URL string."""
        if not isinstance(url, str):
            raise CharmURLError(f"charm URL must be a string, got {type(url).__name__}")

        schema, sep, rest = url.partition(":")
        if not sep:
            raise CharmURLError(f"charm URL has no schema: {url!r}")

        user = None
        parts = rest.split("/")
        if parts[0].startswith("~"):
            user = parts.pop(0)[1:]
        if len(parts) != 2:
            raise CharmURLError(f"charm URL has invalid form: {url!r}")
        series, name = parts

        revision = -1
        head, dash, tail = name.rpartition("-")
        if dash and tail.isdigit():
            name, revision = head, int(tail)

        return cls(schema=schema, series=series, name=name, revision=revision, user=user)

    def with_revision(self, revision: int) -> "CharmURL":
        """Copy of this URL at another revision."""
        return replace(self, revision=revision)

    def __str__(self) -> str:
        prefix = f"{self.schema}:"
        if self.user:
            prefix += f"~{self.user}/"
        url = f"{prefix}{self.series}/{self.name}"
        if self.revision >= 0:
            url += f"-{self.revision}"
        return url
