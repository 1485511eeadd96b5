"""Commit-granular version control over a single directory.

Drives the git executable with a pinned identity and locale so that every
commit is attributable to the agent and all parsed output is stable
regardless of the host environment.
"""
import logging
import os
import stat
import subprocess
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

from ..config import GitDirSettings

logger = logging.getLogger(__name__)

# Porcelain status codes for unmerged paths
CONFLICT_STATUSES = frozenset({"AA", "DD", "UU", "AU", "UA", "DU", "UD"})

# Keeps otherwise empty directories in the tree
EMPTY_MARKER = ".empty"

SHORT_HASH_LENGTH = 7

# Separates fields in history output
FIELD_SEPARATOR = "\x1f"


@dataclass
class CommitInfo:
    """Information about a git commit."""
    hash: str
    short_hash: str
    author: str
    date: datetime
    message: str

    @property
    def line(self) -> str:
        """The entry rendered as '<short-id> <message>'."""
        return f"{self.short_hash} {self.message}"


class SnapshotStore:
    """
    Snapshot primitives for one directory.

    The directory may not exist yet; initialize() creates it. Dirty and
    conflicted state are recomputed from git on every call because hooks
    may change files at any time.
    """

    def __init__(self, path: Path, settings: Optional[GitDirSettings] = None):
        """
        Args:
            path: Directory under version control (need not exist yet)
            settings: Git invocation settings (default: GitDirSettings())
        """
        self.path = Path(path).absolute()
        self.settings = settings or GitDirSettings()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str(self.path)!r})"

    def _run_git(
        self,
        *args: str,
        check: bool = True,
    ) -> subprocess.CompletedProcess:
        """Run a git command in the directory."""
        cmd = [self.settings.git_binary] + list(args)
        cwd = self.path
        logger.debug(f"Running: {' '.join(cmd)} (in {cwd})")

        try:
            result = subprocess.run(
                cmd,
                cwd=cwd,
                env=self.settings.git_env(),
                capture_output=True,
                text=True,
                timeout=self.settings.timeout,
                check=False,  # We'll handle errors ourselves
            )
        except subprocess.TimeoutExpired as e:
            logger.error(f"git {args[0]} timed out after {e.timeout}s\npath: {cwd}\nargs: {list(args)}")
            raise GitTimeoutError(list(args), timeout=e.timeout) from e
        except FileNotFoundError as e:
            # Either the executable or the working directory is missing
            raise GitError(list(args), stderr=str(e)) from e

        if check and result.returncode != 0:
            logger.error(
                f"git command failed: {result.returncode}\npath: {cwd}\n"
                f"args: {list(args)}\n{result.stdout}{result.stderr}"
            )
            raise GitError(
                list(args),
                returncode=result.returncode,
                stdout=result.stdout,
                stderr=result.stderr,
            )

        return result

    def exists(self) -> bool:
        """
        Check whether the directory exists.

        Raises:
            NotADirectoryError: If something other than a directory is there
        """
        try:
            st = os.stat(self.path)
        except FileNotFoundError:
            return False
        if not stat.S_ISDIR(st.st_mode):
            raise NotADirectoryError(f'"{self.path}" is not a directory')
        return True

    def is_initialized(self) -> bool:
        """Check if the directory exists and holds git metadata."""
        return self.exists() and (self.path / ".git").exists()

    def _require_initialized(self) -> None:
        if not self.is_initialized():
            raise NotInitializedError(f"{self.path} is not an initialized git directory")

    def initialize(self) -> bool:
        """
        Create the directory if needed and initialize git metadata.

        Returns:
            True if newly initialized, False if already initialized

        Raises:
            NotADirectoryError: If the path is an existing non-directory
            PermissionError: If the directory cannot be created
        """
        self.exists()
        self.path.mkdir(parents=True, exist_ok=True)

        newly = not (self.path / ".git").exists()
        if newly:
            self._run_git("init", "--quiet")
        self._configure_identity()

        if newly:
            logger.info(f"Initialized git directory at {self.path}")
        else:
            logger.debug(f"Git directory already initialized: {self.path}")
        return newly

    def _configure_identity(self) -> None:
        self._run_git("config", "user.email", self.settings.author_email)
        self._run_git("config", "user.name", self.settings.author_name)

    def stage_all(self) -> None:
        """
        Stage every change in the working tree, including removals.

        Empty directories get a placeholder file first, since git only
        tracks files.
        """
        self._require_initialized()

        for dirpath, dirnames, filenames in os.walk(self.path):
            if not dirnames and not filenames:
                (Path(dirpath) / EMPTY_MARKER).touch()
            if ".git" in dirnames:
                dirnames.remove(".git")

        self._run_git("add", "--all", ".")

    def has_staged_changes(self) -> bool:
        """Check whether the index differs from the last commit."""
        result = self._run_git("diff", "--cached", "--quiet", check=False)
        if result.returncode not in (0, 1):
            raise GitError(
                ["diff", "--cached", "--quiet"],
                returncode=result.returncode,
                stderr=result.stderr,
            )
        return result.returncode == 1

    def commit(self, message: str, *args: object) -> Optional[str]:
        """
        Commit staged content.

        Args:
            message: Commit message, %-formatted with args when given
            *args: Values interpolated into message

        Returns:
            Short id of the new commit, or None if nothing was staged
        """
        self._require_initialized()
        if args:
            message = message % args

        if not self.has_staged_changes():
            logger.debug(f"Nothing to commit in {self.path}")
            return None

        self._run_git("commit", "--quiet", "--no-verify", "-m", message)

        result = self._run_git("rev-parse", f"--short={SHORT_HASH_LENGTH}", "HEAD")
        short_hash = result.stdout.strip()

        logger.info(f"Committed: {short_hash} - {message.splitlines()[0] if message else ''}")
        return short_hash

    def _statuses(self) -> list[str]:
        self._require_initialized()
        result = self._run_git("status", "--porcelain")
        return [line[:2] for line in result.stdout.splitlines() if line]

    def is_dirty(self) -> bool:
        """True iff the working tree or index differs from the last commit."""
        return len(self._statuses()) != 0

    def is_conflicted(self) -> bool:
        """True iff a merge left unresolved paths."""
        return any(status in CONFLICT_STATUSES for status in self._statuses())

    def has_commits(self) -> bool:
        result = self._run_git("rev-parse", "--verify", "--quiet", "HEAD", check=False)
        return result.returncode == 0

    def history(self, limit: Optional[int] = None) -> list[CommitInfo]:
        """
        Get commit history, most recent first.

        Args:
            limit: Maximum commits to return (default: all)

        Returns:
            List of CommitInfo objects
        """
        self._require_initialized()
        if not self.has_commits():
            return []

        # Unit-separated: hash, short, author, date, subject
        format_str = "%H%x1f%h%x1f%an%x1f%aI%x1f%s"
        args = ["log", f"--abbrev={SHORT_HASH_LENGTH}", f"--format={format_str}"]
        if limit is not None:
            args.append(f"-n{limit}")

        result = self._run_git(*args)

        commits = []
        for line in result.stdout.split("\n"):
            if not line:
                continue

            parts = line.split(FIELD_SEPARATOR, 4)
            if len(parts) < 5:
                raise GitError(args, stdout=result.stdout, stderr=f"unparseable log line: {line!r}")

            commits.append(CommitInfo(
                hash=parts[0],
                short_hash=parts[1],
                author=parts[2],
                date=datetime.fromisoformat(parts[3]),
                message=parts[4],
            ))

        return commits

    def log(self) -> list[str]:
        """History rendered as '<short-id> <message>' lines, newest first."""
        return [commit.line for commit in self.history()]


class GitError(Exception):
    """Exception raised for git operation failures."""

    def __init__(
        self,
        args: list[str],
        returncode: Optional[int] = None,
        stdout: str = "",
        stderr: str = "",
    ):
        self.git_args = args
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        command = args[0] if args else "command"
        detail = (stderr or stdout).strip()
        message = f"git {command} failed"
        if returncode is not None:
            message += f" (exit status {returncode})"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class GitTimeoutError(GitError):
    """A git command was killed after exceeding its timeout."""

    def __init__(self, args: list[str], timeout: Optional[float] = None):
        self.timeout = timeout
        super().__init__(args, stderr=f"timed out after {timeout}s")


class GitDirError(Exception):
    """A git directory was used in a state that does not allow the operation."""
    pass


class NotInitializedError(GitDirError):
    """The directory is missing or has no git metadata."""
    pass


class ConflictedStateError(GitDirError):
    """The directory has an unresolved merge; only revert() is allowed."""
    pass


class LocalChangesError(GitDirError):
    """A pull was refused because uncommitted changes overlap incoming ones."""
    pass
