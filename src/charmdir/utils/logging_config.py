"""Logging configuration for charmdir.

Provides configurable logging with:
- File-based logging with rotation
- Console output for real-time debugging
- Timing decorators for git-backed operations

Environment Variables:
    CHARMDIR_LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
    CHARMDIR_LOG_FILE: Path to log file (default: ~/.charmdir/charmdir.log)
    CHARMDIR_LOG_MAX_SIZE: Max log file size in MB (default: 10)
    CHARMDIR_LOG_BACKUPS: Number of backup files to keep (default: 5)

Usage:
    from charmdir.utils.logging_config import setup_logging, timed

    setup_logging()  # Call once at startup

    @timed("pull")
    def pull(self, source):
        ...

    # Or use context manager for sections:
    with timed_section("stage", path="/var/lib/juju/charm"):
        ...
"""
import functools
import logging
import os
import time
from contextlib import contextmanager
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Callable, Any

# Performance logger - separate from main logger for easy filtering
perf_logger = logging.getLogger("charmdir.perf")
main_logger = logging.getLogger("charmdir")

_configured = False


def get_log_level() -> int:
    """Get log level from environment."""
    level_str = os.environ.get("CHARMDIR_LOG_LEVEL", "INFO").upper()
    return getattr(logging, level_str, logging.INFO)


def get_log_file() -> Path:
    """Get log file path from environment."""
    default_path = Path.home() / ".charmdir" / "charmdir.log"
    path_str = os.environ.get("CHARMDIR_LOG_FILE", str(default_path))
    return Path(path_str)


def setup_logging() -> None:
    """Configure logging for the application.

    Sets up:
    - Console handler (INFO+ by default, respects CHARMDIR_LOG_LEVEL)
    - File handler with rotation (DEBUG level - captures everything)
    - Performance logger for timing metrics

    Calling it again is a no-op.
    """
    global _configured
    if _configured:
        return

    log_level = get_log_level()
    log_file = get_log_file()
    max_size_mb = int(os.environ.get("CHARMDIR_LOG_MAX_SIZE", "10"))
    backup_count = int(os.environ.get("CHARMDIR_LOG_BACKUPS", "5"))

    log_file.parent.mkdir(parents=True, exist_ok=True)

    # Main format: timestamp - logger - level - message
    main_format = logging.Formatter(
        "%(asctime)s.%(msecs)03d | %(name)-25s | %(levelname)-7s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(main_format)

    # File handler - captures DEBUG and above (everything)
    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=max_size_mb * 1024 * 1024,
        backupCount=backup_count,
        encoding="utf-8"
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(main_format)

    # charmdir.perf propagates here, so one set of handlers covers both
    main_logger.setLevel(logging.DEBUG)  # Capture all, handlers filter
    main_logger.addHandler(console_handler)
    main_logger.addHandler(file_handler)
    perf_logger.setLevel(logging.DEBUG)

    _configured = True
    main_logger.info(f"Logging initialized: level={logging.getLevelName(log_level)}, file={log_file}")


def _where(args: tuple, path: Optional[str]) -> str:
    # Infer the directory from self.path when not given explicitly
    if path is None and args and hasattr(args[0], "path"):
        path = str(args[0].path)
    return path or "N/A"


def timed(operation: str, path: Optional[str] = None):
    """Decorator to log execution time of a function.

    Args:
        operation: Name of the operation (e.g., "pull", "snapshot", "stage")
        path: Optional directory (inferred from self.path when omitted)

    Usage:
        @timed("pull")
        def pull(self, source):
            ...
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            where = _where(args, path)
            start = time.perf_counter()
            try:
                result = func(*args, **kwargs)
                elapsed = (time.perf_counter() - start) * 1000
                perf_logger.debug(
                    f"{operation:12s} | {where} | {elapsed:8.2f}ms | OK"
                )
                return result
            except Exception as e:
                elapsed = (time.perf_counter() - start) * 1000
                perf_logger.debug(
                    f"{operation:12s} | {where} | {elapsed:8.2f}ms | FAIL: {e}"
                )
                raise

        return wrapper

    return decorator


@contextmanager
def timed_section(operation: str, path: Optional[str] = None, **extra):
    """Context manager for timing code sections.

    Args:
        operation: Name of the operation
        path: Directory being operated on
        **extra: Additional context to log

    Usage:
        with timed_section("stage", path=deployer.path, url="cs:precise/mysql-3"):
            ...
    """
    start = time.perf_counter()
    extra_str = " | ".join(f"{k}={v}" for k, v in extra.items()) if extra else ""

    try:
        yield
        elapsed = (time.perf_counter() - start) * 1000
        msg = f"{operation:12s} | {path or 'N/A'} | {elapsed:8.2f}ms | OK"
        if extra_str:
            msg += f" | {extra_str}"
        perf_logger.debug(msg)
    except Exception as e:
        elapsed = (time.perf_counter() - start) * 1000
        msg = f"{operation:12s} | {path or 'N/A'} | {elapsed:8.2f}ms | FAIL: {e}"
        if extra_str:
            msg += f" | {extra_str}"
        perf_logger.debug(msg)
        raise
