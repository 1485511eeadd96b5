"""Audit logging for charm directory changes.

Provides change tracking with:
- Timestamped entries for every stage/deploy of a charm directory
- The charm URL and outcome of each operation
- Structured JSON log format
- Separate audit log file
"""
import json
import logging
import os
from datetime import datetime, timezone
from dataclasses import dataclass, asdict, field
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

# Dedicated audit logger, never propagated to the main log
audit_logger = logging.getLogger("charmdir.audit")
audit_logger.propagate = False

DEFAULT_AUDIT_DIR = Path.home() / ".charmdir"


def setup_audit_logging(log_dir: Optional[Path] = None) -> Path:
    """Configure audit logging to file.

    Args:
        log_dir: Directory for audit logs. Defaults to ~/.charmdir/

    Returns:
        Path of the audit log file
    """
    log_dir = Path(log_dir) if log_dir else DEFAULT_AUDIT_DIR
    log_dir.mkdir(parents=True, exist_ok=True)

    audit_file = log_dir / "audit.log"

    audit_logger.setLevel(logging.INFO)

    # Remove existing handlers
    for handler in list(audit_logger.handlers):
        audit_logger.removeHandler(handler)
        handler.close()

    handler = RotatingFileHandler(
        audit_file,
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=10,
        encoding="utf-8",
    )

    # One JSON document per line
    handler.setFormatter(logging.Formatter("%(message)s"))
    audit_logger.addHandler(handler)

    return audit_file


@dataclass
class ChangeRecord:
    """Record of a change to a charm directory."""
    timestamp: str
    path: str
    operation: str  # stage, install, upgrade
    success: bool
    charm_url: Optional[str] = None
    outcome: str = ""  # clean, conflict, skipped
    parameters: dict = field(default_factory=dict)
    error: Optional[str] = None

    def to_json(self) -> str:
        """Convert to JSON string."""
        return json.dumps(asdict(self), indent=None)

    @classmethod
    def from_json(cls, json_str: str) -> "ChangeRecord":
        """Parse from JSON string."""
        data = json.loads(json_str)
        return cls(**data)


class ChangeTracker:
    """Track and log changes to one directory."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def log_change(
        self,
        operation: str,
        success: bool,
        charm_url: Optional[str] = None,
        outcome: str = "",
        parameters: Optional[dict] = None,
        error: Optional[str] = None,
    ) -> ChangeRecord:
        """Log a change.

        Args:
            operation: The operation performed (e.g., "stage", "upgrade")
            success: Whether the operation succeeded
            charm_url: Charm URL involved, if any
            outcome: Short result tag (e.g., "clean", "conflict")
            parameters: Extra context for the operation
            error: Error message if failed

        Returns:
            The ChangeRecord that was logged
        """
        record = ChangeRecord(
            timestamp=datetime.now(timezone.utc).isoformat(),
            path=str(self.path),
            operation=operation,
            success=success,
            charm_url=charm_url,
            outcome=outcome,
            parameters=parameters or {},
            error=error[:1000] if error else None,  # Truncate long git output
        )

        audit_logger.info(record.to_json())

        return record


def get_recent_changes(
    log_file: Optional[Path] = None,
    path: Optional[str] = None,
    operation: Optional[str] = None,
    limit: int = 100,
) -> list[ChangeRecord]:
    """Read recent changes from audit log.

    Args:
        log_file: Path to audit log. Defaults to ~/.charmdir/audit.log
        path: Filter by directory
        operation: Filter by operation type
        limit: Maximum number of records to return

    Returns:
        List of ChangeRecords, most recent first
    """
    if log_file is None:
        log_file = DEFAULT_AUDIT_DIR / "audit.log"

    if not os.path.exists(log_file):
        return []

    records = []
    with open(log_file, "r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            try:
                record = ChangeRecord.from_json(line)
            except (json.JSONDecodeError, TypeError):
                continue  # Skip malformed lines

            if path and record.path != str(path):
                continue
            if operation and record.operation != operation:
                continue

            records.append(record)

    # Return most recent first, limited
    return list(reversed(records[-limit:]))
