"""
Type definitions and data classes for the OU mover application.

This module defines:
- Outcome: Enum for the per-item result of a batch
- ClientStatus / ClientResult: Tagged result returned by a directory client
- ItemResult: Data class recording what happened to one work item
- BatchResult: Data class summarizing a whole batch
- ReportStatus / ReportEntry: Rows of the optional CSV report
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

# An opaque directory object identifier: a name, sAMAccountName or DN.
WorkItem = str


class Outcome(Enum):
    """Outcome of processing one work item."""
    SUCCESS = "success"                      # Moved into the destination
    NOT_FOUND = "not_found"                  # Identifier did not resolve
    PERMISSION_DENIED = "permission_denied"  # Directory refused the operation
    OTHER_FAILURE = "other_failure"          # Anything else


class ClientStatus(Enum):
    """Classification of a single directory call."""
    OK = "ok"
    NOT_FOUND = "not_found"
    UNAUTHORIZED = "unauthorized"
    OTHER = "other"


@dataclass(frozen=True, slots=True)
class ClientResult:
    """
    Result of a resolve or move call against the directory.

    Attributes:
        status: How the call ended
        detail: Human-readable detail (server message or error text)
        dn: Distinguished name of the object, when it was resolved
    """
    status: ClientStatus
    detail: str = ""
    dn: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is ClientStatus.OK

    @classmethod
    def success(cls, dn: Optional[str] = None, detail: str = "") -> "ClientResult":
        return cls(ClientStatus.OK, detail, dn)

    @classmethod
    def not_found(cls, detail: str = "") -> "ClientResult":
        return cls(ClientStatus.NOT_FOUND, detail)

    @classmethod
    def unauthorized(cls, detail: str = "", dn: Optional[str] = None) -> "ClientResult":
        return cls(ClientStatus.UNAUTHORIZED, detail, dn)

    @classmethod
    def other(cls, detail: str = "", dn: Optional[str] = None) -> "ClientResult":
        return cls(ClientStatus.OTHER, detail, dn)


@dataclass(frozen=True)
class ItemResult:
    """Result of processing one work item."""
    identifier: str
    outcome: Outcome
    message: str
    dn: Optional[str] = None


@dataclass(frozen=True)
class BatchResult:
    """
    Summary of a completed batch.

    Attributes:
        total_processed: Number of work items attempted
        successful: Items that ended in Outcome.SUCCESS
        failed: Items that ended in any other outcome
        log_path: Path of the audit log the batch wrote to
        results: Per-item results in processing order
    """
    total_processed: int
    successful: int
    failed: int
    log_path: str
    results: Tuple[ItemResult, ...] = ()


class ReportStatus(Enum):
    """Status values for CSV report (human-readable)."""
    MOVED = "MOVED"
    NOT_FOUND = "NOT_FOUND"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    ERROR = "ERROR"
    PARAMETER = "PARAMETER"

    @classmethod
    def from_outcome(cls, outcome: Outcome) -> "ReportStatus":
        """Convert Outcome to ReportStatus."""
        mapping = {
            Outcome.SUCCESS: cls.MOVED,
            Outcome.NOT_FOUND: cls.NOT_FOUND,
            Outcome.PERMISSION_DENIED: cls.PERMISSION_DENIED,
            Outcome.OTHER_FAILURE: cls.ERROR,
        }
        return mapping.get(outcome, cls.ERROR)


@dataclass
class ReportEntry:
    """Entry for the CSV report."""
    timestamp: str
    identifier: str
    status: str
    distinguished_name: str
    destination: str
    message: str
