"""
Batch runner for relocating directory objects into a destination OU.

This module is responsible for:
- Processing work items strictly in order, one at a time
- Resolving each item before attempting to move it
- Classifying every result as SUCCESS, NOT_FOUND, PERMISSION_DENIED
  or OTHER_FAILURE
- Isolating failures so one item never affects another
- Accumulating counters and writing the closing summary
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple, Union

from .audit import AuditLog
from .directory import DirectoryClient
from .errors import SetupError
from .types import BatchResult, ClientResult, ClientStatus, ItemResult, Outcome

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, str], None]


@dataclass(frozen=True)
class Tally:
    """Immutable success/failure counters, folded over outcomes."""
    successful: int = 0
    failed: int = 0

    @property
    def total(self) -> int:
        return self.successful + self.failed

    def add(self, outcome: Outcome) -> "Tally":
        if outcome is Outcome.SUCCESS:
            return Tally(self.successful + 1, self.failed)
        return Tally(self.successful, self.failed + 1)


def _resolve_failure(identifier: str, result: ClientResult) -> ItemResult:
    if result.status is ClientStatus.NOT_FOUND:
        detail = f" ({result.detail})" if result.detail else ""
        return ItemResult(
            identifier, Outcome.NOT_FOUND,
            f"Object '{identifier}' not found in directory{detail}",
        )
    if result.status is ClientStatus.UNAUTHORIZED:
        return ItemResult(
            identifier, Outcome.PERMISSION_DENIED,
            f"Permission denied looking up '{identifier}': {result.detail}",
            result.dn,
        )
    return ItemResult(
        identifier, Outcome.OTHER_FAILURE,
        f"Failed to look up '{identifier}': {result.detail}",
        result.dn,
    )


def _move_outcome(identifier: str, destination: str, result: ClientResult) -> ItemResult:
    if result.status is ClientStatus.OK:
        note = f" ({result.detail})" if result.detail else ""
        return ItemResult(
            identifier, Outcome.SUCCESS,
            f"Moved '{identifier}' to '{destination}'{note}",
            result.dn,
        )
    if result.status is ClientStatus.UNAUTHORIZED:
        return ItemResult(
            identifier, Outcome.PERMISSION_DENIED,
            f"Permission denied moving '{identifier}': {result.detail}",
            result.dn,
        )
    return ItemResult(
        identifier, Outcome.OTHER_FAILURE,
        f"Failed to move '{identifier}': {result.detail}",
        result.dn,
    )


def process_item(
    identifier: str,
    destination: str,
    client: DirectoryClient,
) -> ItemResult:
    """
    Resolve and move a single item.

    Nothing raised by the client escapes: unexpected exceptions become
    OTHER_FAILURE results.

    Args:
        identifier: The work item
        destination: DN of the target container
        client: Directory client to use

    Returns:
        ItemResult describing the outcome
    """
    try:
        resolved = client.resolve(identifier)
    except Exception as e:
        logger.debug(f"resolve({identifier!r}) raised", exc_info=True)
        return ItemResult(
            identifier, Outcome.OTHER_FAILURE,
            f"Unexpected error looking up '{identifier}': {type(e).__name__}: {e}",
        )

    if not resolved.ok:
        return _resolve_failure(identifier, resolved)

    try:
        moved = client.move(identifier, destination, resolved.dn)
    except Exception as e:
        logger.debug(f"move({identifier!r}) raised", exc_info=True)
        return ItemResult(
            identifier, Outcome.OTHER_FAILURE,
            f"Unexpected error moving '{identifier}': {type(e).__name__}: {e}",
            resolved.dn,
        )

    return _move_outcome(identifier, destination, moved)


def summarize(
    total: int,
    successful: int,
    failed: int,
    log_path: Union[str, Path],
    audit: AuditLog,
    results: Tuple[ItemResult, ...] = (),
) -> BatchResult:
    """
    Build the BatchResult and write the two summary entries.

    Returns:
        BatchResult with the given counters
    """
    audit.info(f"Batch complete: {total} processed")
    audit.success(f"Successful: {successful}, Failed: {failed}")
    return BatchResult(
        total_processed=total,
        successful=successful,
        failed=failed,
        log_path=str(log_path),
        results=results,
    )


class BatchRunner:
    """
    Moves every work item into one destination, in order.

    Each item is attempted exactly once; there is no retry and no rollback.
    """

    def __init__(
        self,
        destination: str,
        client: DirectoryClient,
        audit: AuditLog,
        validate_destination: bool = False,
    ):
        """
        Args:
            destination: DN of the target container
            client: Directory client holding the connection
            audit: Audit log for per-item and summary entries
            validate_destination: Resolve the destination once before the
                                  loop and stop if it does not resolve
        """
        self.destination = destination
        self.client = client
        self.audit = audit
        self.validate_destination = validate_destination

    def check_destination(self) -> None:
        """
        Raises:
            SetupError: If the destination does not resolve
        """
        result = self.client.resolve(self.destination)
        if not result.ok:
            raise SetupError(
                f"Destination '{self.destination}' is not usable: "
                f"{result.status.value} {result.detail}".rstrip()
            )
        logger.debug(f"Destination verified: {result.dn}")

    def _record(self, result: ItemResult) -> None:
        if result.outcome is Outcome.SUCCESS:
            self.audit.success(result.message)
        else:
            self.audit.error(result.message)

    def run(
        self,
        items: Sequence[str],
        progress_callback: Optional[ProgressCallback] = None,
    ) -> BatchResult:
        """
        Process all items and return the summary.

        Args:
            items: Work items in processing order
            progress_callback: Optional callable(current, total, identifier)

        Returns:
            BatchResult for the batch

        Raises:
            SetupError: Only when validate_destination is set and the
                        destination does not resolve
        """
        if self.validate_destination:
            self.check_destination()

        total = len(items)
        logger.info(f"Processing {total} work items...")
        self.audit.info(f"Moving {total} objects to '{self.destination}'")

        tally = Tally()
        results: List[ItemResult] = []

        for i, identifier in enumerate(items):
            if progress_callback:
                progress_callback(i + 1, total, identifier)

            result = process_item(identifier, self.destination, self.client)
            self._record(result)
            results.append(result)
            tally = tally.add(result.outcome)

            if (i + 1) % 100 == 0:
                logger.info(f"Processed {i + 1}/{total} items...")

        return summarize(
            tally.total,
            tally.successful,
            tally.failed,
            self.audit.path,
            self.audit,
            tuple(results),
        )


def run_batch(
    items: Sequence[str],
    destination: str,
    client: DirectoryClient,
    audit: AuditLog,
    validate_destination: bool = False,
) -> BatchResult:
    """Convenience wrapper around BatchRunner.run()."""
    runner = BatchRunner(destination, client, audit, validate_destination)
    return runner.run(items)
