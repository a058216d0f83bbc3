"""Outcome of one scheduler tick, kept for logging only."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from collections.abc import Iterable


class OutcomeStatus(str, Enum):
    SUCCESS = "success"
    ABORTED_ALL_FAILED = "aborted_all_failed"
    ABORTED_MALFORMED = "aborted_malformed"
    ABORTED_PARTIAL = "aborted_partial"
    FAILED = "failed"


_ABORTED = {
    OutcomeStatus.ABORTED_ALL_FAILED,
    OutcomeStatus.ABORTED_MALFORMED,
    OutcomeStatus.ABORTED_PARTIAL,
}


@dataclass(frozen=True)
class UpdateOutcome:
    """Summary of what a tick did."""

    status: OutcomeStatus
    succeeded: tuple[str, ...] = ()
    failed_sources: tuple[tuple[str, str], ...] = ()
    region_status: str | None = None
    error: str | None = None
    backup_path: str | None = None
    finished_at: datetime = field(default_factory=datetime.now)

    def __post_init__(self) -> None:
        if self.status is OutcomeStatus.FAILED and not self.error:
            raise ValueError("A failed outcome must carry an error message")

    @property
    def is_error(self) -> bool:
        """True when the tick failed unexpectedly and should be retried sooner."""
        return self.status is OutcomeStatus.FAILED

    @property
    def is_aborted(self) -> bool:
        return self.status in _ABORTED

    def to_dict(self) -> dict[str, object]:
        data: dict[str, object] = {
            "status": self.status.value,
            "finishedAt": self.finished_at.isoformat(timespec="seconds"),
            "sources": {
                "succeeded": list(self.succeeded),
                "failed": [{"url": url, "kind": kind} for url, kind in self.failed_sources],
            },
        }
        if self.region_status is not None:
            data["regionStatus"] = self.region_status
        if self.backup_path is not None:
            data["backupPath"] = self.backup_path
        if self.error is not None:
            data["error"] = self.error
        return data

    @classmethod
    def failure(
        cls,
        error: str,
        *,
        succeeded: Iterable[str] = (),
        failed_sources: Iterable[tuple[str, str]] = (),
        region_status: str | None = None,
    ) -> UpdateOutcome:
        return cls(
            status=OutcomeStatus.FAILED,
            succeeded=tuple(succeeded),
            failed_sources=tuple(failed_sources),
            region_status=region_status,
            error=error,
        )
