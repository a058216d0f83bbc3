"""Data models for the hosts updater."""

from __future__ import annotations

from .fetch_result import FetchErrorKind, RawFetchResult
from .record_block import RecordBlock
from .update_outcome import OutcomeStatus, UpdateOutcome

__all__ = [
    "FetchErrorKind",
    "OutcomeStatus",
    "RawFetchResult",
    "RecordBlock",
    "UpdateOutcome",
]
