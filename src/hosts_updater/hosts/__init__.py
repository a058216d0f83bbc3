"""Hosts file editing: managed region, backup and atomic writes."""

from .backup import BackupManager
from .document import HostsFile, atomic_write
from .region import (
    END_MARKER,
    START_MARKER,
    ManagedRegion,
    ReconcileResult,
    RegionStatus,
    reconcile,
)

__all__ = [
    "BackupManager",
    "END_MARKER",
    "HostsFile",
    "ManagedRegion",
    "ReconcileResult",
    "RegionStatus",
    "START_MARKER",
    "atomic_write",
    "reconcile",
]
