"""Single-slot backup of the hosts file taken before every write."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from ..errors import BackupError
from .document import ReplaceFunction, atomic_write

logger = logging.getLogger(__name__)


class BackupManager:
    """Copy the current hosts bytes to ``path`` before they are overwritten.

    Each snapshot replaces the previous one. Backups are never read back
    automatically; they exist for manual recovery.
    """

    def __init__(
        self,
        path: Path | str | None,
        enabled: bool = True,
        replace: ReplaceFunction = os.replace,
    ) -> None:
        if enabled and path is None:
            raise ValueError("A backup path is required when backups are enabled")
        self.path = Path(path) if path is not None else None
        self.enabled = enabled
        self._replace = replace

    def snapshot(self, data: bytes | None) -> Path | None:
        """Write ``data`` to the backup path and return it.

        Returns None without touching the filesystem when backups are disabled
        or there is no existing hosts file to copy.

        Raises:
            BackupError: If the backup could not be written.
        """
        if not self.enabled or self.path is None:
            return None
        if data is None:
            logger.info("Hosts file does not exist yet; nothing to back up")
            return None

        try:
            atomic_write(self.path, data, replace=self._replace)
        except OSError as exc:
            raise BackupError(f"Failed to back up hosts file to {self.path}: {exc}") from exc

        logger.info("Backed up hosts file to %s (%d bytes)", self.path, len(data))
        return self.path
