"""One full update tick: fetch, aggregate, reconcile, back up and write.

This module has no scheduling or CLI concerns so that a single tick can be
driven from tests, from ``--once`` and from the scheduler loop alike.
"""

from __future__ import annotations

import logging
from datetime import datetime
from collections.abc import Callable

from .config import Settings
from .errors import AllSourcesFailedError, BackupError, RegionMalformedError, WriteError
from .hosts import BackupManager, HostsFile, ManagedRegion, reconcile
from .hosts.document import decode
from .ingestion import Fetcher, SourceFetcher, aggregate_results, fetch_sources
from .models import OutcomeStatus, UpdateOutcome

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class Updater:
    """Bind the collaborators needed to run a tick."""

    def __init__(
        self,
        sources: tuple[str, ...],
        hosts_file: HostsFile,
        fetcher: Fetcher,
        backup: BackupManager,
        require_all_sources: bool = False,
        clock: Clock = datetime.now,
    ) -> None:
        self.sources = sources
        self.hosts_file = hosts_file
        self.fetcher = fetcher
        self.backup = backup
        self.require_all_sources = require_all_sources
        self.clock = clock

    @classmethod
    def from_settings(cls, settings: Settings, clock: Clock = datetime.now) -> Updater:
        fetcher = SourceFetcher(
            timeout=settings.fetch_timeout_seconds,
            attempts=settings.fetch_attempts,
        )
        backup = BackupManager(settings.backup_path, enabled=settings.backup_before_update)
        return cls(
            sources=settings.hosts_sources,
            hosts_file=HostsFile(settings.resolved_hosts_file),
            fetcher=fetcher,
            backup=backup,
            require_all_sources=settings.require_all_sources,
            clock=clock,
        )

    def run_tick(self) -> UpdateOutcome:
        """Run one update and describe what happened.

        Aborts (malformed region, no usable sources) leave the hosts file and
        its backup untouched. Backup and write failures are returned as a
        ``failed`` outcome; any other exception propagates to the caller.
        """
        logger.info(
            "Starting hosts update from %d source(s) into %s",
            len(self.sources),
            self.hosts_file.path,
        )

        results = fetch_sources(self.sources, self.fetcher)
        aggregation = aggregate_results(results)
        logger.info(
            "%d of %d source(s) fetched successfully",
            len(aggregation.succeeded),
            len(self.sources),
        )

        current = self.hosts_file.read_bytes()
        current_text = decode(current) if current is not None else ""

        region = ManagedRegion.from_blocks(aggregation.blocks, generated_at=self.clock())
        result = reconcile(current_text, region)
        logger.info("Managed region in %s: %s", self.hosts_file.path, result.status.value)

        common = {
            "succeeded": aggregation.succeeded,
            "failed_sources": aggregation.failed,
            "region_status": result.status.value,
        }

        try:
            result.raise_for_status()
        except RegionMalformedError as exc:
            logger.error("Skipping update of %s: %s", self.hosts_file.path, exc)
            return UpdateOutcome(status=OutcomeStatus.ABORTED_MALFORMED, error=str(exc), **common)

        try:
            aggregation.ensure_content()
        except AllSourcesFailedError as exc:
            logger.error("Skipping update of %s: %s", self.hosts_file.path, exc)
            return UpdateOutcome(status=OutcomeStatus.ABORTED_ALL_FAILED, error=str(exc), **common)

        if self.require_all_sources and aggregation.failed:
            message = (
                f"{len(aggregation.failed)} source(s) failed and require_all_sources is set"
            )
            logger.error("Skipping update of %s: %s", self.hosts_file.path, message)
            return UpdateOutcome(status=OutcomeStatus.ABORTED_PARTIAL, error=message, **common)

        try:
            backup_path = self.backup.snapshot(current)
            self.hosts_file.write_text(result.document)
        except (BackupError, WriteError) as exc:
            logger.error("Hosts update failed: %s", exc)
            return UpdateOutcome.failure(str(exc), **common)

        logger.info(
            "Hosts file %s updated with %d block(s)",
            self.hosts_file.path,
            len(aggregation.blocks),
        )
        return UpdateOutcome(
            status=OutcomeStatus.SUCCESS,
            backup_path=str(backup_path) if backup_path is not None else None,
            **common,
        )
