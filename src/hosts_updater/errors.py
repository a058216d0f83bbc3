"""Error taxonomy for an update tick."""

from __future__ import annotations

from collections.abc import Iterable, Sequence


class HostsUpdaterError(RuntimeError):
    """Base error for failures while updating the hosts file."""


class FetchError(HostsUpdaterError):
    """Raised when a single source cannot be fetched or its content is unusable."""

    def __init__(self, url: str, kind: str, detail: str = "") -> None:
        self.url = url
        self.kind = kind
        self.detail = detail
        message = f"Failed to fetch {url} ({kind})"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class AllSourcesFailedError(HostsUpdaterError):
    """Raised when every configured source failed during one tick."""

    def __init__(self, failures: Iterable[tuple[str, str]]) -> None:
        self.failures = tuple(failures)
        summary = ", ".join(f"{url} ({kind})" for url, kind in self.failures)
        super().__init__(f"All {len(self.failures)} hosts sources failed: {summary}")


class RegionMalformedError(HostsUpdaterError):
    """Raised when the managed region markers in the hosts file are damaged."""

    def __init__(self, start_lines: Sequence[int], end_lines: Sequence[int]) -> None:
        self.start_lines = tuple(start_lines)
        self.end_lines = tuple(end_lines)
        super().__init__(
            "Managed region markers are malformed "
            f"(start marker at lines {list(self.start_lines)}, "
            f"end marker at lines {list(self.end_lines)}); "
            "fix the hosts file manually"
        )


class BackupError(HostsUpdaterError):
    """Raised when a requested backup of the hosts file could not be written."""


class WriteError(HostsUpdaterError):
    """Raised when the hosts file could not be replaced."""
