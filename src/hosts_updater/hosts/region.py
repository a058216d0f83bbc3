"""Locate and regenerate the managed region of a hosts document.

The region looks like::

    # >>> hosts_updater_rs START >>>
    # 此区域由 hosts_updater_rs 自动管理，请勿手动修改
    # 最后更新: 2024-01-15 10:30:00

    # Source: https://example.com/hosts1
    127.0.0.1 localhost
    192.168.1.100 example.com

    # Source: https://example.com/hosts2
    192.168.1.101 api.example.com

    # <<< hosts_updater_rs END <<<

Only the lines between (and including) the two markers are ever rewritten.
Everything else in the document is returned byte-for-byte.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from collections.abc import Iterable

from ..errors import RegionMalformedError
from ..models import RecordBlock

START_MARKER = "# >>> hosts_updater_rs START >>>"
END_MARKER = "# <<< hosts_updater_rs END <<<"
NOTICE_LINE = "# 此区域由 hosts_updater_rs 自动管理，请勿手动修改"
TIMESTAMP_PREFIX = "# 最后更新: "
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class RegionStatus(str, Enum):
    FOUND = "found"
    MISSING = "missing"
    MALFORMED = "malformed"


@dataclass(frozen=True)
class ManagedRegion:
    """The content the region should hold after this update."""

    blocks: tuple[RecordBlock, ...]
    generated_at: datetime = field(default_factory=datetime.now)

    @property
    def timestamp_line(self) -> str:
        return f"{TIMESTAMP_PREFIX}{self.generated_at.strftime(TIMESTAMP_FORMAT)}"

    def lines(self) -> list[str]:
        """Return the region lines, markers inclusive, without terminators."""
        lines = [START_MARKER, NOTICE_LINE, self.timestamp_line, ""]
        for block in self.blocks:
            lines.extend(block.render_lines())
            lines.append("")
        lines.append(END_MARKER)
        return lines

    def render(self, newline: str = "\n") -> str:
        return "".join(line + newline for line in self.lines())

    @classmethod
    def from_blocks(
        cls, blocks: Iterable[RecordBlock], generated_at: datetime | None = None
    ) -> ManagedRegion:
        return cls(blocks=tuple(blocks), generated_at=generated_at or datetime.now())


@dataclass(frozen=True)
class MarkerScan:
    """Zero-based line indexes of every start and end marker."""

    start_lines: tuple[int, ...]
    end_lines: tuple[int, ...]

    @property
    def status(self) -> RegionStatus:
        if not self.start_lines and not self.end_lines:
            return RegionStatus.MISSING
        if (
            len(self.start_lines) == 1
            and len(self.end_lines) == 1
            and self.start_lines[0] < self.end_lines[0]
        ):
            return RegionStatus.FOUND
        return RegionStatus.MALFORMED


@dataclass(frozen=True)
class ReconcileResult:
    document: str
    status: RegionStatus
    scan: MarkerScan

    @property
    def changed(self) -> bool:
        return self.status is not RegionStatus.MALFORMED

    def raise_for_status(self) -> None:
        """Raise :class:`RegionMalformedError` when the markers are damaged."""
        if self.status is RegionStatus.MALFORMED:
            raise RegionMalformedError(
                [index + 1 for index in self.scan.start_lines],
                [index + 1 for index in self.scan.end_lines],
            )


def split_lines(text: str) -> list[str]:
    """Split on ``\\n`` only, keeping terminators so joining is lossless."""
    parts = text.split("\n")
    lines = [part + "\n" for part in parts[:-1]]
    if parts[-1]:
        lines.append(parts[-1])
    return lines


def _strip_terminator(line: str) -> str:
    if line.endswith("\n"):
        line = line[:-1]
    if line.endswith("\r"):
        line = line[:-1]
    return line


def detect_newline(lines: list[str]) -> str:
    """Return ``\\r\\n`` if the document's first line uses it, else ``\\n``."""
    if lines and lines[0].endswith("\r\n"):
        return "\r\n"
    return "\n"


def scan_markers(lines: list[str]) -> MarkerScan:
    starts: list[int] = []
    ends: list[int] = []
    for index, line in enumerate(lines):
        content = _strip_terminator(line)
        if content == START_MARKER:
            starts.append(index)
        elif content == END_MARKER:
            ends.append(index)
    return MarkerScan(start_lines=tuple(starts), end_lines=tuple(ends))


def reconcile(document: str, region: ManagedRegion) -> ReconcileResult:
    """Replace or append the managed region in ``document``.

    A malformed document is returned unchanged; callers must not write it.
    """
    lines = split_lines(document)
    scan = scan_markers(lines)
    status = scan.status

    if status is RegionStatus.MALFORMED:
        return ReconcileResult(document=document, status=status, scan=scan)

    newline = detect_newline(lines)
    rendered = region.render(newline)

    if status is RegionStatus.FOUND:
        start, end = scan.start_lines[0], scan.end_lines[0]
        before = "".join(lines[:start])
        after = "".join(lines[end + 1 :])
        return ReconcileResult(document=before + rendered + after, status=status, scan=scan)

    if not lines:
        return ReconcileResult(document=rendered, status=status, scan=scan)

    prefix = document
    if not lines[-1].endswith("\n"):
        prefix += newline
    if _strip_terminator(lines[-1]).strip():
        prefix += newline
    return ReconcileResult(document=prefix + rendered, status=status, scan=scan)
