"""Turn fetched source text into ordered record blocks."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from collections.abc import Iterable

from ..errors import AllSourcesFailedError
from ..hosts.region import END_MARKER, START_MARKER
from ..models import RawFetchResult, RecordBlock

logger = logging.getLogger(__name__)

_MARKERS = {START_MARKER, END_MARKER}
_LINE_BREAK = re.compile(r"\r\n|\r|\n")


@dataclass(frozen=True)
class AggregationResult:
    """Record blocks of the successful sources plus the failures, in source order."""

    blocks: tuple[RecordBlock, ...]
    succeeded: tuple[str, ...]
    failed: tuple[tuple[str, str], ...]

    @property
    def all_failed(self) -> bool:
        return not self.blocks

    def ensure_content(self) -> tuple[RecordBlock, ...]:
        """Return the blocks, or raise :class:`AllSourcesFailedError` if there are none."""
        if self.all_failed:
            raise AllSourcesFailedError(self.failed)
        return self.blocks


def _source_lines(url: str, text: str) -> list[str]:
    # Only CR/LF end a line; str.splitlines() also splits on NEL and U+2028.
    lines = _LINE_BREAK.split(text)

    while lines and not lines[0].strip():
        lines.pop(0)
    while lines and not lines[-1].strip():
        lines.pop()

    kept: list[str] = []
    for index, line in enumerate(lines, start=1):
        if line in _MARKERS:
            logger.warning("Dropping region marker line %d from %s", index, url)
            continue
        kept.append(line)
    return kept


def aggregate_results(results: Iterable[RawFetchResult]) -> AggregationResult:
    """Build one :class:`RecordBlock` per successful source, preserving order.

    Record lines are kept verbatim; no address or hostname validation is done.
    """
    blocks: list[RecordBlock] = []
    succeeded: list[str] = []
    failed: list[tuple[str, str]] = []

    for result in results:
        if result.error is not None:
            failed.append((result.url, result.error.value))
            continue
        lines = _source_lines(result.url, result.unwrap())
        blocks.append(RecordBlock.from_iterable(result.url, lines))
        succeeded.append(result.url)
        logger.debug("Source %s contributed %d lines", result.url, len(lines))

    return AggregationResult(blocks=tuple(blocks), succeeded=tuple(succeeded), failed=tuple(failed))
