"""Rendered contribution of one source to the managed region."""

from __future__ import annotations

from dataclasses import dataclass
from collections.abc import Iterable, Iterator

SOURCE_HEADER_PREFIX = "# Source: "


@dataclass(frozen=True)
class RecordBlock:
    """A source URL and its raw lines, kept verbatim."""

    source_url: str
    lines: tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.source_url:
            raise ValueError("source_url must be provided")
        if "\n" in self.source_url or "\r" in self.source_url:
            raise ValueError("source_url must not contain line terminators")
        if any("\n" in line or "\r" in line for line in self.lines):
            raise ValueError("Block lines must not contain line terminators")

    @property
    def header(self) -> str:
        return f"{SOURCE_HEADER_PREFIX}{self.source_url}"

    def render_lines(self) -> Iterator[str]:
        yield self.header
        yield from self.lines

    @classmethod
    def from_iterable(cls, source_url: str, lines: Iterable[str]) -> RecordBlock:
        return cls(source_url=source_url, lines=tuple(lines))
