"""Result of fetching a single hosts source."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ..errors import FetchError


class FetchErrorKind(str, Enum):
    """Why a source could not be used."""

    NETWORK = "network"
    TIMEOUT = "timeout"
    INVALID_CONTENT = "invalid_content"


@dataclass(frozen=True)
class RawFetchResult:
    """Either the text returned by a source or the reason it failed."""

    url: str
    text: str | None = None
    error: FetchErrorKind | None = None
    detail: str = ""

    def __post_init__(self) -> None:
        if not self.url:
            raise ValueError("url must be provided")
        if (self.text is None) == (self.error is None):
            raise ValueError("Exactly one of text or error must be set")

    @property
    def is_ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> str:
        """Return the fetched text or raise :class:`FetchError`."""
        if self.error is not None:
            raise FetchError(self.url, self.error.value, self.detail)
        return self.text or ""

    @classmethod
    def ok(cls, url: str, text: str) -> RawFetchResult:
        return cls(url=url, text=text)

    @classmethod
    def err(cls, url: str, kind: FetchErrorKind, detail: str = "") -> RawFetchResult:
        return cls(url=url, error=kind, detail=detail)
