"""Retrieval of raw hosts text from remote sources."""

from __future__ import annotations

import logging
import re
from concurrent.futures import ThreadPoolExecutor
from typing import Protocol
from collections.abc import Sequence

import requests
from requests import Response
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_fixed

from ..models import FetchErrorKind, RawFetchResult

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECS = 30.0

USER_AGENT = "hosts-updater/0.1 (+https://pypi.org/project/hosts-updater/)"

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")


class Fetcher(Protocol):
    """Anything that turns a URL into a :class:`RawFetchResult` without raising."""

    def fetch(self, url: str) -> RawFetchResult: ...


class SourceFetcher:
    """Fetch a source over HTTP(S) and classify every failure.

    Connection errors and timeouts are retried only when ``attempts`` is
    greater than one; the scheduler owns the longer-term backoff.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT_SECS,
        attempts: int = 1,
        retry_wait: float = 2.0,
        session: requests.Session | None = None,
    ) -> None:
        if attempts < 1:
            raise ValueError("attempts must be at least 1")
        self.timeout = timeout
        self.attempts = attempts
        self.retry_wait = retry_wait
        self.session = session or requests.Session()

    def _http_get(self, url: str) -> Response:
        retrying = Retrying(
            reraise=True,
            stop=stop_after_attempt(self.attempts),
            wait=wait_fixed(self.retry_wait),
            retry=retry_if_exception_type((requests.ConnectionError, requests.Timeout)),
        )
        return retrying(
            self.session.get, url, headers={"User-Agent": USER_AGENT}, timeout=self.timeout
        )

    def fetch(self, url: str) -> RawFetchResult:
        try:
            response = self._http_get(url)
        except requests.Timeout as exc:
            return RawFetchResult.err(url, FetchErrorKind.TIMEOUT, str(exc))
        except requests.RequestException as exc:
            return RawFetchResult.err(url, FetchErrorKind.NETWORK, str(exc))

        if not 200 <= response.status_code < 300:
            return RawFetchResult.err(
                url,
                FetchErrorKind.NETWORK,
                f"Unexpected status code {response.status_code}",
            )

        return _decode_payload(url, response.content)


def _decode_payload(url: str, payload: bytes) -> RawFetchResult:
    """Decode a response body, rejecting anything that is not plain text."""
    try:
        text = payload.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        return RawFetchResult.err(
            url, FetchErrorKind.INVALID_CONTENT, f"response is not UTF-8 text ({exc.reason})"
        )

    if not text.strip():
        return RawFetchResult.err(url, FetchErrorKind.INVALID_CONTENT, "response is empty")

    match = _CONTROL_CHARS.search(text)
    if match is not None:
        return RawFetchResult.err(
            url,
            FetchErrorKind.INVALID_CONTENT,
            f"control character {match.group()!r} at offset {match.start()}",
        )

    return RawFetchResult.ok(url, text)


def fetch_sources(urls: Sequence[str], fetcher: Fetcher) -> list[RawFetchResult]:
    """Fetch all sources concurrently and return results in ``urls`` order.

    Returns only after every fetch has completed or failed.
    """
    if not urls:
        return []

    with ThreadPoolExecutor(max_workers=len(urls), thread_name_prefix="fetch") as pool:
        results = list(pool.map(fetcher.fetch, urls))

    for result in results:
        if result.error is None:
            logger.info("Fetched %s", result.url)
        else:
            logger.error(
                "Failed to fetch %s (%s): %s", result.url, result.error.value, result.detail
            )
    return results
