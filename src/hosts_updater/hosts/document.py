"""Reading the hosts file and replacing it atomically."""

from __future__ import annotations

import logging
import os
import stat
import tempfile
from pathlib import Path
from collections.abc import Callable

from ..errors import WriteError

logger = logging.getLogger(__name__)

ENCODING = "utf-8"
# Undecodable bytes survive a decode/encode round trip unchanged.
ERRORS = "surrogateescape"

ReplaceFunction = Callable[[str, str], None]


def decode(data: bytes) -> str:
    return data.decode(ENCODING, errors=ERRORS)


def encode(text: str) -> bytes:
    return text.encode(ENCODING, errors=ERRORS)


def atomic_write(path: Path, data: bytes, replace: ReplaceFunction = os.replace) -> None:
    """Write ``data`` to a temp file next to ``path`` and rename it over ``path``.

    Readers see either the old or the new file, never a partial one. The
    temp file is removed if anything fails. A symlinked ``path`` is followed
    so the link itself survives. Raises ``OSError``.
    """
    path = path.resolve()
    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        mode: int | None = stat.S_IMODE(path.stat().st_mode)
    except FileNotFoundError:
        mode = None

    tmp_name: str | None = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="wb", prefix=f".{path.name}.", suffix=".tmp", dir=path.parent, delete=False
        ) as tmp:
            tmp_name = tmp.name
            tmp.write(data)
            tmp.flush()
            os.fsync(tmp.fileno())
        if mode is not None:
            os.chmod(tmp_name, mode)
        replace(tmp_name, str(path))
    except BaseException:
        if tmp_name is not None:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
        raise


class HostsFile:
    """The on-disk hosts document.

    ``replace`` is the rename primitive used for writes; tests substitute one
    that fails to simulate an interrupted update.
    """

    def __init__(self, path: Path | str, replace: ReplaceFunction = os.replace) -> None:
        self.path = Path(path)
        self._replace = replace

    def exists(self) -> bool:
        return self.path.exists()

    def read_bytes(self) -> bytes | None:
        """Return the current bytes, or None if the file does not exist yet."""
        try:
            return self.path.read_bytes()
        except FileNotFoundError:
            return None

    def read_text(self) -> str:
        data = self.read_bytes()
        return decode(data) if data is not None else ""

    def write_text(self, text: str) -> None:
        """Atomically replace the hosts file with ``text``.

        Raises:
            WriteError: If the file could not be replaced. The previous
                content is left in place.
        """
        try:
            atomic_write(self.path, encode(text), replace=self._replace)
        except OSError as exc:
            raise WriteError(f"Failed to write hosts file {self.path}: {exc}") from exc
        logger.info("Wrote %s", self.path)
