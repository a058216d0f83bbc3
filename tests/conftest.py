"""Shared fixtures for hosts updater tests."""

from __future__ import annotations

import pytest


@pytest.fixture
def hosts_path(tmp_path):
    path = tmp_path / "etc" / "hosts"
    path.parent.mkdir()
    path.write_bytes(b"127.0.0.1 localhost\n::1 localhost\n")
    return path
