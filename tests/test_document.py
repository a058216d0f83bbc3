"""Tests for atomic hosts file writes and backups."""

from __future__ import annotations

import os
import stat

import pytest

from hosts_updater.errors import BackupError, WriteError
from hosts_updater.hosts import BackupManager, HostsFile, atomic_write
from tests.fakes import failing_replace


def test_read_missing_file(tmp_path):
    hosts = HostsFile(tmp_path / "hosts")

    assert hosts.read_bytes() is None
    assert hosts.read_text() == ""


def test_undecodable_bytes_round_trip(tmp_path):
    path = tmp_path / "hosts"
    raw = b"127.0.0.1 caf\xe9.lan\n"
    path.write_bytes(raw)
    hosts = HostsFile(path)

    hosts.write_text(hosts.read_text())

    assert path.read_bytes() == raw


def test_atomic_write_replaces_content_and_leaves_no_temp_files(tmp_path):
    path = tmp_path / "hosts"
    path.write_bytes(b"old\n")

    atomic_write(path, b"new\n")

    assert path.read_bytes() == b"new\n"
    assert sorted(p.name for p in tmp_path.iterdir()) == ["hosts"]


@pytest.mark.skipif(os.name == "nt", reason="POSIX permission bits")
def test_atomic_write_keeps_permissions(tmp_path):
    path = tmp_path / "hosts"
    path.write_bytes(b"old\n")
    path.chmod(0o644)

    atomic_write(path, b"new\n")

    assert stat.S_IMODE(path.stat().st_mode) == 0o644


@pytest.mark.skipif(os.name == "nt", reason="symlinks need privileges on Windows")
def test_write_through_symlink_keeps_link(tmp_path):
    real = tmp_path / "real" / "hosts"
    real.parent.mkdir()
    real.write_bytes(b"old\n")
    link = tmp_path / "hosts"
    link.symlink_to(real)

    HostsFile(link).write_text("new\n")

    assert link.is_symlink()
    assert real.read_bytes() == b"new\n"
    assert sorted(p.name for p in real.parent.iterdir()) == ["hosts"]


def test_interrupted_write_keeps_original(tmp_path):
    path = tmp_path / "hosts"
    path.write_bytes(b"127.0.0.1 localhost\n")
    hosts = HostsFile(path, replace=failing_replace)

    with pytest.raises(WriteError):
        hosts.write_text("truncated")

    assert path.read_bytes() == b"127.0.0.1 localhost\n"
    assert sorted(p.name for p in tmp_path.iterdir()) == ["hosts"]


def test_backup_disabled_is_noop(tmp_path):
    backup = BackupManager(tmp_path / "backup" / "hosts.bak", enabled=False)

    assert backup.snapshot(b"data") is None
    assert not (tmp_path / "backup").exists()


def test_backup_creates_parent_dirs_and_overwrites(tmp_path):
    target = tmp_path / "nested" / "dir" / "hosts.bak"
    backup = BackupManager(target)

    assert backup.snapshot(b"first\n") == target
    assert backup.snapshot(b"second\n") == target
    assert target.read_bytes() == b"second\n"


def test_backup_skipped_when_hosts_file_missing(tmp_path):
    target = tmp_path / "hosts.bak"
    assert BackupManager(target).snapshot(None) is None
    assert not target.exists()


def test_backup_failure_raises_backup_error(tmp_path):
    target = tmp_path / "hosts.bak"
    target.write_bytes(b"previous\n")
    backup = BackupManager(target, replace=failing_replace)

    with pytest.raises(BackupError):
        backup.snapshot(b"data")
    assert target.read_bytes() == b"previous\n"


def test_backup_requires_path_when_enabled():
    with pytest.raises(ValueError):
        BackupManager(None, enabled=True)
