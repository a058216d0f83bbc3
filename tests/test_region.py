"""Tests for locating and regenerating the managed region."""

from __future__ import annotations

from datetime import datetime

import pytest

from hosts_updater.errors import RegionMalformedError
from hosts_updater.hosts.region import (
    END_MARKER,
    NOTICE_LINE,
    START_MARKER,
    ManagedRegion,
    RegionStatus,
    reconcile,
    split_lines,
)
from hosts_updater.models import RecordBlock

T1 = datetime(2024, 1, 15, 10, 30, 0)
T2 = datetime(2024, 1, 15, 12, 45, 9)

BLOCKS = (
    RecordBlock.from_iterable("https://a.example/hosts", ["# upstream comment", "1.1.1.1 a.test"]),
    RecordBlock.from_iterable("https://b.example/hosts", ["2.2.2.2 b.test", "", "3.3.3.3 c.test"]),
)

EXPECTED_REGION = (
    f"{START_MARKER}\n"
    f"{NOTICE_LINE}\n"
    "# 最后更新: 2024-01-15 10:30:00\n"
    "\n"
    "# Source: https://a.example/hosts\n"
    "# upstream comment\n"
    "1.1.1.1 a.test\n"
    "\n"
    "# Source: https://b.example/hosts\n"
    "2.2.2.2 b.test\n"
    "\n"
    "3.3.3.3 c.test\n"
    "\n"
    f"{END_MARKER}\n"
)


def _without_timestamp(text: str) -> str:
    return "".join(line for line in split_lines(text) if not line.startswith("# 最后更新: "))


def test_render_layout():
    region = ManagedRegion.from_blocks(BLOCKS, generated_at=T1)
    assert region.render() == EXPECTED_REGION


def test_render_without_blocks_keeps_markers():
    region = ManagedRegion.from_blocks([], generated_at=T1)
    assert region.lines() == [START_MARKER, NOTICE_LINE, "# 最后更新: 2024-01-15 10:30:00", "", END_MARKER]


def test_missing_region_appended_after_one_blank_line():
    document = "127.0.0.1 localhost\n::1 localhost\n"
    result = reconcile(document, ManagedRegion.from_blocks(BLOCKS, generated_at=T1))

    assert result.status is RegionStatus.MISSING
    assert result.document == document + "\n" + EXPECTED_REGION


def test_missing_region_without_trailing_newline():
    document = "127.0.0.1 localhost"
    result = reconcile(document, ManagedRegion.from_blocks(BLOCKS, generated_at=T1))

    assert result.document == "127.0.0.1 localhost\n\n" + EXPECTED_REGION


def test_missing_region_does_not_double_existing_blank_line():
    document = "127.0.0.1 localhost\n\n"
    result = reconcile(document, ManagedRegion.from_blocks(BLOCKS, generated_at=T1))

    assert result.document == document + EXPECTED_REGION


def test_empty_document_gets_region_only():
    result = reconcile("", ManagedRegion.from_blocks(BLOCKS, generated_at=T1))

    assert result.status is RegionStatus.MISSING
    assert result.document == EXPECTED_REGION


def test_found_region_replaced_and_surroundings_untouched():
    before = "# my own entries\n10.0.0.1   nas.lan  \n\n"
    after = "\n# after the region\n10.0.0.2 printer.lan"
    old_region = f"{START_MARKER}\n# stale\n9.9.9.9 old.test\n{END_MARKER}\n"
    document = before + old_region + after

    result = reconcile(document, ManagedRegion.from_blocks(BLOCKS, generated_at=T1))

    assert result.status is RegionStatus.FOUND
    assert result.document == before + EXPECTED_REGION + after
    assert result.document.startswith(before)
    assert result.document.endswith(after)


def test_found_region_at_end_without_newline():
    document = f"127.0.0.1 localhost\n{START_MARKER}\nold\n{END_MARKER}"
    result = reconcile(document, ManagedRegion.from_blocks(BLOCKS, generated_at=T1))

    assert result.status is RegionStatus.FOUND
    assert result.document == "127.0.0.1 localhost\n" + EXPECTED_REGION


def test_reconcile_is_idempotent_apart_from_timestamp():
    document = "127.0.0.1 localhost\n"
    first = reconcile(document, ManagedRegion.from_blocks(BLOCKS, generated_at=T1))
    second = reconcile(first.document, ManagedRegion.from_blocks(BLOCKS, generated_at=T2))

    assert second.status is RegionStatus.FOUND
    assert second.document != first.document
    assert _without_timestamp(second.document) == _without_timestamp(first.document)

    third = reconcile(second.document, ManagedRegion.from_blocks(BLOCKS, generated_at=T1))
    assert third.document == first.document


def test_crlf_document_keeps_its_line_endings():
    before = "127.0.0.1 localhost\r\n"
    after = "# tail\r\n"
    document = before + f"{START_MARKER}\r\nold\r\n{END_MARKER}\r\n" + after

    result = reconcile(document, ManagedRegion.from_blocks(BLOCKS, generated_at=T1))

    assert result.status is RegionStatus.FOUND
    assert result.document == before + EXPECTED_REGION.replace("\n", "\r\n") + after


def test_marker_must_match_exactly():
    document = f"  {START_MARKER}\n{END_MARKER} trailing\n"
    result = reconcile(document, ManagedRegion.from_blocks(BLOCKS, generated_at=T1))

    assert result.status is RegionStatus.MISSING
    assert result.document.startswith(document)


@pytest.mark.parametrize(
    "document",
    [
        f"127.0.0.1 localhost\n{START_MARKER}\n1.1.1.1 a.test\n",
        f"127.0.0.1 localhost\n1.1.1.1 a.test\n{END_MARKER}\n",
        f"{END_MARKER}\n1.1.1.1 a.test\n{START_MARKER}\n",
        f"{START_MARKER}\n{START_MARKER}\n1.1.1.1 a.test\n{END_MARKER}\n",
        f"{START_MARKER}\n1.1.1.1 a.test\n{END_MARKER}\n{END_MARKER}\n",
        f"{START_MARKER}\n{END_MARKER}\n{START_MARKER}\n{END_MARKER}\n",
    ],
    ids=["start-only", "end-only", "reversed", "duplicate-start", "duplicate-end", "two-regions"],
)
def test_malformed_markers_leave_document_unchanged(document):
    result = reconcile(document, ManagedRegion.from_blocks(BLOCKS, generated_at=T1))

    assert result.status is RegionStatus.MALFORMED
    assert result.document == document
    assert not result.changed
    with pytest.raises(RegionMalformedError):
        result.raise_for_status()


def test_malformed_error_reports_one_based_line_numbers():
    document = f"a\n{START_MARKER}\nb\n"
    result = reconcile(document, ManagedRegion.from_blocks(BLOCKS, generated_at=T1))

    with pytest.raises(RegionMalformedError) as excinfo:
        result.raise_for_status()
    assert excinfo.value.start_lines == (2,)
    assert excinfo.value.end_lines == ()


def test_found_and_missing_do_not_raise():
    result = reconcile("", ManagedRegion.from_blocks(BLOCKS, generated_at=T1))
    result.raise_for_status()
    reconcile(result.document, ManagedRegion.from_blocks(BLOCKS, generated_at=T2)).raise_for_status()


def test_split_lines_is_lossless():
    text = "a\r\nb\n\nc\x85d e"
    assert "".join(split_lines(text)) == text
    assert split_lines(text) == ["a\r\n", "b\n", "\n", "c\x85d e"]
