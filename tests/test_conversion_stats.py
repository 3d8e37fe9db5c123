"""Tests for persistent conversion counters."""

import json
from pathlib import Path

import pytest

from doc2any.conversion_stats import ConversionStats, format_size


@pytest.mark.parametrize(
    "size,expected",
    [
        (0, "0 Bytes"),
        (512, "512 Bytes"),
        (1024, "1 KB"),
        (1536, "1.5 KB"),
        (10 * 1024 * 1024, "10 MB"),
        (3 * 1024 ** 3 + 512 * 1024 ** 2, "3.5 GB"),
    ],
)
def test_format_size(size: int, expected: str) -> None:
    assert format_size(size) == expected


def test_counters_persist(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "stats.json"
    stats = ConversionStats(path)
    stats.record_conversion(files=1, size_bytes=2048)
    stats.record_conversion(files=1, size_bytes=1024)

    reloaded = ConversionStats(path)
    assert reloaded.files_converted == 2
    assert reloaded.total_bytes == 3072
    assert "Files converted: 2" in reloaded.format_stats()
    assert "3 KB" in reloaded.format_stats()


@pytest.mark.parametrize(
    "content",
    [
        {"files_converted": 2_000_000, "total_bytes": 10},
        {"files_converted": 1, "total_bytes": 10 ** 13},
        {"files_converted": -4, "total_bytes": 0},
    ],
)
def test_implausible_values_reset(tmp_path: Path, content: dict) -> None:
    path = tmp_path / "stats.json"
    path.write_text(json.dumps(content), encoding="utf-8")
    stats = ConversionStats(path)
    assert (stats.files_converted, stats.total_bytes) == (0, 0)
    assert json.loads(path.read_text(encoding="utf-8")) == {"files_converted": 0, "total_bytes": 0}


def test_unreadable_file(tmp_path: Path) -> None:
    path = tmp_path / "stats.json"
    path.write_text("{not json", encoding="utf-8")
    stats = ConversionStats(path)
    assert stats.files_converted == 0


def test_in_memory_and_reset() -> None:
    stats = ConversionStats(None)
    stats.record_conversion(size_bytes=100)
    assert stats.files_converted == 1
    stats.reset()
    assert (stats.files_converted, stats.total_bytes) == (0, 0)
