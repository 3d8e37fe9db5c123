"""Test configuration and fixtures."""

from pathlib import Path
from typing import Callable, Generator

import pytest
from samples import SAMPLE_BUILDERS, make_png

from doc2any.conversion_pipeline import ConversionPipeline
from doc2any.conversion_stats import ConversionStats
from doc2any.file_converter import SourceDescriptor


@pytest.fixture
def sample_source() -> Callable[[str], SourceDescriptor]:
    """Build an in-memory sample file for an extension."""

    def build(extension: str) -> SourceDescriptor:
        return SourceDescriptor.from_bytes(f"sample.{extension}", SAMPLE_BUILDERS[extension]())

    return build


@pytest.fixture
def png_photo() -> SourceDescriptor:
    return SourceDescriptor.from_bytes("photo.png", make_png(500, 300))


@pytest.fixture
def stats(tmp_path: Path) -> ConversionStats:
    return ConversionStats(tmp_path / "stats.json")


@pytest.fixture
def pipeline(stats: ConversionStats) -> ConversionPipeline:
    return ConversionPipeline(stats=stats)


@pytest.fixture
def clean_tmp_path(tmp_path: Path) -> Generator[Path, None, None]:
    """Create a working directory for files written by a test.

    Args:
        tmp_path: Pytest's temporary directory fixture

    Returns:
        Generator yielding path to the directory
    """
    test_dir = tmp_path / "work"
    test_dir.mkdir(parents=True, exist_ok=True)
    yield test_dir
