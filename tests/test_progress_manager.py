"""Tests for progress reporting and cancellation."""

from typing import List

import pytest

from doc2any.errors import ConversionCancelled
from doc2any.progress_manager import CancellationToken, ProgressEvent, ProgressManager


def test_events_are_kept_in_order() -> None:
    received: List[ProgressEvent] = []
    progress = ProgressManager(received.append)
    progress.emit("validating", 5, "Validating file...")
    progress.emit("encoding", 70)

    assert received == progress.events
    assert progress.latest == ProgressEvent("encoding", 70, "")


def test_percent_is_clamped() -> None:
    progress = ProgressManager()
    assert progress.emit("x", 150).percent == 100
    assert progress.emit("x", -3).percent == 0
    assert ProgressManager().latest is None


def test_progress_bar() -> None:
    with ProgressManager(show_bar=True) as progress:
        assert progress.bar is not None
        progress.emit("extracting", 30)
        progress.emit("encoding", 70)
        assert progress.bar.n == 70
        progress.notify("Converted first 20 of 25 pages")
    assert progress.bar is None
    assert progress.notices == ["Converted first 20 of 25 pages"]


def test_cancellation_token() -> None:
    token = CancellationToken()
    token.raise_if_cancelled()
    token.cancel()
    assert token.cancelled
    with pytest.raises(ConversionCancelled) as excinfo:
        token.raise_if_cancelled()
    assert excinfo.value.error_type == "cancelled"
