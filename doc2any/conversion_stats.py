"""Persistent counters of completed conversions."""

import json
import logging
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)

DEFAULT_STATS_PATH = Path(".doc2any") / "stats.json"

# Anything above these is treated as corrupt and reset
MAX_PLAUSIBLE_FILES = 1_000_000
MAX_PLAUSIBLE_BYTES = 1_000_000_000_000

SIZE_UNITS = ("Bytes", "KB", "MB", "GB")


def format_size(size_bytes: float) -> str:
    """Render a byte count with two-decimal precision in Bytes/KB/MB/GB."""
    if size_bytes <= 0:
        return "0 Bytes"
    value = float(size_bytes)
    exponent = 0
    while value >= 1024 and exponent < len(SIZE_UNITS) - 1:
        value /= 1024
        exponent += 1
    return f"{round(value, 2):g} {SIZE_UNITS[exponent]}"


class ConversionStats:
    """Counts files converted and bytes processed across runs.

    Counters live in a small JSON file. Unreadable files, or values too large
    to be real, start the counters over from zero.
    """

    def __init__(self, path: Optional[Union[str, Path]] = DEFAULT_STATS_PATH) -> None:
        """Initialize statistics.

        Args:
            path: JSON file holding the counters, or None to keep them in memory
        """
        self.path = Path(path) if path is not None else None
        self.files_converted = 0
        self.total_bytes = 0
        self.load()

    def load(self) -> None:
        """Read counters from disk, resetting implausible values."""
        if self.path is None or not self.path.exists():
            return
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            files = int(data.get("files_converted", 0))
            size = int(data.get("total_bytes", 0))
        except (OSError, ValueError, TypeError, AttributeError) as e:
            logger.warning("Ignoring unreadable stats file %s: %s", self.path, e)
            files, size = 0, 0

        if files < 0 or size < 0 or files > MAX_PLAUSIBLE_FILES or size > MAX_PLAUSIBLE_BYTES:
            logger.warning("Resetting implausible stats (%d files, %d bytes)", files, size)
            self.files_converted, self.total_bytes = 0, 0
            self.save()
            return
        self.files_converted, self.total_bytes = files, size

    def save(self) -> None:
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            json.dumps(
                {"files_converted": self.files_converted, "total_bytes": self.total_bytes},
                indent=2,
            ),
            encoding="utf-8",
        )

    def record_conversion(self, files: int = 1, size_bytes: int = 0) -> None:
        """Record completed conversions and persist the new totals."""
        self.files_converted += files
        self.total_bytes += size_bytes
        logger.debug(
            "Stats now %d file(s), %d byte(s)", self.files_converted, self.total_bytes
        )
        self.save()

    def reset(self) -> None:
        self.files_converted = 0
        self.total_bytes = 0
        self.save()

    def format_stats(self) -> str:
        """Format statistics for display."""
        return "\n".join(
            [
                "Conversion Statistics:",
                f"  Files converted: {self.files_converted:,}",
                f"  Data processed:  {format_size(self.total_bytes)}",
            ]
        )
