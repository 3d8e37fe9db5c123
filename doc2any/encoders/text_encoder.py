"""Plain text and CSV output."""

import logging
from datetime import datetime
from typing import List, Optional, Set

from ..errors import EncodingError
from ..file_converter import IntermediateContent
from ..formats import Format
from ..logging_utils import log_timing
from ..text_utils import TOOL_NAME

logger = logging.getLogger(__name__)

BANNER = "=" * 40
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def csv_cell(value: str) -> str:
    """Quote a cell when it holds a comma, quote or newline."""
    escaped = value.replace('"', '""')
    if any(ch in escaped for ch in ',"\n'):
        return f'"{escaped}"'
    return escaped


def rows_to_csv(rows: List[List[str]]) -> str:
    """Serialize rows of cells as CSV records joined by newlines."""
    return "\n".join(",".join(csv_cell(cell) for cell in row) for row in rows)


def text_to_rows(text: str) -> List[List[str]]:
    """One row per non-blank line; tab-separated lines become several cells."""
    return [line.split("\t") for line in text.split("\n") if line.strip()]


class TextEncoder:
    """Writes TXT files with a provenance banner and CSV files with metadata rows."""

    SUPPORTED_TARGETS: Set[Format] = {Format.TXT, Format.CSV}

    def __init__(self, now: Optional[datetime] = None) -> None:
        """Initialize the encoder.

        Args:
            now: Fixed timestamp for headers, the current time when omitted
        """
        self.now = now

    def can_handle(self, target: Format) -> bool:
        return target in self.SUPPORTED_TARGETS

    def _timestamp(self) -> str:
        return (self.now or datetime.now()).strftime(DATE_FORMAT)

    @log_timing
    def encode(
        self, content: IntermediateContent, original_filename: str, target: Format
    ) -> bytes:
        text = content.as_text()
        if target == Format.TXT:
            return self._encode_txt(text, original_filename).encode("utf-8")
        if target == Format.CSV:
            return self._encode_csv(text, original_filename).encode("utf-8")
        raise EncodingError(f"Unsupported text target: {target}")

    def _encode_txt(self, text: str, original_filename: str) -> str:
        header = (
            f"{BANNER}\n"
            f"Document Converted by {TOOL_NAME}\n"
            f"Original File: {original_filename}\n"
            f"Date: {self._timestamp()}\n"
            f"{BANNER}\n\n"
        )
        return header + text

    def _encode_csv(self, text: str, original_filename: str) -> str:
        metadata = [
            ["Original File", original_filename],
            ["Converted By", TOOL_NAME],
            ["Date", self._timestamp()],
        ]
        rows = text_to_rows(text)
        logger.debug("Writing %d CSV record(s) for %s", len(rows), original_filename)
        return f"{rows_to_csv(metadata)}\n\n{rows_to_csv(rows)}"
