"""Rich Text Format output."""

import logging
import re
import struct
from typing import Set

from ..file_converter import IntermediateContent
from ..formats import Format
from ..logging_utils import log_timing
from ..text_utils import DOCUMENT_TITLE, TOOL_NAME

logger = logging.getLogger(__name__)

RTF_HEADER = (
    "{\\rtf1\\ansi\\deff0\n"
    "{\\fonttbl{\\f0 Arial;}}\n"
    "{\\colortbl;\\red0\\green0\\blue0;\\red102\\green102\\blue102;}\n"
    "\\paperw12240\\paperh15840\\margl1440\\margr1440\\margt1440\\margb1440\n"
)
RTF_FOOTER = "\\par}"

_NON_ASCII = re.compile(r"[^\x00-\x7f]")


def _unicode_escape(match: "re.Match[str]") -> str:
    # \uN takes a signed 16-bit value; astral characters need a surrogate pair
    data = match.group(0).encode("utf-16-le")
    units = struct.unpack(f"<{len(data) // 2}H", data)
    return "".join(f"\\u{u - 65536 if u > 32767 else u}?" for u in units)


def escape_rtf(text: str) -> str:
    """Escape control characters, then encode non-ASCII as ``\\uN?``."""
    escaped = text.replace("\\", "\\\\").replace("{", "\\{").replace("}", "\\}")
    return _NON_ASCII.sub(_unicode_escape, escaped)


def text_to_rtf_body(text: str) -> str:
    """Escape text and map blank lines to paragraphs and newlines to line breaks.

    Escaping runs first so the inserted control words keep their backslashes.
    """
    body = re.sub(r"\n\n+", "\\\\par\\\\par ", escape_rtf(text))
    return body.replace("\n", "\\line ")


class RTFEncoder:
    """Writes RTF documents with a centered title block."""

    SUPPORTED_TARGETS: Set[Format] = {Format.RTF}

    def can_handle(self, target: Format) -> bool:
        return target in self.SUPPORTED_TARGETS

    @log_timing
    def encode(
        self, content: IntermediateContent, original_filename: str, target: Format
    ) -> bytes:
        title = (
            f"\\pard\\qc\\b\\fs32 {DOCUMENT_TITLE}\\b0\\par\n"
            f"\\pard\\qc\\cf2\\fs20\\i Original: {escape_rtf(original_filename)}\\i0\\par\n"
            f"\\pard\\qc\\fs18 Converted by {TOOL_NAME}\\cf1\\par\n"
            "\\par\n"
            "\\pard\\fs24 "
        )
        logger.info("Writing RTF document for %s", original_filename)
        document = RTF_HEADER + title + text_to_rtf_body(content.as_text()) + RTF_FOOTER
        # Everything outside 7-bit ASCII was escaped above
        return document.encode("ascii")
