"""Text helpers shared by extractors and encoders."""

import re
from typing import List, Optional, Sequence

TOOL_NAME = "Doc2Any"
DOCUMENT_TITLE = "Converted Document"

PARAGRAPH_SPLIT = re.compile(r"\n\n+")

# Characters that XML 1.0 cannot carry (tab, newline and carriage return are fine)
_XML_ILLEGAL = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f\ufffe\uffff]")


def decode_text(
    data: bytes, encodings: Sequence[str] = ("utf-8-sig", "cp1252", "latin1")
) -> str:
    """Decode bytes trying each encoding in turn.

    Args:
        data: Raw file bytes
        encodings: Encodings to try, in order of preference

    Returns:
        Decoded text

    Raises:
        UnicodeDecodeError: If no encoding could decode the data
    """
    last_error: Optional[UnicodeDecodeError] = None
    for encoding in encodings:
        try:
            return data.decode(encoding)
        except UnicodeDecodeError as e:
            last_error = e
            continue
    if last_error is None:
        raise UnicodeDecodeError("utf-8", data, 0, 1, "no encodings to try")
    raise last_error


def split_paragraphs(text: str) -> List[str]:
    """Split on blank lines, dropping whitespace-only paragraphs."""
    return [p for p in PARAGRAPH_SPLIT.split(text) if p.strip()]


def collapse_whitespace(text: str) -> str:
    return " ".join(text.split())


def xml_safe(text: str) -> str:
    """Drop characters that cannot appear in an XML document."""
    return _XML_ILLEGAL.sub("", text)


def empty_content_placeholder(filename: str) -> str:
    return (
        f"[No text content could be extracted from {filename}]\n\n"
        "This may be because:\n"
        "- The file is image-based (scanned document)\n"
        "- The file is encrypted or protected\n"
        "- The file format is not fully supported for text extraction"
    )


def unparsed_content_placeholder(filename: str) -> str:
    return (
        f"[Content from {filename}]\n\n"
        "This file format requires server-side processing for full conversion.\n"
        "Basic text extraction was attempted."
    )


def normalize_newlines(text: str) -> str:
    """Convert CRLF and lone CR line endings to LF."""
    return text.replace("\r\n", "\n").replace("\r", "\n")
