"""Helpers for ZIP-packaged XML documents (PPTX, XLSX, ODT)."""

import io
import logging
import re
import zipfile
from typing import Iterable, List, Pattern, Tuple
from xml.etree import ElementTree as ET

from ..errors import ExtractionError

logger = logging.getLogger(__name__)

SLIDE_PART = re.compile(r"^ppt/slides/slide(\d+)\.xml$")
SHEET_PART = re.compile(r"^xl/worksheets/sheet(\d+)\.xml$")


def open_package(data: bytes) -> zipfile.ZipFile:
    """Open raw bytes as a ZIP archive.

    Raises:
        ExtractionError: If the bytes are not a ZIP archive
    """
    try:
        return zipfile.ZipFile(io.BytesIO(data))
    except zipfile.BadZipFile as e:
        raise ExtractionError(f"Not a valid package archive: {e}", error_type="bad_archive") from e


def numbered_parts(names: Iterable[str], pattern: Pattern[str]) -> List[Tuple[int, str]]:
    """Select archive members matching ``pattern`` and order them by index.

    The first group of ``pattern`` must capture the part number, so
    ``slide10.xml`` sorts after ``slide2.xml``.
    """
    parts = []
    for name in names:
        match = pattern.match(name)
        if match:
            parts.append((int(match.group(1)), name))
    parts.sort()
    return parts


def read_xml(package: zipfile.ZipFile, name: str) -> ET.Element:
    """Parse one XML member of a package.

    Raises:
        ExtractionError: If the member is not well-formed XML
    """
    try:
        return ET.fromstring(package.read(name))
    except ET.ParseError as e:
        raise ExtractionError(f"Malformed XML in {name}: {e}", error_type="bad_xml") from e
