"""Spreadsheet extraction for XLSX packages, legacy XLS workbooks and CSV."""

import io
import logging
from typing import Dict, List, Optional, Set
from xml.etree import ElementTree as ET

import pandas as pd

from ..errors import CodecUnavailableError, ExtractionError
from ..file_converter import IntermediateContent, PlainText, SourceDescriptor
from ..formats import Format
from ..logging_utils import log_timing
from ..text_utils import decode_text
from .package_parts import SHEET_PART, numbered_parts, open_package, read_xml

logger = logging.getLogger(__name__)

SHEET_NS = "http://schemas.openxmlformats.org/spreadsheetml/2006/main"
SHARED_STRINGS_PART = "xl/sharedStrings.xml"

NO_DATA = "[No data found in spreadsheet]"


def _sheet_tag(local: str) -> str:
    return f"{{{SHEET_NS}}}{local}"


def parse_csv(text: str) -> List[List[str]]:
    """Parse CSV text into rows of trimmed fields.

    Quoting follows RFC 4180 within a line: a comma inside quotes is data and
    a doubled quote inside quotes is a literal quote. Blank lines are skipped.
    Quoted fields cannot span lines.

    Args:
        text: CSV file contents

    Returns:
        One list of fields per non-blank line
    """
    rows: List[List[str]] = []
    for line in text.splitlines():
        if not line.strip():
            continue
        row: List[str] = []
        field: List[str] = []
        in_quotes = False
        i = 0
        while i < len(line):
            char = line[i]
            if char == '"':
                if in_quotes and i + 1 < len(line) and line[i + 1] == '"':
                    field.append('"')
                    i += 1
                else:
                    in_quotes = not in_quotes
            elif char == "," and not in_quotes:
                row.append("".join(field).strip())
                field = []
            else:
                field.append(char)
            i += 1
        row.append("".join(field).strip())
        rows.append(row)
    return rows


def csv_to_text(rows: List[List[str]]) -> str:
    """Join fields with tabs and rows with newlines."""
    return "\n".join("\t".join(row) for row in rows)


def _shared_strings(package) -> List[str]:
    if SHARED_STRINGS_PART not in package.namelist():
        return []
    root = read_xml(package, SHARED_STRINGS_PART)
    # Rich-text items split one string across several <t> runs
    return [
        "".join(t.text or "" for t in item.iter(_sheet_tag("t")))
        for item in root.iter(_sheet_tag("si"))
    ]


def _cell_value(cell: ET.Element, shared: List[str]) -> Optional[str]:
    cell_type = cell.get("t")
    if cell_type == "inlineStr":
        inline = cell.find(_sheet_tag("is"))
        if inline is None:
            return None
        return "".join(t.text or "" for t in inline.iter(_sheet_tag("t")))

    value = cell.find(_sheet_tag("v"))
    if value is None or value.text is None:
        return None
    if cell_type == "s":
        try:
            return shared[int(value.text)]
        except (ValueError, IndexError):
            logger.debug("Dangling shared string reference: %s", value.text)
            return None
    return value.text


def _sheet_rows(root: ET.Element, shared: List[str]) -> List[str]:
    lines = []
    for row in root.iter(_sheet_tag("row")):
        values = []
        for cell in row.findall(_sheet_tag("c")):
            value = _cell_value(cell, shared)
            if value is not None and value != "":
                values.append(value)
        if values:
            lines.append("\t".join(values))
    return lines


class SpreadsheetExtractor:
    """Extracts cell text from spreadsheets, one tab-separated line per row."""

    SUPPORTED_EXTENSIONS: Set[Format] = {Format.XLSX, Format.XLS, Format.CSV}

    def can_handle(self, extension: Format) -> bool:
        return extension in self.SUPPORTED_EXTENSIONS

    @log_timing
    def extract(self, source: SourceDescriptor, target: Format) -> IntermediateContent:
        logger.info("Reading spreadsheet file: %s", source.filename)
        fmt = source.format
        if fmt == Format.CSV:
            return PlainText(self._extract_csv(source))
        if fmt == Format.XLS:
            return PlainText(self._extract_xls(source))
        return PlainText(self._extract_xlsx(source))

    def _extract_csv(self, source: SourceDescriptor) -> str:
        try:
            text = decode_text(source.data)
        except UnicodeDecodeError as e:
            raise ExtractionError(
                f"Failed to decode {source.filename}: {e}", error_type="spreadsheet_error"
            ) from e
        return csv_to_text(parse_csv(text))

    def _extract_xlsx(self, source: SourceDescriptor) -> str:
        sections: List[str] = []
        with open_package(source.data) as package:
            shared = _shared_strings(package)
            sheets = numbered_parts(package.namelist(), SHEET_PART)
            logger.debug(
                "Found %d sheets and %d shared strings in %s",
                len(sheets),
                len(shared),
                source.filename,
            )
            for position, (_, name) in enumerate(sheets, start=1):
                lines = _sheet_rows(read_xml(package, name), shared)
                sections.append("\n".join([f"--- Sheet {position} ---"] + lines))

        return "\n\n".join(sections).strip() or NO_DATA

    def _extract_xls(self, source: SourceDescriptor) -> str:
        """Read a legacy binary workbook through pandas and xlrd."""
        try:
            sheets: Dict[str, "pd.DataFrame"] = pd.read_excel(
                io.BytesIO(source.data), engine="xlrd", sheet_name=None, header=None
            )
        except ImportError as e:
            raise CodecUnavailableError(
                f"Reading .xls files requires the xlrd package: {e}"
            ) from e
        except Exception as e:
            raise ExtractionError(
                f"Failed to read spreadsheet {source.filename}: {e}",
                error_type="spreadsheet_error",
            ) from e

        sections: List[str] = []
        for position, frame in enumerate(sheets.values(), start=1):
            lines = [f"--- Sheet {position} ---"]
            for row in frame.itertuples(index=False):
                values = [str(v) for v in row if not pd.isna(v) and str(v) != ""]
                if values:
                    lines.append("\t".join(values))
            sections.append("\n".join(lines))

        return "\n\n".join(sections).strip() or NO_DATA
