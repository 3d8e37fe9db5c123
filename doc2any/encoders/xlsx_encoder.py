"""XLSX output with openpyxl."""

import io
import logging
from typing import Set

from openpyxl import Workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.styles import Alignment, Font

from ..file_converter import IntermediateContent
from ..formats import Format
from ..logging_utils import log_timing
from ..text_utils import DOCUMENT_TITLE, TOOL_NAME

logger = logging.getLogger(__name__)

SHEET_TITLE = "Converted Content"
FIRST_DATA_ROW = 4


def clean_cell(value: str) -> str:
    """Remove characters openpyxl refuses to store."""
    return ILLEGAL_CHARACTERS_RE.sub("", value)


class XLSXEncoder:
    """Writes one worksheet: a title row, a metadata row, then the text.

    Each non-blank line becomes a row; tab-separated lines are spread across
    columns so tabular sources keep their cells.
    """

    SUPPORTED_TARGETS: Set[Format] = {Format.XLSX}

    def can_handle(self, target: Format) -> bool:
        return target in self.SUPPORTED_TARGETS

    @log_timing
    def encode(
        self, content: IntermediateContent, original_filename: str, target: Format
    ) -> bytes:
        workbook = Workbook()
        workbook.properties.creator = TOOL_NAME
        workbook.properties.title = DOCUMENT_TITLE
        sheet = workbook.active
        sheet.title = SHEET_TITLE

        sheet.merge_cells("A1:D1")
        title = sheet["A1"]
        title.value = DOCUMENT_TITLE
        title.font = Font(bold=True, size=16)
        title.alignment = Alignment(horizontal="center")

        sheet.merge_cells("A2:D2")
        meta = sheet["A2"]
        meta.value = clean_cell(f"Original: {original_filename} | Converted by {TOOL_NAME}")
        meta.font = Font(italic=True, color="FF666666", size=10)
        meta.alignment = Alignment(horizontal="center")

        row = FIRST_DATA_ROW
        for line in content.as_text().split("\n"):
            if not line.strip():
                continue
            for column, value in enumerate(line.split("\t"), start=1):
                cell = sheet.cell(row=row, column=column, value=clean_cell(value))
                # Text that looks like a formula stays text
                if isinstance(cell.value, str) and cell.value.startswith("="):
                    cell.data_type = "s"
            row += 1

        sheet.column_dimensions["A"].width = 100
        logger.info(
            "Writing XLSX with %d row(s) for %s", row - FIRST_DATA_ROW, original_filename
        )
        buffer = io.BytesIO()
        workbook.save(buffer)
        return buffer.getvalue()
