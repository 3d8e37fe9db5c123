"""DOCX output with python-docx."""

import io
import logging
from typing import Set

from docx import Document  # type: ignore
from docx.document import Document as DocumentObject  # type: ignore
from docx.enum.text import WD_ALIGN_PARAGRAPH  # type: ignore
from docx.shared import Pt, RGBColor  # type: ignore

from ..file_converter import IntermediateContent
from ..formats import Format
from ..logging_utils import log_timing
from ..text_utils import DOCUMENT_TITLE, TOOL_NAME, split_paragraphs, xml_safe

logger = logging.getLogger(__name__)

SUBTLE_GRAY = RGBColor(0x66, 0x66, 0x66)
BODY_SIZE = Pt(12)


def add_header(document: DocumentObject, original_filename: str) -> None:
    """Add the centered title, provenance lines and a spacer paragraph."""
    title = document.add_paragraph()
    title.alignment = WD_ALIGN_PARAGRAPH.CENTER
    run = title.add_run(DOCUMENT_TITLE)
    run.bold = True
    run.font.size = Pt(16)

    subtitle = document.add_paragraph()
    subtitle.alignment = WD_ALIGN_PARAGRAPH.CENTER
    run = subtitle.add_run(f"Original: {xml_safe(original_filename)}")
    run.italic = True
    run.font.size = Pt(10)
    run.font.color.rgb = SUBTLE_GRAY

    credit = document.add_paragraph()
    credit.alignment = WD_ALIGN_PARAGRAPH.CENTER
    run = credit.add_run(f"Converted by {TOOL_NAME}")
    run.font.size = Pt(9)
    run.font.color.rgb = SUBTLE_GRAY

    document.add_paragraph()


def add_text_paragraph(document: DocumentObject, text: str) -> None:
    """Add one paragraph, keeping its lines apart with line breaks."""
    paragraph = document.add_paragraph()
    paragraph.paragraph_format.space_after = Pt(10)
    lines = text.split("\n")
    for index, line in enumerate(lines):
        run = paragraph.add_run(line)
        run.font.size = BODY_SIZE
        if index < len(lines) - 1:
            run.add_break()


def save_document(document: DocumentObject) -> bytes:
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


class DOCXEncoder:
    """Writes a fresh Word document carrying the extracted text."""

    SUPPORTED_TARGETS: Set[Format] = {Format.DOCX}

    def can_handle(self, target: Format) -> bool:
        return target in self.SUPPORTED_TARGETS

    @log_timing
    def encode(
        self, content: IntermediateContent, original_filename: str, target: Format
    ) -> bytes:
        document = Document()
        document.core_properties.author = TOOL_NAME
        document.core_properties.title = DOCUMENT_TITLE
        add_header(document, original_filename)

        paragraphs = split_paragraphs(xml_safe(content.as_text()))
        for text in paragraphs:
            add_text_paragraph(document, text)
        logger.info("Writing DOCX with %d paragraph(s) for %s", len(paragraphs), original_filename)
        return save_document(document)
