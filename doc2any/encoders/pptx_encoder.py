"""PPTX output with python-pptx."""

import io
import logging
from typing import List, Set

from pptx import Presentation  # type: ignore
from pptx.dml.color import RGBColor  # type: ignore
from pptx.enum.text import MSO_ANCHOR, PP_ALIGN  # type: ignore
from pptx.util import Inches, Pt  # type: ignore

from ..file_converter import IntermediateContent
from ..formats import Format
from ..logging_utils import log_timing
from ..text_utils import DOCUMENT_TITLE, TOOL_NAME, split_paragraphs, xml_safe

logger = logging.getLogger(__name__)

SLIDE_CHAR_BUDGET = 1500
BLANK_LAYOUT = 6

SLIDE_WIDTH = Inches(10)
SLIDE_HEIGHT = Inches(5.625)
CONTENT_LEFT = Inches(0.5)
CONTENT_WIDTH = Inches(9)

DARK = RGBColor(0x36, 0x36, 0x36)
GRAY = RGBColor(0x66, 0x66, 0x66)
LIGHT = RGBColor(0x99, 0x99, 0x99)


def chunk_paragraphs(paragraphs: List[str], budget: int = SLIDE_CHAR_BUDGET) -> List[List[str]]:
    """Group whole paragraphs into slides of roughly ``budget`` characters.

    A paragraph never spans two slides; a paragraph longer than the budget
    gets a slide of its own.

    Args:
        paragraphs: Non-blank paragraphs in order
        budget: Character budget per slide, counting a blank-line separator
            after each paragraph

    Returns:
        Paragraph groups, one per content slide
    """
    chunks: List[List[str]] = []
    current: List[str] = []
    size = 0
    for paragraph in paragraphs:
        if current and size + len(paragraph) > budget:
            chunks.append(current)
            current, size = [], 0
        current.append(paragraph)
        size += len(paragraph) + 2
    if current:
        chunks.append(current)
    return chunks


def _add_text(slide, top, height, text, *, size, color, align=PP_ALIGN.LEFT, bold=False, italic=False):
    box = slide.shapes.add_textbox(CONTENT_LEFT, top, CONTENT_WIDTH, height)
    frame = box.text_frame
    frame.word_wrap = True
    paragraph = frame.paragraphs[0]
    paragraph.alignment = align
    run = paragraph.add_run()
    run.text = text
    run.font.size = Pt(size)
    run.font.bold = bold
    run.font.italic = italic
    run.font.color.rgb = color
    return box


def _add_title_slide(presentation, original_filename: str) -> None:
    slide = presentation.slides.add_slide(presentation.slide_layouts[BLANK_LAYOUT])
    _add_text(
        slide, Inches(2), Inches(1), DOCUMENT_TITLE,
        size=36, color=DARK, align=PP_ALIGN.CENTER, bold=True,
    )
    _add_text(
        slide, Inches(3.2), Inches(0.5), f"Original: {original_filename}",
        size=14, color=GRAY, align=PP_ALIGN.CENTER, italic=True,
    )
    _add_text(
        slide, Inches(3.7), Inches(0.5), f"Converted by {TOOL_NAME}",
        size=12, color=LIGHT, align=PP_ALIGN.CENTER,
    )


def _add_content_slide(presentation, paragraphs: List[str], number: int) -> None:
    slide = presentation.slides.add_slide(presentation.slide_layouts[BLANK_LAYOUT])
    box = slide.shapes.add_textbox(CONTENT_LEFT, Inches(0.5), CONTENT_WIDTH, Inches(4.4))
    frame = box.text_frame
    frame.word_wrap = True
    frame.vertical_anchor = MSO_ANCHOR.TOP
    for index, text in enumerate(paragraphs):
        paragraph = frame.paragraphs[0] if index == 0 else frame.add_paragraph()
        # Newlines inside a paragraph become line breaks
        paragraph.text = text
        paragraph.space_after = Pt(10)
        for run in paragraph.runs:
            run.font.size = Pt(14)
            run.font.color.rgb = DARK

    _add_text(
        slide, Inches(5), Inches(0.3), f"Page {number}",
        size=10, color=LIGHT, align=PP_ALIGN.RIGHT,
    )


class PPTXEncoder:
    """Writes a title slide followed by content slides."""

    SUPPORTED_TARGETS: Set[Format] = {Format.PPTX}

    def can_handle(self, target: Format) -> bool:
        return target in self.SUPPORTED_TARGETS

    @log_timing
    def encode(
        self, content: IntermediateContent, original_filename: str, target: Format
    ) -> bytes:
        presentation = Presentation()
        presentation.slide_width = SLIDE_WIDTH
        presentation.slide_height = SLIDE_HEIGHT
        properties = presentation.core_properties
        properties.author = TOOL_NAME
        properties.title = DOCUMENT_TITLE
        properties.subject = f"Converted from {original_filename}"

        _add_title_slide(presentation, xml_safe(original_filename))
        chunks = chunk_paragraphs(split_paragraphs(xml_safe(content.as_text())))
        for number, paragraphs in enumerate(chunks, start=1):
            _add_content_slide(presentation, paragraphs, number)

        logger.info(
            "Writing PPTX with %d content slide(s) for %s", len(chunks), original_filename
        )
        buffer = io.BytesIO()
        presentation.save(buffer)
        return buffer.getvalue()
