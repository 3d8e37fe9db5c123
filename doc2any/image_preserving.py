"""Conversion routes that keep visual content instead of extracting text.

Four (source, target) pairs are eligible:

1. image source to an image or PDF target: the picture is re-encoded, never
   run through text extraction;
2. PDF to an image target: pages are rendered and stacked into one picture;
3. PDF to DOCX: when the PDF holds images, its HTML rendition is rebuilt as a
   Word document with the images embedded;
4. DOCX to PDF: when the document holds images, its HTML is laid out into a
   PDF with the images placed inline.

Every route is best effort. Any failure, including "no images found", makes
``ImagePreservingSelector.attempt`` return None so the caller falls back to the
standard text pipeline.
"""

import base64
import io
import logging
import re
from typing import Callable, List, Optional, Tuple

import fitz  # type: ignore
from bs4 import BeautifulSoup
from bs4.element import Comment, Doctype, NavigableString, Tag
from docx import Document  # type: ignore
from docx.document import Document as DocumentObject  # type: ignore
from docx.shared import Length, Mm, Pt  # type: ignore
from PIL import Image
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader

from .converter_factory import ConverterFactory
from .encoders.docx_encoder import add_header, save_document
from .encoders.pdf_encoder import (
    BODY_FONT,
    BODY_SIZE,
    BODY_TOP,
    BOLD_FONT,
    LINE_HEIGHT,
    MARGIN,
    PAGE_HEIGHT,
    PAGE_WIDTH,
    PX_TO_MM,
    draw_header,
    flatten_to_rgb,
    new_canvas,
    wrap_text,
)
from .errors import EncodingError, ImagePreservingInapplicable
from .extractors.document_extractor import docx_to_html
from .extractors.pdf_extractor import open_pdf
from .file_converter import ConversionRequest, ConversionResult, PageImageSet
from .formats import IMAGE_FORMATS, IMAGE_OUTPUTS, Format
from .progress_manager import ProgressManager
from .text_utils import collapse_whitespace, xml_safe

logger = logging.getLogger(__name__)

ROUTE_NAME = "image_preserving"
MAX_RENDERED_PAGES = 20
RENDER_SCALE = 2

HEADING_TAG = re.compile(r"^h([1-6])$")
BLOCK_TAGS = {"p", "div", "table", "ul", "ol", "li", "blockquote", "tr"}
SKIPPED_TAGS = {"script", "style", "head", "title"}
DATA_URI = re.compile(r"^data:image/[\w.+-]+;base64,(.*)$", re.DOTALL)

# Bytes of the encoded output plus any user-facing notices
RouteOutput = Tuple[bytes, List[str]]


def decode_data_uri(src: Optional[str]) -> Optional[bytes]:
    """Return the payload of a base64 ``data:image/...`` URI, else None."""
    if not src:
        return None
    match = DATA_URI.match(src.strip())
    if not match:
        return None
    return base64.b64decode(match.group(1))


def clamp_size(width: float, height: float, max_width: float, max_height: float) -> Tuple[float, float]:
    """Shrink a box proportionally so it fits inside the given bounds."""
    if width > max_width:
        height *= max_width / width
        width = max_width
    if height > max_height:
        width *= max_height / height
        height = max_height
    return width, height


def render_pdf_pages(
    data: bytes,
    max_pages: int = MAX_RENDERED_PAGES,
    progress: Optional[ProgressManager] = None,
) -> Tuple[List[Image.Image], int]:
    """Render the first pages of a PDF at twice their nominal size.

    Returns:
        Rendered pages and the total page count of the document
    """
    doc = open_pdf(data)
    try:
        total = doc.page_count
        count = min(total, max_pages)
        images: List[Image.Image] = []
        matrix = fitz.Matrix(RENDER_SCALE, RENDER_SCALE)
        for index in range(count):
            pixmap = doc[index].get_pixmap(matrix=matrix)
            with Image.open(io.BytesIO(pixmap.tobytes("png"))) as page_image:
                page_image.load()
                images.append(page_image.copy())
            if progress is not None:
                progress.emit(
                    ROUTE_NAME,
                    15 + int(70 * (index + 1) / count),
                    f"Rendered page {index + 1} of {count}",
                )
    finally:
        doc.close()
    return images, total


class _DocxHtmlWriter:
    """Rebuilds an HTML tree as paragraphs, styled headings and inline pictures."""

    def __init__(self, document: DocumentObject) -> None:
        self.document = document
        self.paragraph = None
        self.heading_level: Optional[int] = None
        section = document.sections[0]
        self.max_width_mm = Length(section.page_width - section.left_margin - section.right_margin).mm
        self.max_height_mm = Length(section.page_height - section.top_margin - section.bottom_margin).mm
        self.images = 0

    def _current_paragraph(self):
        if self.paragraph is None:
            self.paragraph = self.document.add_paragraph()
        return self.paragraph

    def _end_paragraph(self) -> None:
        self.paragraph = None

    def add_text(self, text: str) -> None:
        run = self._current_paragraph().add_run(xml_safe(text))
        if self.heading_level is not None:
            run.bold = True
            run.font.size = Pt(18 - 2 * self.heading_level)

    def add_image(self, src: Optional[str]) -> None:
        payload = decode_data_uri(src)
        if payload is None:
            logger.debug("Skipping image without inline data")
            return
        with Image.open(io.BytesIO(payload)) as img:
            width_px, height_px = img.size
        width, height = clamp_size(
            width_px * PX_TO_MM, height_px * PX_TO_MM, self.max_width_mm, self.max_height_mm
        )
        self._end_paragraph()
        run = self._current_paragraph().add_run()
        run.add_picture(io.BytesIO(payload), width=Mm(width), height=Mm(height))
        self._end_paragraph()
        self.images += 1

    def walk(self, node) -> None:
        if isinstance(node, (Comment, Doctype)):
            return
        if isinstance(node, NavigableString):
            text = collapse_whitespace(str(node))
            if text:
                self.add_text(text + " ")
            return
        if not isinstance(node, Tag) or node.name in SKIPPED_TAGS:
            return

        if node.name == "img":
            self.add_image(node.get("src"))
            return
        if node.name == "br":
            self._current_paragraph().add_run().add_break()
            return

        heading = HEADING_TAG.match(node.name)
        is_block = heading is not None or node.name in BLOCK_TAGS
        if is_block:
            self._end_paragraph()
        if heading:
            self.heading_level = int(heading.group(1))

        for child in node.children:
            self.walk(child)

        if heading:
            self.heading_level = None
        if is_block:
            self._end_paragraph()


class _PdfHtmlWriter:
    """Lays out an HTML tree onto PDF pages with a running vertical cursor."""

    def __init__(self, pdf) -> None:
        self.pdf = pdf
        self.y = BODY_TOP
        self.font = BODY_FONT
        self.size: float = BODY_SIZE
        self.max_width = PAGE_WIDTH - 2 * MARGIN
        self.max_height = PAGE_HEIGHT - 2 * MARGIN
        self.pages = 1
        self.images = 0

    def ensure_room(self, needed: float) -> None:
        if self.y + needed > PAGE_HEIGHT - MARGIN:
            self.pdf.showPage()
            self.pages += 1
            self.y = MARGIN

    def add_text(self, text: str) -> None:
        for line in wrap_text(text, self.font, self.size):
            self.ensure_room(LINE_HEIGHT)
            self.pdf.setFont(self.font, self.size)
            self.pdf.drawString(MARGIN, PAGE_HEIGHT - self.y, line)
            self.y += LINE_HEIGHT

    def add_image(self, src: Optional[str]) -> None:
        payload = decode_data_uri(src)
        if payload is None:
            logger.debug("Skipping image without inline data")
            return
        with Image.open(io.BytesIO(payload)) as img:
            img.load()
            picture = flatten_to_rgb(img)
        width, height = clamp_size(
            picture.width * PX_TO_MM * mm,
            picture.height * PX_TO_MM * mm,
            self.max_width,
            self.max_height,
        )
        self.ensure_room(height)
        self.pdf.drawImage(ImageReader(picture), MARGIN, PAGE_HEIGHT - self.y - height, width, height)
        self.y += height + 5 * mm
        self.images += 1

    def walk(self, node) -> None:
        if isinstance(node, (Comment, Doctype)):
            return
        if isinstance(node, NavigableString):
            text = str(node).strip()
            if text:
                self.add_text(text)
            return
        if not isinstance(node, Tag) or node.name in SKIPPED_TAGS:
            return

        if node.name == "img":
            self.add_image(node.get("src"))
            return

        heading = HEADING_TAG.match(node.name)
        if heading:
            self.size = 18 - 2 * int(heading.group(1))
            self.font = BOLD_FONT
            self.y += 4 * mm

        for child in node.children:
            self.walk(child)

        if heading:
            self.size = BODY_SIZE
            self.font = BODY_FONT
            self.y += 2 * mm
        if heading or node.name in BLOCK_TAGS:
            self.y += 3 * mm


class ImagePreservingSelector:
    """Chooses and runs a visual-preserving route for eligible conversions."""

    def __init__(self, factory: Optional[ConverterFactory] = None) -> None:
        self.factory = factory or ConverterFactory()

    def route_for(
        self, request: ConversionRequest
    ) -> Optional[Callable[[ConversionRequest, Optional[ProgressManager]], RouteOutput]]:
        """Get the route for a request, or None when the pair is not eligible."""
        source = request.source.format
        target = request.target
        if source in IMAGE_FORMATS and (target in IMAGE_OUTPUTS or target == Format.PDF):
            return self._image_to_image
        if source == Format.PDF and target in IMAGE_OUTPUTS:
            return self._pdf_to_image
        if source == Format.PDF and target == Format.DOCX:
            return self._pdf_to_docx
        if source == Format.DOCX and target == Format.PDF:
            return self._docx_to_pdf
        return None

    def attempt(
        self, request: ConversionRequest, progress: Optional[ProgressManager] = None
    ) -> Optional[ConversionResult]:
        """Run the visual route for a request.

        Args:
            request: Validated conversion request
            progress: Optional progress sink for route events and notices

        Returns:
            The converted result, or None when the route does not apply or
            failed and the standard pipeline should run instead
        """
        route = self.route_for(request)
        if route is None:
            return None

        filename = request.source.filename
        try:
            data, notices = route(request, progress)
        except ImagePreservingInapplicable as e:
            logger.info("Image-preserving route skipped for %s: %s", filename, e.message)
            return None
        except Exception as e:
            logger.warning(
                "Image-preserving route failed for %s, falling back to text: %s", filename, e
            )
            return None

        if progress is not None:
            for notice in notices:
                progress.notify(notice)
        logger.info("Converted %s to %s via image-preserving route", filename, request.target)
        return ConversionResult.build(
            data, request.target, filename, route=ROUTE_NAME, notices=notices
        )

    def _encode_images(
        self, images: List[Image.Image], request: ConversionRequest
    ) -> bytes:
        encoder = self.factory.get_encoder(request.target)
        if encoder is None:
            raise EncodingError(f"No encoder for {request.target}")
        return encoder.encode(PageImageSet(images), request.source.filename, request.target)

    def _image_to_image(
        self, request: ConversionRequest, progress: Optional[ProgressManager]
    ) -> RouteOutput:
        extractor = self.factory.get_extractor(request.source.format)
        if extractor is None:
            raise ImagePreservingInapplicable(f"No decoder for {request.source.extension}")
        if progress is not None:
            progress.emit(ROUTE_NAME, 40, "Converting image...")
        content = extractor.extract(request.source, request.target)
        if not isinstance(content, PageImageSet):
            raise ImagePreservingInapplicable("Source did not decode to an image")
        return self._encode_images(content.images, request), []

    def _pdf_to_image(
        self, request: ConversionRequest, progress: Optional[ProgressManager]
    ) -> RouteOutput:
        if progress is not None:
            progress.emit(ROUTE_NAME, 15, "Rendering PDF pages...")
        # An icon only ever shows the first page
        max_pages = 1 if request.target == Format.ICO else MAX_RENDERED_PAGES
        images, total = render_pdf_pages(request.source.data, max_pages, progress)
        if not images:
            raise ImagePreservingInapplicable("PDF has no pages")

        notices = []
        if request.target != Format.ICO and total > len(images):
            notices.append(f"Converted first {len(images)} of {total} pages")
        return self._encode_images(images, request), notices

    def _pdf_to_docx(
        self, request: ConversionRequest, progress: Optional[ProgressManager]
    ) -> RouteOutput:
        doc = open_pdf(request.source.data)
        try:
            html = "".join(page.get_text("html") for page in doc)
        finally:
            doc.close()
        if "<img" not in html:
            raise ImagePreservingInapplicable("no images found")

        if progress is not None:
            progress.emit(ROUTE_NAME, 40, "Converting PDF with images...")
        document = Document()
        add_header(document, request.source.filename)
        writer = _DocxHtmlWriter(document)
        for child in BeautifulSoup(html, "html.parser").children:
            writer.walk(child)
        logger.debug("Embedded %d image(s) into DOCX", writer.images)
        return save_document(document), []

    def _docx_to_pdf(
        self, request: ConversionRequest, progress: Optional[ProgressManager]
    ) -> RouteOutput:
        html = docx_to_html(request.source.data)
        if "<img" not in html:
            raise ImagePreservingInapplicable("no images found")

        if progress is not None:
            progress.emit(ROUTE_NAME, 40, "Converting with images...")
        buffer = io.BytesIO()
        pdf = new_canvas(buffer)
        draw_header(pdf, request.source.filename)
        writer = _PdfHtmlWriter(pdf)
        for child in BeautifulSoup(html, "html.parser").children:
            writer.walk(child)
        pdf.showPage()
        pdf.save()
        logger.debug("Placed %d image(s) on %d PDF page(s)", writer.images, writer.pages)
        return buffer.getvalue(), []
