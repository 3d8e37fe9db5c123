"""PDF output with reportlab: paginated text pages or one page per image."""

import io
import logging
from typing import List, Set, Tuple

from PIL import Image
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader, simpleSplit
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from ..errors import EncodingError
from ..file_converter import IntermediateContent, PageImageSet
from ..formats import Format
from ..logging_utils import log_timing
from ..text_utils import DOCUMENT_TITLE, TOOL_NAME, split_paragraphs

logger = logging.getLogger(__name__)

PAGE_WIDTH, PAGE_HEIGHT = A4
MARGIN = 20 * mm
LINE_HEIGHT = 6 * mm
BODY_TOP = 50 * mm
BODY_FONT = "Helvetica"
BOLD_FONT = "Helvetica-Bold"
BODY_SIZE = 11
USABLE_WIDTH = PAGE_WIDTH - 2 * MARGIN
# Character set of the built-in Helvetica fonts
FONT_ENCODING = "cp1252"

IMAGE_MARGIN = 10 * mm
# Pixels to millimetres at 96 DPI
PX_TO_MM = 0.264583

# A laid-out line: distance from the top of the page, then the text
PlacedLine = Tuple[float, str]


def new_canvas(buffer: io.BytesIO, pagesize: Tuple[float, float] = A4) -> canvas.Canvas:
    """Create a canvas whose output is byte-stable for identical input."""
    pdf = canvas.Canvas(buffer, pagesize=pagesize, invariant=1)
    pdf.setAuthor(TOOL_NAME)
    pdf.setCreator(TOOL_NAME)
    pdf.setTitle(DOCUMENT_TITLE)
    return pdf


def draw_header(pdf: canvas.Canvas, original_filename: str) -> None:
    """Draw the title block and rule at the top of the first page."""
    center = PAGE_WIDTH / 2
    pdf.setFont(BOLD_FONT, 16)
    pdf.drawCentredString(center, PAGE_HEIGHT - 20 * mm, DOCUMENT_TITLE)

    pdf.setFont(BODY_FONT, 10)
    pdf.setFillGray(0.5)
    pdf.drawCentredString(center, PAGE_HEIGHT - 28 * mm, f"Original: {original_filename}")
    pdf.drawCentredString(center, PAGE_HEIGHT - 34 * mm, f"Converted by {TOOL_NAME}")

    pdf.setStrokeGray(0.78)
    pdf.line(MARGIN, PAGE_HEIGHT - 40 * mm, PAGE_WIDTH - MARGIN, PAGE_HEIGHT - 40 * mm)
    pdf.setFillGray(0)


def break_long_line(line: str, font: str, size: float, max_width: float) -> List[str]:
    """Split a line with no usable spaces into chunks that fit ``max_width``."""
    chunks: List[str] = []
    current = ""
    for char in line:
        if current and stringWidth(current + char, font, size) > max_width:
            chunks.append(current)
            current = ""
        current += char
    if current:
        chunks.append(current)
    return chunks


def wrap_text(text: str, font: str = BODY_FONT, size: float = BODY_SIZE) -> List[str]:
    """Wrap text to the usable page width.

    Words wider than a whole line are broken between characters.
    """
    lines: List[str] = []
    for line in simpleSplit(text, font, size, USABLE_WIDTH):
        if stringWidth(line, font, size) > USABLE_WIDTH:
            lines.extend(break_long_line(line, font, size, USABLE_WIDTH))
        else:
            lines.append(line)
    return lines


def warn_unencodable(text: str, original_filename: str) -> None:
    """Log a warning when the built-in fonts cannot show some characters."""
    missing = sorted({char for char in text if not _encodable(char)})
    if missing:
        logger.warning(
            "%d character(s) in %s cannot be shown with %s and will be lost: %s",
            len(missing),
            original_filename,
            BODY_FONT,
            "".join(missing[:20]),
        )


def _encodable(char: str) -> bool:
    try:
        char.encode(FONT_ENCODING)
    except UnicodeEncodeError:
        return False
    return True


def layout_pages(text: str, page_height: float = PAGE_HEIGHT) -> List[List[PlacedLine]]:
    """Paginate text into lines positioned from the top of each page.

    Paragraphs are separated by blank lines and wrapped to the page width.
    A new page starts when the cursor has passed the bottom margin; each
    paragraph is followed by half a line of extra space.

    Args:
        text: Text to lay out
        page_height: Page height in points

    Returns:
        One list of placed lines per page; the first page starts below the header
    """
    pages: List[List[PlacedLine]] = [[]]
    y = BODY_TOP
    for paragraph in split_paragraphs(text):
        for line in wrap_text(paragraph.strip()):
            if y > page_height - MARGIN:
                pages.append([])
                y = MARGIN
            pages[-1].append((y, line))
            y += LINE_HEIGHT
        y += LINE_HEIGHT / 2
    return pages


def fit_image(
    width_px: int, height_px: int, page_size: Tuple[float, float], margin: float = IMAGE_MARGIN
) -> Tuple[float, float, float, float]:
    """Size and center an image on a page.

    Pixel sizes are converted at 96 DPI, then scaled down (never up) to fit
    inside the margins.

    Returns:
        ``(x, y, width, height)`` in points, ``y`` measured from the page bottom
    """
    page_width, page_height = page_size
    max_width = page_width - 2 * margin
    max_height = page_height - 2 * margin

    width = width_px * PX_TO_MM * mm
    height = height_px * PX_TO_MM * mm
    if width > max_width:
        height *= max_width / width
        width = max_width
    if height > max_height:
        width *= max_height / height
        height = max_height

    return (page_width - width) / 2, (page_height - height) / 2, width, height


def flatten_to_rgb(img: Image.Image) -> Image.Image:
    """Composite any transparency onto white and return an RGB image."""
    if img.mode in ("RGBA", "LA") or (img.mode == "P" and "transparency" in img.info):
        rgba = img.convert("RGBA")
        background = Image.new("RGB", rgba.size, (255, 255, 255))
        background.paste(rgba, mask=rgba.split()[-1])
        return background
    if img.mode != "RGB":
        return img.convert("RGB")
    return img


def render_text_pdf(text: str, original_filename: str) -> bytes:
    """Render flowed text into a paginated A4 PDF."""
    buffer = io.BytesIO()
    warn_unencodable(text, original_filename)
    pdf = new_canvas(buffer)
    draw_header(pdf, original_filename)

    pages = layout_pages(text)
    for index, lines in enumerate(pages):
        if index:
            pdf.showPage()
        pdf.setFont(BODY_FONT, BODY_SIZE)
        for y, line in lines:
            pdf.drawString(MARGIN, PAGE_HEIGHT - y, line)
    pdf.showPage()
    pdf.save()
    logger.debug("Rendered %d PDF page(s) for %s", len(pages), original_filename)
    return buffer.getvalue()


def render_image_pdf(images: List[Image.Image]) -> bytes:
    """Place each image on its own page, oriented to match the image."""
    buffer = io.BytesIO()
    pdf = new_canvas(buffer)
    for img in images:
        page_size = landscape(A4) if img.width > img.height else A4
        pdf.setPageSize(page_size)
        x, y, width, height = fit_image(img.width, img.height, page_size)
        pdf.drawImage(ImageReader(flatten_to_rgb(img)), x, y, width, height)
        pdf.showPage()
    pdf.save()
    return buffer.getvalue()


class PDFEncoder:
    """Writes PDF files from text or page images."""

    SUPPORTED_TARGETS: Set[Format] = {Format.PDF}

    def can_handle(self, target: Format) -> bool:
        return target in self.SUPPORTED_TARGETS

    @log_timing
    def encode(
        self, content: IntermediateContent, original_filename: str, target: Format
    ) -> bytes:
        if isinstance(content, PageImageSet):
            if not content.images:
                raise EncodingError("No images to place in PDF")
            logger.info("Writing %d image page(s) to PDF", len(content.images))
            return render_image_pdf(content.images)
        logger.info("Writing text PDF for %s", original_filename)
        return render_text_pdf(content.as_text(), original_filename)
