"""PDF text extraction using PyMuPDF."""

import logging
from typing import List, Set

import fitz  # type: ignore

from ..errors import ExtractionEmpty, ExtractionError
from ..file_converter import IntermediateContent, PlainText, SourceDescriptor
from ..formats import Format
from ..logging_utils import log_timing

logger = logging.getLogger(__name__)


def open_pdf(data: bytes) -> "fitz.Document":
    """Open PDF bytes with PyMuPDF.

    Raises:
        ExtractionError: If the bytes are not a readable PDF
    """
    try:
        return fitz.open(stream=data, filetype="pdf")
    except Exception as e:
        raise ExtractionError(f"Cannot open PDF: {e}", error_type="pdf_error") from e


class PDFExtractor:
    """Extracts page text from PDF files."""

    SUPPORTED_EXTENSIONS: Set[Format] = {Format.PDF}

    def can_handle(self, extension: Format) -> bool:
        return extension in self.SUPPORTED_EXTENSIONS

    @log_timing
    def extract(self, source: SourceDescriptor, target: Format) -> IntermediateContent:
        """Concatenate the text of every page, pages separated by a blank line."""
        logger.info("Extracting text from PDF: %s", source.filename)
        doc = open_pdf(source.data)
        try:
            pages: List[str] = []
            for page in doc:
                pages.append(page.get_text().strip())  # type: ignore
            page_count = doc.page_count
        finally:
            doc.close()

        text = "\n\n".join(p for p in pages if p)
        if not text:
            raise ExtractionEmpty(f"No text content found in {page_count} PDF page(s)")
        return PlainText(text)
