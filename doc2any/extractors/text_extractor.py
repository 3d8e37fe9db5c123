"""Text, HTML and RTF extraction."""

import logging
from typing import Set

from bs4 import BeautifulSoup

from ..errors import ExtractionError
from ..file_converter import IntermediateContent, PlainText, SourceDescriptor
from ..formats import Format
from ..logging_utils import log_timing
from ..text_utils import collapse_whitespace, decode_text, normalize_newlines

logger = logging.getLogger(__name__)


def strip_html(content: str) -> str:
    """Strip tags from HTML and collapse whitespace to single spaces."""
    soup = BeautifulSoup(content, "html.parser")
    for element in soup(["script", "style"]):
        element.decompose()
    return collapse_whitespace(soup.get_text(separator=" "))


class TextExtractor:
    """Reads text-based sources as raw text."""

    SUPPORTED_EXTENSIONS: Set[Format] = {Format.TXT, Format.HTML, Format.RTF}

    def can_handle(self, extension: Format) -> bool:
        return extension in self.SUPPORTED_EXTENSIONS

    @log_timing
    def extract(self, source: SourceDescriptor, target: Format) -> IntermediateContent:
        """Read the file as plain text, stripping any HTML markup."""
        logger.info("Reading text file: %s", source.filename)
        try:
            content = normalize_newlines(decode_text(source.data))
        except UnicodeDecodeError as e:
            raise ExtractionError(
                f"Failed to decode {source.filename}: {e}", error_type="text_error"
            ) from e

        if source.format == Format.HTML:
            return PlainText(strip_html(content))
        return PlainText(content)
