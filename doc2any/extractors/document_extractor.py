"""Word-processing document extraction: DOCX via mammoth, ODT via its XML."""

import io
import logging
import zipfile
from typing import List, Set
from xml.etree import ElementTree as ET

import mammoth  # type: ignore

from ..errors import ExtractionError
from ..file_converter import IntermediateContent, PlainText, SemanticHTML, SourceDescriptor
from ..formats import Format
from ..logging_utils import log_timing
from ..text_utils import normalize_newlines
from .package_parts import open_package, read_xml

logger = logging.getLogger(__name__)

OFFICE_NS = "urn:oasis:names:tc:opendocument:xmlns:office:1.0"
TEXT_NS = "urn:oasis:names:tc:opendocument:xmlns:text:1.0"


def _text_tag(local: str) -> str:
    return f"{{{TEXT_NS}}}{local}"


PARAGRAPH_TAGS = {_text_tag("p"), _text_tag("h")}
LINE_BREAK = _text_tag("line-break")
TAB = _text_tag("tab")
SPACES = _text_tag("s")
SPACE_COUNT = _text_tag("c")


def docx_to_html(data: bytes) -> str:
    """Convert DOCX bytes to an HTML fragment, images inlined as data URIs.

    Raises:
        ExtractionError: If mammoth cannot read the document
    """
    try:
        return mammoth.convert_to_html(io.BytesIO(data)).value
    except Exception as e:
        raise ExtractionError(f"Cannot read DOCX: {e}", error_type="docx_error") from e


def docx_to_text(data: bytes) -> str:
    """Extract DOCX bytes as raw text.

    Raises:
        ExtractionError: If mammoth cannot read the document
    """
    try:
        return mammoth.extract_raw_text(io.BytesIO(data)).value
    except Exception as e:
        raise ExtractionError(f"Cannot read DOCX: {e}", error_type="docx_error") from e


def _inline_text(element: ET.Element) -> str:
    parts = [element.text or ""]
    for child in element:
        if child.tag == LINE_BREAK:
            parts.append("\n")
        elif child.tag == TAB:
            parts.append("\t")
        elif child.tag == SPACES:
            parts.append(" " * int(child.get(SPACE_COUNT, "1")))
        elif child.tag in PARAGRAPH_TAGS:
            parts.append("\n" + _inline_text(child))
        else:
            parts.append(_inline_text(child))
        parts.append(child.tail or "")
    return "".join(parts)


def _collect_paragraphs(element: ET.Element, paragraphs: List[str]) -> None:
    for child in element:
        if child.tag in PARAGRAPH_TAGS:
            paragraphs.append(_inline_text(child))
        else:
            _collect_paragraphs(child, paragraphs)


def odt_text(root: ET.Element) -> str:
    """Flatten an OpenDocument XML tree to text.

    Paragraphs and headings become lines, ``<text:line-break/>`` a newline,
    ``<text:tab/>`` a tab and ``<text:s/>`` its run of spaces. Entities are
    resolved by the XML parser, so no markup is ever reintroduced.
    """
    body = root.find(f"{{{OFFICE_NS}}}body")
    paragraphs: List[str] = []
    _collect_paragraphs(body if body is not None else root, paragraphs)
    return "\n".join(paragraphs).strip()


class DocumentExtractor:
    """Extracts text (or structured HTML) from DOCX, ODT and legacy DOC files."""

    SUPPORTED_EXTENSIONS: Set[Format] = {Format.DOCX, Format.ODT, Format.DOC}

    def can_handle(self, extension: Format) -> bool:
        return extension in self.SUPPORTED_EXTENSIONS

    @log_timing
    def extract(self, source: SourceDescriptor, target: Format) -> IntermediateContent:
        fmt = source.format
        logger.info("Extracting %s document: %s", fmt.value.upper(), source.filename)
        if fmt == Format.DOCX:
            # Only an HTML target benefits from keeping structure
            if target == Format.HTML:
                return SemanticHTML(docx_to_html(source.data))
            return PlainText(docx_to_text(source.data))
        if fmt == Format.ODT:
            return PlainText(self._extract_odt(source))
        return PlainText(self._extract_legacy_doc(source))

    def _extract_odt(self, source: SourceDescriptor) -> str:
        """Read a zipped ODT package or a flat XML OpenDocument."""
        if zipfile.is_zipfile(io.BytesIO(source.data)):
            with open_package(source.data) as package:
                if "content.xml" not in package.namelist():
                    raise ExtractionError(
                        f"{source.filename} has no content.xml", error_type="odt_error"
                    )
                root = read_xml(package, "content.xml")
        else:
            try:
                root = ET.fromstring(source.data)
            except ET.ParseError as e:
                raise ExtractionError(f"Malformed ODT XML: {e}", error_type="odt_error") from e

        return odt_text(root) or "[No text content found in document]"

    def _extract_legacy_doc(self, source: SourceDescriptor) -> str:
        """Legacy binary .doc files are only readable when they are really text."""
        try:
            text = source.data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ExtractionError(
                "Legacy Word binary format cannot be parsed locally",
                error_type="unsupported_binary",
            ) from e
        if "\x00" in text:
            raise ExtractionError(
                "Legacy Word binary format cannot be parsed locally",
                error_type="unsupported_binary",
            )
        return normalize_newlines(text)
