"""Flat OpenDocument Text (FODT) output."""

import logging
from typing import Set
from xml.etree import ElementTree as ET

from ..file_converter import IntermediateContent
from ..formats import Format
from ..logging_utils import log_timing
from ..text_utils import DOCUMENT_TITLE, PARAGRAPH_SPLIT, TOOL_NAME, xml_safe

logger = logging.getLogger(__name__)

NAMESPACES = {
    "office": "urn:oasis:names:tc:opendocument:xmlns:office:1.0",
    "text": "urn:oasis:names:tc:opendocument:xmlns:text:1.0",
    "style": "urn:oasis:names:tc:opendocument:xmlns:style:1.0",
    "fo": "urn:oasis:names:tc:opendocument:xmlns:xsl-fo-compatible:1.0",
}

for _prefix, _uri in NAMESPACES.items():
    ET.register_namespace(_prefix, _uri)


def _q(prefix: str, local: str) -> str:
    return f"{{{NAMESPACES[prefix]}}}{local}"


PARAGRAPH_STYLES = {
    "Title": {"font-size": "18pt", "font-weight": "bold"},
    "Subtitle": {"font-size": "12pt", "color": "#666666", "font-style": "italic"},
    "Standard": {"font-size": "12pt"},
}


def _add_styles(root: ET.Element) -> None:
    styles = ET.SubElement(root, _q("office", "styles"))
    for name, properties in PARAGRAPH_STYLES.items():
        style = ET.SubElement(
            styles, _q("style", "style"), {_q("style", "name"): name, _q("style", "family"): "paragraph"}
        )
        ET.SubElement(
            style,
            _q("style", "text-properties"),
            {_q("fo", key): value for key, value in properties.items()},
        )


def add_paragraph(parent: ET.Element, text: str, style: str = "Standard") -> ET.Element:
    """Append a ``<text:p>``, mapping newlines and tabs to their elements."""
    paragraph = ET.SubElement(parent, _q("text", "p"), {_q("text", "style-name"): style})
    last = None
    buffer = []

    def flush() -> None:
        chunk = "".join(buffer)
        buffer.clear()
        if last is None:
            paragraph.text = (paragraph.text or "") + chunk
        else:
            last.tail = (last.tail or "") + chunk

    for char in text:
        if char == "\n":
            flush()
            last = ET.SubElement(paragraph, _q("text", "line-break"))
        elif char == "\t":
            flush()
            last = ET.SubElement(paragraph, _q("text", "tab"))
        else:
            buffer.append(char)
    flush()
    return paragraph


def build_document(text: str, original_filename: str) -> ET.Element:
    """Build the ``office:document`` tree for a flat ODT file."""
    root = ET.Element(
        _q("office", "document"),
        {
            _q("office", "version"): "1.2",
            _q("office", "mimetype"): "application/vnd.oasis.opendocument.text",
        },
    )
    _add_styles(root)
    body = ET.SubElement(ET.SubElement(root, _q("office", "body")), _q("office", "text"))

    add_paragraph(body, DOCUMENT_TITLE, "Title")
    add_paragraph(body, f"Original: {xml_safe(original_filename)}", "Subtitle")
    add_paragraph(body, f"Converted by {TOOL_NAME}", "Subtitle")
    add_paragraph(body, "")
    for paragraph in PARAGRAPH_SPLIT.split(xml_safe(text)):
        add_paragraph(body, paragraph)
    return root


class ODTEncoder:
    """Writes a single-file FODT document rather than a zipped ODT package."""

    SUPPORTED_TARGETS: Set[Format] = {Format.ODT}

    def can_handle(self, target: Format) -> bool:
        return target in self.SUPPORTED_TARGETS

    @log_timing
    def encode(
        self, content: IntermediateContent, original_filename: str, target: Format
    ) -> bytes:
        logger.info("Writing flat ODT document for %s", original_filename)
        root = build_document(content.as_text(), original_filename)
        return ET.tostring(root, encoding="UTF-8", xml_declaration=True)
