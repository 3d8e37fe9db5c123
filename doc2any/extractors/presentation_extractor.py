"""Slide text extraction from PPTX packages."""

import logging
from typing import List, Set

from ..file_converter import IntermediateContent, PlainText, SourceDescriptor
from ..formats import Format
from ..logging_utils import log_timing
from .package_parts import SLIDE_PART, numbered_parts, open_package, read_xml

logger = logging.getLogger(__name__)

DRAWING_NS = "http://schemas.openxmlformats.org/drawingml/2006/main"
TEXT_RUN = f"{{{DRAWING_NS}}}t"

NO_SLIDES = "[No text content found in presentation]"


class PresentationExtractor:
    """Extracts slide text from PowerPoint packages.

    Legacy ``.ppt`` files are routed here too; anything that is not a ZIP
    package fails extraction and the pipeline substitutes placeholder text.
    """

    SUPPORTED_EXTENSIONS: Set[Format] = {Format.PPTX, Format.PPT}

    def can_handle(self, extension: Format) -> bool:
        return extension in self.SUPPORTED_EXTENSIONS

    @log_timing
    def extract(self, source: SourceDescriptor, target: Format) -> IntermediateContent:
        logger.info("Extracting slides from: %s", source.filename)
        sections: List[str] = []
        with open_package(source.data) as package:
            slides = numbered_parts(package.namelist(), SLIDE_PART)
            logger.debug("Found %d slide parts in %s", len(slides), source.filename)
            for position, (_, name) in enumerate(slides, start=1):
                root = read_xml(package, name)
                runs = [node.text for node in root.iter(TEXT_RUN) if node.text and node.text.strip()]
                # Slides without text are skipped but still count for numbering
                if runs:
                    sections.append(f"--- Slide {position} ---\n{' '.join(runs)}")

        if not sections:
            return PlainText(NO_SLIDES)
        return PlainText("\n\n".join(sections))
