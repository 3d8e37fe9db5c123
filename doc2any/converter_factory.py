"""Factory for looking up extractors and encoders."""

import logging
from typing import List, Optional, Union, cast

from .encoders.docx_encoder import DOCXEncoder
from .encoders.html_encoder import HTMLEncoder
from .encoders.image_encoder import ICOEncoder, ImageEncoder
from .encoders.odt_encoder import ODTEncoder
from .encoders.pdf_encoder import PDFEncoder
from .encoders.pptx_encoder import PPTXEncoder
from .encoders.rtf_encoder import RTFEncoder
from .encoders.text_encoder import TextEncoder
from .encoders.xlsx_encoder import XLSXEncoder
from .extractors.document_extractor import DocumentExtractor
from .extractors.image_extractor import ImageExtractor
from .extractors.pdf_extractor import PDFExtractor
from .extractors.presentation_extractor import PresentationExtractor
from .extractors.spreadsheet_extractor import SpreadsheetExtractor
from .extractors.text_extractor import TextExtractor
from .file_converter import Encoder, Extractor
from .formats import Format

logger = logging.getLogger(__name__)

# Type aliases for all converter types
ExtractorType = Union[
    PDFExtractor,
    DocumentExtractor,
    TextExtractor,
    PresentationExtractor,
    SpreadsheetExtractor,
    ImageExtractor,
]

EncoderType = Union[
    PDFEncoder,
    HTMLEncoder,
    TextEncoder,
    RTFEncoder,
    ODTEncoder,
    DOCXEncoder,
    XLSXEncoder,
    PPTXEncoder,
    ImageEncoder,
    ICOEncoder,
]


class ConverterFactory:
    """Holds one extractor per source family and one encoder per target."""

    def __init__(
        self,
        *,
        extractors: Optional[List[Extractor]] = None,
        encoders: Optional[List[Encoder]] = None,
    ) -> None:
        """Initialize the factory.

        Args:
            extractors: Extractors to search in order, the built-in set by default
            encoders: Encoders to search in order, the built-in set by default
        """
        if extractors is None:
            default_extractors: List[ExtractorType] = [
                PDFExtractor(),
                DocumentExtractor(),
                TextExtractor(),
                PresentationExtractor(),
                SpreadsheetExtractor(),
                ImageExtractor(),
            ]
            extractors = cast(List[Extractor], default_extractors)
        if encoders is None:
            default_encoders: List[EncoderType] = [
                PDFEncoder(),
                HTMLEncoder(),
                TextEncoder(),
                RTFEncoder(),
                ODTEncoder(),
                DOCXEncoder(),
                XLSXEncoder(),
                PPTXEncoder(),
                ImageEncoder(),
                ICOEncoder(),
            ]
            encoders = cast(List[Encoder], default_encoders)
        self.extractors = extractors
        self.encoders = encoders

    def get_extractor(self, extension: Format) -> Optional[Extractor]:
        """Get the extractor for a source format.

        Args:
            extension: Source format

        Returns:
            Extractor that reads the format, or None if none does
        """
        for extractor in self.extractors:
            if extractor.can_handle(extension):
                return extractor
        return None

    def get_encoder(self, target: Format) -> Optional[Encoder]:
        """Get the encoder for a target format.

        Args:
            target: Output format

        Returns:
            Encoder that writes the format, or None if none does
        """
        for encoder in self.encoders:
            if encoder.can_handle(target):
                return encoder
        return None
