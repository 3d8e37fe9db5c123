"""Raster and vector image decoding."""

import io
import logging
from typing import Set

from PIL import Image, UnidentifiedImageError

from ..errors import CodecUnavailableError, ExtractionError
from ..file_converter import IntermediateContent, PageImageSet, SourceDescriptor
from ..formats import IMAGE_FORMATS, Format
from ..logging_utils import log_timing

logger = logging.getLogger(__name__)


def rasterize_svg(data: bytes) -> bytes:
    """Render SVG bytes to PNG bytes using cairosvg.

    Raises:
        CodecUnavailableError: If cairosvg or its cairo library is missing
        ExtractionError: If the SVG cannot be rendered
    """
    try:
        import cairosvg  # type: ignore
    except (ImportError, OSError) as e:
        raise CodecUnavailableError(f"SVG rendering requires cairosvg: {e}") from e

    try:
        return cairosvg.svg2png(bytestring=data)
    except Exception as e:
        raise ExtractionError(f"Cannot render SVG: {e}", error_type="svg_error") from e


def load_image(data: bytes) -> Image.Image:
    """Decode image bytes, loading the first frame fully into memory.

    Raises:
        ExtractionError: If Pillow cannot identify the image
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            return img.copy()
    except (UnidentifiedImageError, OSError) as e:
        raise ExtractionError(f"Cannot decode image: {e}", error_type="image_error") from e


class ImageExtractor:
    """Decodes an image source into a single-image page set.

    Images carry no text; the decoded picture is what image and PDF
    encoders consume.
    """

    SUPPORTED_EXTENSIONS: Set[Format] = set(IMAGE_FORMATS)

    def can_handle(self, extension: Format) -> bool:
        return extension in self.SUPPORTED_EXTENSIONS

    @log_timing
    def extract(self, source: SourceDescriptor, target: Format) -> IntermediateContent:
        logger.info("Decoding image: %s", source.filename)
        data = source.data
        if source.format == Format.SVG:
            data = rasterize_svg(data)
        img = load_image(data)
        logger.debug("Decoded %s: %dx%d %s", source.filename, img.width, img.height, img.mode)
        return PageImageSet([img])
