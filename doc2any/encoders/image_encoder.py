"""Raster image and ICO output with Pillow."""

import io
import logging
import struct
from typing import Dict, List, Optional, Set, Tuple

from PIL import Image

from ..errors import EncodingError
from ..file_converter import IntermediateContent, PageImageSet
from ..formats import Format
from ..logging_utils import log_timing

logger = logging.getLogger(__name__)

PIL_FORMATS: Dict[Format, str] = {
    Format.JPG: "JPEG",
    Format.JPEG: "JPEG",
    Format.PNG: "PNG",
    Format.WEBP: "WEBP",
    Format.GIF: "GIF",
    Format.BMP: "BMP",
}

# Targets that cannot carry transparency
OPAQUE_TARGETS: Set[Format] = {Format.JPG, Format.JPEG, Format.BMP}

WHITE = (255, 255, 255)
QUALITY = 92

ICO_MAX_SIZE = 256
ICO_HEADER_SIZE = 6
ICO_ENTRY_SIZE = 16


def stack_vertically(images: List[Image.Image], background: Optional[Tuple[int, int, int]] = None) -> Image.Image:
    """Paste images top to bottom onto one canvas as wide as the widest.

    Args:
        images: Images in order
        background: Opaque fill colour; transparent when omitted

    Returns:
        The composite image
    """
    if len(images) == 1 and background is None:
        return images[0]
    width = max(img.width for img in images)
    height = sum(img.height for img in images)
    if background is None:
        combined = Image.new("RGBA", (width, height), (0, 0, 0, 0))
    else:
        combined = Image.new("RGB", (width, height), background)
    y = 0
    for img in images:
        rgba = img.convert("RGBA")
        combined.paste(rgba, (0, y), rgba)
        y += img.height
    return combined


def encode_raster(images: List[Image.Image], target: Format) -> bytes:
    """Encode one or more images as a single raster file of the target type."""
    background = WHITE if target in OPAQUE_TARGETS else None
    composite = stack_vertically(images, background=background)
    if composite.mode not in ("RGB", "RGBA"):
        composite = composite.convert("RGBA")

    options: Dict[str, int] = {}
    if PIL_FORMATS[target] in ("JPEG", "WEBP"):
        options["quality"] = QUALITY
    buffer = io.BytesIO()
    composite.save(buffer, format=PIL_FORMATS[target], **options)
    return buffer.getvalue()


def icon_size(width: int, height: int, max_size: int = ICO_MAX_SIZE) -> Tuple[int, int]:
    """Scale dimensions to fit ``max_size`` preserving aspect ratio.

    The shorter side is truncated, so 500x300 becomes 256x153.
    """
    if width <= max_size and height <= max_size:
        return width, height
    if width > height:
        return max_size, max(1, int(height * max_size / width))
    return max(1, int(width * max_size / height)), max_size


def build_ico(png: bytes, width: int, height: int) -> bytes:
    """Wrap PNG bytes in a single-image ICO container.

    Layout: 6-byte header (reserved, type 1, one image), a 16-byte directory
    entry, then the PNG payload at offset 22. A dimension of 256 is stored as 0.
    """
    header = struct.pack("<HHH", 0, 1, 1)
    entry = struct.pack(
        "<BBBBHHII",
        width if width < 256 else 0,
        height if height < 256 else 0,
        0,  # palette colours
        0,  # reserved
        1,  # colour planes
        32,  # bits per pixel
        len(png),
        ICO_HEADER_SIZE + ICO_ENTRY_SIZE,
    )
    return header + entry + png


def encode_ico(img: Image.Image) -> bytes:
    width, height = icon_size(img.width, img.height)
    icon = img.convert("RGBA")
    if (width, height) != icon.size:
        icon = icon.resize((width, height), Image.LANCZOS)
    buffer = io.BytesIO()
    icon.save(buffer, format="PNG")
    logger.debug("ICO payload %dx%d, %d bytes", width, height, buffer.tell())
    return build_ico(buffer.getvalue(), width, height)


def _images_of(content: IntermediateContent) -> List[Image.Image]:
    if not isinstance(content, PageImageSet) or not content.images:
        raise EncodingError("Image output requires image content", error_type="not_an_image")
    return content.images


class ImageEncoder:
    """Writes JPG, PNG, WEBP, GIF and BMP files; several images are stacked."""

    SUPPORTED_TARGETS: Set[Format] = set(PIL_FORMATS)

    def can_handle(self, target: Format) -> bool:
        return target in self.SUPPORTED_TARGETS

    @log_timing
    def encode(
        self, content: IntermediateContent, original_filename: str, target: Format
    ) -> bytes:
        images = _images_of(content)
        logger.info("Writing %s image from %d source image(s)", target.value.upper(), len(images))
        return encode_raster(images, target)


class ICOEncoder:
    """Writes a single-image icon from the first image."""

    SUPPORTED_TARGETS: Set[Format] = {Format.ICO}

    def can_handle(self, target: Format) -> bool:
        return target in self.SUPPORTED_TARGETS

    @log_timing
    def encode(
        self, content: IntermediateContent, original_filename: str, target: Format
    ) -> bytes:
        images = _images_of(content)
        logger.info("Writing ICO for %s", original_filename)
        return encode_ico(images[0])
