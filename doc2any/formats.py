"""Format registry: supported inputs, valid targets and MIME/icon metadata."""

from enum import Enum
from pathlib import PurePath
from typing import Dict, FrozenSet, Tuple


class Format(str, Enum):
    """Every file extension the converter knows about."""

    PDF = "pdf"
    DOC = "doc"
    DOCX = "docx"
    ODT = "odt"
    TXT = "txt"
    RTF = "rtf"
    XLS = "xls"
    XLSX = "xlsx"
    PPT = "ppt"
    PPTX = "pptx"
    HTML = "html"
    CSV = "csv"
    JPG = "jpg"
    JPEG = "jpeg"
    PNG = "png"
    GIF = "gif"
    BMP = "bmp"
    WEBP = "webp"
    SVG = "svg"
    TIFF = "tiff"
    TIF = "tif"
    ICO = "ico"

    def __str__(self) -> str:
        return self.value


class SourceKind(str, Enum):
    """Coarse family of a source file."""

    DOCUMENT = "document"
    SPREADSHEET = "spreadsheet"
    PRESENTATION = "presentation"
    IMAGE = "image"
    TEXT = "text"


MAX_FILE_SIZE = 100 * 1024 * 1024
MAX_OCR_FILE_SIZE = 10 * 1024 * 1024

F = Format

SUPPORTED_INPUTS: Tuple[Format, ...] = tuple(Format)

IMAGE_FORMATS: FrozenSet[Format] = frozenset(
    {F.JPG, F.JPEG, F.PNG, F.GIF, F.BMP, F.WEBP, F.SVG, F.TIFF, F.TIF, F.ICO}
)

# Targets produced by rasterizing rather than by writing text
IMAGE_OUTPUTS: FrozenSet[Format] = frozenset(
    {F.JPG, F.JPEG, F.PNG, F.WEBP, F.GIF, F.BMP, F.ICO}
)

OCR_INPUTS: FrozenSet[Format] = frozenset(
    {F.JPG, F.JPEG, F.PNG, F.TIFF, F.TIF, F.BMP, F.WEBP}
)

DEFAULT_TARGETS: Tuple[Format, ...] = (F.PDF, F.TXT, F.DOCX, F.HTML)

CONVERSION_MAP: Dict[Format, Tuple[Format, ...]] = {
    F.PDF: (F.DOCX, F.TXT, F.ODT, F.RTF, F.HTML, F.XLSX, F.PPTX, F.CSV, F.JPG, F.PNG),
    F.DOC: (F.PDF, F.DOCX, F.TXT, F.ODT, F.RTF, F.HTML, F.XLSX, F.PPTX, F.CSV),
    F.DOCX: (F.PDF, F.TXT, F.ODT, F.RTF, F.HTML, F.XLSX, F.PPTX, F.CSV),
    F.ODT: (F.PDF, F.DOCX, F.TXT, F.RTF, F.HTML, F.XLSX, F.PPTX, F.CSV),
    F.TXT: (F.PDF, F.DOCX, F.ODT, F.RTF, F.HTML, F.XLSX, F.PPTX, F.CSV),
    F.RTF: (F.PDF, F.DOCX, F.TXT, F.ODT, F.HTML, F.XLSX, F.PPTX, F.CSV),
    F.XLS: (F.PDF, F.XLSX, F.HTML, F.DOCX, F.TXT, F.CSV),
    F.XLSX: (F.PDF, F.HTML, F.DOCX, F.TXT, F.CSV),
    F.PPT: (F.PDF, F.PPTX, F.DOCX, F.TXT, F.CSV),
    F.PPTX: (F.PDF, F.DOCX, F.TXT, F.CSV),
    F.HTML: (F.PDF, F.DOCX, F.TXT, F.ODT, F.RTF, F.CSV),
    F.CSV: (F.PDF, F.DOCX, F.TXT, F.XLSX, F.HTML, F.ODT, F.RTF),
    F.JPG: (F.PNG, F.WEBP, F.GIF, F.BMP, F.ICO, F.PDF),
    F.JPEG: (F.PNG, F.WEBP, F.GIF, F.BMP, F.ICO, F.PDF),
    F.PNG: (F.JPG, F.WEBP, F.GIF, F.BMP, F.ICO, F.PDF),
    F.GIF: (F.JPG, F.PNG, F.WEBP, F.BMP, F.ICO, F.PDF),
    F.BMP: (F.JPG, F.PNG, F.WEBP, F.GIF, F.ICO, F.PDF),
    F.WEBP: (F.JPG, F.PNG, F.GIF, F.BMP, F.ICO, F.PDF),
    F.SVG: (F.JPG, F.PNG, F.WEBP, F.GIF, F.BMP, F.PDF),
    F.TIFF: (F.JPG, F.PNG, F.WEBP, F.GIF, F.BMP, F.PDF),
    F.TIF: (F.JPG, F.PNG, F.WEBP, F.GIF, F.BMP, F.PDF),
    F.ICO: (F.JPG, F.PNG, F.WEBP, F.GIF, F.BMP, F.PDF),
}

SOURCE_KINDS: Dict[Format, SourceKind] = {
    F.PDF: SourceKind.DOCUMENT,
    F.DOC: SourceKind.DOCUMENT,
    F.DOCX: SourceKind.DOCUMENT,
    F.ODT: SourceKind.DOCUMENT,
    F.RTF: SourceKind.DOCUMENT,
    F.TXT: SourceKind.TEXT,
    F.HTML: SourceKind.TEXT,
    F.XLS: SourceKind.SPREADSHEET,
    F.XLSX: SourceKind.SPREADSHEET,
    F.CSV: SourceKind.SPREADSHEET,
    F.PPT: SourceKind.PRESENTATION,
    F.PPTX: SourceKind.PRESENTATION,
    **{fmt: SourceKind.IMAGE for fmt in IMAGE_FORMATS},
}

MIME_TYPES: Dict[Format, str] = {
    F.PDF: "application/pdf",
    F.DOC: "application/msword",
    F.DOCX: "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    F.ODT: "application/vnd.oasis.opendocument.text",
    F.TXT: "text/plain",
    F.RTF: "application/rtf",
    F.XLS: "application/vnd.ms-excel",
    F.XLSX: "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    F.PPT: "application/vnd.ms-powerpoint",
    F.PPTX: "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    F.HTML: "text/html",
    F.CSV: "text/csv",
    F.JPG: "image/jpeg",
    F.JPEG: "image/jpeg",
    F.PNG: "image/png",
    F.GIF: "image/gif",
    F.BMP: "image/bmp",
    F.WEBP: "image/webp",
    F.SVG: "image/svg+xml",
    F.TIFF: "image/tiff",
    F.TIF: "image/tiff",
    F.ICO: "image/x-icon",
}

FILE_ICONS: Dict[Format, str] = {
    F.PDF: "fa-file-pdf",
    F.DOC: "fa-file-word",
    F.DOCX: "fa-file-word",
    F.TXT: "fa-file-lines",
    F.ODT: "fa-file-alt",
    F.RTF: "fa-file-contract",
    F.XLS: "fa-file-excel",
    F.XLSX: "fa-file-excel",
    F.PPT: "fa-file-powerpoint",
    F.PPTX: "fa-file-powerpoint",
    F.HTML: "fa-file-code",
    F.CSV: "fa-file-csv",
    **{fmt: "fa-file-image" for fmt in IMAGE_FORMATS},
}
DEFAULT_ICON = "fa-file"

# ODT output is a flat XML document, not a zipped package
OUTPUT_EXTENSIONS: Dict[Format, str] = {F.ODT: "fodt"}


def extension_of(filename: str) -> str:
    """Return the lower-cased text after the last dot of a file name."""
    return PurePath(filename).name.rsplit(".", 1)[-1].lower()


def to_format(extension: str) -> Format:
    """Parse an extension (with or without a leading dot) into a Format.

    Raises:
        ValueError: If the extension is not a known format
    """
    return Format(extension.lower().lstrip("."))


def is_valid_input(extension: str) -> bool:
    """Check an extension against the input whitelist."""
    try:
        return to_format(extension) in SUPPORTED_INPUTS
    except ValueError:
        return False


def is_image_format(extension: str) -> bool:
    """Check whether an extension belongs to the raster/vector image family."""
    try:
        return to_format(extension) in IMAGE_FORMATS
    except ValueError:
        return False


def is_valid_ocr_input(extension: str) -> bool:
    """Check an extension against the OCR whitelist (raster images only)."""
    try:
        return to_format(extension) in OCR_INPUTS
    except ValueError:
        return False


def valid_targets(extension: str) -> Tuple[Format, ...]:
    """Get the ordered output formats available for an input extension.

    Whitelisted extensions without a table entry get ``DEFAULT_TARGETS``;
    anything outside the whitelist gets nothing.
    """
    try:
        fmt = to_format(extension)
    except ValueError:
        return ()
    return CONVERSION_MAP.get(fmt, DEFAULT_TARGETS)


def source_kind(extension: str) -> SourceKind:
    """Get the source family for a whitelisted extension."""
    return SOURCE_KINDS[to_format(extension)]


def mime_type(extension: str) -> str:
    """Get the MIME type for an extension, falling back to octet-stream."""
    try:
        return MIME_TYPES[to_format(extension)]
    except (KeyError, ValueError):
        return "application/octet-stream"


def icon_for(extension: str) -> str:
    """Get the display icon name for an extension."""
    try:
        return FILE_ICONS.get(to_format(extension), DEFAULT_ICON)
    except ValueError:
        return DEFAULT_ICON


def output_extension(target: Format) -> str:
    """Get the file extension written for a target format."""
    return OUTPUT_EXTENSIONS.get(target, target.value)


def output_filename(original_filename: str, target: Format) -> str:
    """Build ``{base}_converted.{ext}`` for a converted file."""
    name = PurePath(original_filename).name
    base = name.rsplit(".", 1)[0] if "." in name else name
    return f"{base}_converted.{output_extension(target)}"
