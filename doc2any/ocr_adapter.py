"""Text recognition for scanned images through Tesseract."""

import logging
from dataclasses import dataclass
from pathlib import PurePath
from typing import Dict, List, Optional, Tuple

import pytesseract  # type: ignore
from pytesseract import Output, TesseractError, TesseractNotFoundError  # type: ignore

from .conversion_stats import format_size
from .errors import CodecUnavailableError, ExtractionError, OCRError, ValidationError
from .extractors.image_extractor import load_image
from .file_converter import SourceDescriptor
from .formats import MAX_OCR_FILE_SIZE, OCR_INPUTS, is_valid_ocr_input
from .progress_manager import ProgressManager

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "eng"

# Word boxes grouped by (block, paragraph, line)
LineKey = Tuple[int, int, int]


@dataclass
class OCRResult:
    """Recognized text and the mean word confidence (0-100)."""

    text: str
    confidence: float
    source: SourceDescriptor

    def to_source(self) -> SourceDescriptor:
        """Wrap the text as a plain-text file that can be converted further."""
        stem = PurePath(self.source.filename).stem
        return SourceDescriptor.from_bytes(f"{stem}_ocr.txt", self.text.encode("utf-8"))


def assemble_text(data: Dict[str, List]) -> Tuple[str, float]:
    """Rebuild text and mean confidence from Tesseract word data.

    Words on a line are joined by spaces, lines by newlines and paragraphs
    by blank lines. Boxes without text or with negative confidence are not
    words and are skipped.

    Args:
        data: ``image_to_data`` output as a dict of parallel lists

    Returns:
        Text and mean word confidence, 0 when no words were found
    """
    lines: Dict[LineKey, List[str]] = {}
    confidences: List[float] = []
    for index, word in enumerate(data.get("text", [])):
        word = (word or "").strip()
        confidence = float(data["conf"][index])
        if not word or confidence < 0:
            continue
        key = (int(data["block_num"][index]), int(data["par_num"][index]), int(data["line_num"][index]))
        lines.setdefault(key, []).append(word)
        confidences.append(confidence)

    paragraphs: List[List[str]] = []
    previous: Optional[Tuple[int, int]] = None
    for key in sorted(lines):
        if key[:2] != previous:
            paragraphs.append([])
            previous = key[:2]
        paragraphs[-1].append(" ".join(lines[key]))

    text = "\n\n".join("\n".join(paragraph) for paragraph in paragraphs)
    confidence = sum(confidences) / len(confidences) if confidences else 0.0
    return text, round(confidence, 2)


class OCRAdapter:
    """Runs Tesseract on one image and reports the three recognition phases."""

    def __init__(self, language: str = DEFAULT_LANGUAGE, max_file_size: int = MAX_OCR_FILE_SIZE) -> None:
        """Initialize the adapter.

        Args:
            language: Tesseract language code, ``+``-joined for several
            max_file_size: Largest accepted image in bytes
        """
        self.language = language
        self.max_file_size = max_file_size

    def validate(self, source: SourceDescriptor) -> None:
        """Reject files OCR cannot take.

        Raises:
            ValidationError: For non-raster extensions or oversize images
        """
        if not is_valid_ocr_input(source.extension):
            allowed = ", ".join(sorted(fmt.value for fmt in OCR_INPUTS))
            raise ValidationError(
                f"OCR supports only image files ({allowed}), not .{source.extension}",
                error_type="unsupported_ocr_input",
            )
        if source.size > self.max_file_size:
            raise ValidationError(
                f"Image too large for OCR ({format_size(source.size)}). "
                f"Maximum size is {format_size(self.max_file_size)}",
                error_type="file_too_large",
            )

    def _check_engine(self) -> None:
        try:
            version = pytesseract.get_tesseract_version()
        except TesseractNotFoundError as e:
            raise CodecUnavailableError(
                "Tesseract is not installed or not on PATH", error_type="ocr_engine_missing"
            ) from e
        logger.debug("Using Tesseract %s", version)

    def _check_language(self) -> None:
        try:
            installed = set(pytesseract.get_languages(config=""))
        except TesseractError as e:
            raise OCRError(f"Cannot list Tesseract languages: {e}") from e
        missing = [code for code in self.language.split("+") if code not in installed]
        if missing:
            raise OCRError(
                f"Language data not installed: {', '.join(missing)}",
                error_type="ocr_language_unavailable",
            )

    def recognize(
        self, source: SourceDescriptor, progress: Optional[ProgressManager] = None
    ) -> OCRResult:
        """Extract text from an image.

        Args:
            source: Raster image to read
            progress: Optional sink for ``initializing``, ``loading_language``
                and ``recognizing`` events

        Returns:
            Recognized text with its confidence

        Raises:
            ValidationError: If the file is not an accepted image
            CodecUnavailableError: If Tesseract is missing
            OCRError: If the language is unavailable or recognition fails
        """
        progress = progress or ProgressManager()
        self.validate(source)

        progress.emit("initializing", 0, "Initializing OCR engine...")
        self._check_engine()
        try:
            image = load_image(source.data)
        except ExtractionError as e:
            raise OCRError(f"Cannot read image {source.filename}: {e.reason}") from e

        progress.emit("loading_language", 20, f"Loading language data ({self.language})...")
        self._check_language()

        progress.emit("recognizing", 40, "Recognizing text...")
        logger.info("Running OCR on %s (%s)", source.filename, self.language)
        try:
            data = pytesseract.image_to_data(image, lang=self.language, output_type=Output.DICT)
        except TesseractError as e:
            raise OCRError(f"Text recognition failed: {e}") from e

        text, confidence = assemble_text(data)
        progress.emit("recognizing", 100, "Text recognized")
        logger.info(
            "OCR of %s found %d characters (confidence %.1f%%)", source.filename, len(text), confidence
        )
        return OCRResult(text=text, confidence=confidence, source=source)
