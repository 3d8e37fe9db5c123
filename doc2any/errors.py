"""Error taxonomy for the conversion pipeline."""

from typing import Optional


class ConversionError(Exception):
    """Base class for all conversion failures.

    Every error carries an ``error_type`` string so callers can report it in
    the same shape as a failed ``ConversionOutcome``.
    """

    error_type = "conversion_error"

    def __init__(self, message: str, *, error_type: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        if error_type is not None:
            self.error_type = error_type


class ValidationError(ConversionError):
    """Request rejected before any extraction work begins."""

    error_type = "validation_error"


class ConversionInProgressError(ValidationError):
    """A conversion was started while another one is still running."""

    error_type = "conversion_in_progress"


class ExtractionError(ConversionError):
    """Source content could not be parsed.

    Recovered locally by the pipeline with placeholder content.
    """

    error_type = "extraction_error"

    def __init__(self, reason: str, *, error_type: Optional[str] = None) -> None:
        super().__init__(reason, error_type=error_type)
        self.reason = reason


class CodecUnavailableError(ExtractionError):
    """A required codec library or engine is missing. Always fatal."""

    error_type = "codec_unavailable"


class ExtractionEmpty(ConversionError):
    """The source parsed but carried no content."""

    error_type = "empty_content"


class ImagePreservingInapplicable(ConversionError):
    """The visual path does not apply to this file (e.g. no images found)."""

    error_type = "image_path_inapplicable"


class EncodingError(ConversionError):
    """Target format unknown or encoder failure. Always fatal."""

    error_type = "encoding_error"


class ConversionCancelled(ConversionError):
    """The caller cancelled the request between pipeline stages."""

    error_type = "cancelled"


class OCRError(ConversionError):
    """Text recognition failed."""

    error_type = "ocr_error"
