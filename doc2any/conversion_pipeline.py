"""Conversion orchestrator: validation, routing, extraction and encoding."""

import logging
from enum import Enum
from typing import Dict, List, Optional, Union

from .conversion_stats import ConversionStats, format_size
from .converter_factory import ConverterFactory
from .errors import (
    CodecUnavailableError,
    ConversionError,
    ConversionInProgressError,
    EncodingError,
    ExtractionEmpty,
    ExtractionError,
    ValidationError,
)
from .file_converter import (
    ConversionOutcome,
    ConversionRequest,
    ConversionResult,
    IntermediateContent,
    PageImageSet,
    PlainText,
    SemanticHTML,
    SourceDescriptor,
)
from .formats import IMAGE_FORMATS, MAX_FILE_SIZE, Format, is_valid_input, valid_targets
from .image_preserving import ImagePreservingSelector
from .logging_utils import log_block_timing
from .progress_manager import CancellationToken, ProgressManager
from .text_utils import empty_content_placeholder, unparsed_content_placeholder

logger = logging.getLogger(__name__)


class ConversionState(Enum):
    """Stages a conversion passes through."""

    IDLE = "idle"
    VALIDATING = "validating"
    IMAGE_PRESERVING = "image_preserving"
    EXTRACTING = "extracting"
    ENCODING = "encoding"
    COMPLETE = "complete"
    FAILED = "failed"


STAGE_PROGRESS: Dict[ConversionState, int] = {
    ConversionState.VALIDATING: 5,
    ConversionState.IMAGE_PRESERVING: 15,
    ConversionState.EXTRACTING: 30,
    ConversionState.ENCODING: 70,
    ConversionState.COMPLETE: 100,
}


def is_empty(content: IntermediateContent) -> bool:
    """Check whether extracted content carries nothing worth encoding."""
    if isinstance(content, PageImageSet):
        return not content.images
    if isinstance(content, SemanticHTML) and "<img" in content.html:
        return False
    return not content.as_text().strip()


class ConversionPipeline:
    """Runs one conversion request at a time through the conversion stages.

    The pipeline holds no per-request state beyond the current stage: the
    request and result are passed along as values. After every run, whether
    it succeeded or failed, the pipeline is back to ``IDLE`` and
    ``history`` lists the stages the run went through.
    """

    def __init__(
        self,
        *,
        factory: Optional[ConverterFactory] = None,
        selector: Optional[ImagePreservingSelector] = None,
        stats: Optional[ConversionStats] = None,
        max_file_size: int = MAX_FILE_SIZE,
    ) -> None:
        """Initialize the pipeline.

        Args:
            factory: Extractor/encoder lookup, the built-in set by default
            selector: Image-preserving route selector sharing ``factory``
            stats: Optional persistent counters updated on success
            max_file_size: Largest accepted source in bytes
        """
        self.factory = factory or ConverterFactory()
        self.selector = selector or ImagePreservingSelector(self.factory)
        self.stats = stats
        self.max_file_size = max_file_size
        self.state = ConversionState.IDLE
        self.history: List[ConversionState] = []

    @property
    def busy(self) -> bool:
        return self.state != ConversionState.IDLE

    def _enter(
        self, state: ConversionState, progress: ProgressManager, message: str = ""
    ) -> None:
        self.state = state
        self.history.append(state)
        logger.debug("Pipeline state: %s", state.value)
        if state in STAGE_PROGRESS:
            progress.emit(state.value, STAGE_PROGRESS[state], message)

    def validate(self, request: ConversionRequest) -> None:
        """Reject requests the converter cannot serve.

        Raises:
            ValidationError: For an unsupported extension, an oversize file
                or a target not offered for this source
        """
        source = request.source
        if not is_valid_input(source.extension):
            raise ValidationError(
                f"Unsupported file type: .{source.extension}",
                error_type="unsupported_extension",
            )
        if source.size > self.max_file_size:
            raise ValidationError(
                f"File too large ({format_size(source.size)}). "
                f"Maximum size is {format_size(self.max_file_size)}",
                error_type="file_too_large",
            )
        if request.target not in valid_targets(source.extension):
            raise ValidationError(
                f"Cannot convert .{source.extension} to {request.target.value.upper()}",
                error_type="unsupported_pair",
            )

    def _extract(self, request: ConversionRequest) -> IntermediateContent:
        """Extract content, substituting placeholder text for unreadable sources.

        Image sources are never replaced by placeholder text.

        Raises:
            CodecUnavailableError: If a required codec is missing
            EncodingError: If an image source cannot be decoded
        """
        source = request.source
        extractor = self.factory.get_extractor(source.format)
        if extractor is None:
            logger.warning("No extractor for %s, using placeholder text", source.filename)
            return PlainText(unparsed_content_placeholder(source.filename))

        try:
            content = extractor.extract(source, request.target)
        except CodecUnavailableError:
            raise
        except Exception as e:
            if source.format in IMAGE_FORMATS:
                raise EncodingError(
                    f"Cannot read image {source.filename}: {e}", error_type="not_an_image"
                ) from e
            return self._recover(source, e)

        if is_empty(content):
            logger.info("Extracted content of %s is empty", source.filename)
            return PlainText(empty_content_placeholder(source.filename))
        return content

    def _recover(self, source: SourceDescriptor, error: Exception) -> PlainText:
        """Pick the placeholder text for a source that failed to extract."""
        if isinstance(error, ExtractionEmpty):
            logger.info("No content in %s: %s", source.filename, error.message)
            return PlainText(empty_content_placeholder(source.filename))
        if isinstance(error, ExtractionError):
            logger.warning("Extraction failed for %s: %s", source.filename, error.reason)
        else:
            logger.warning("Unexpected extraction error for %s: %s", source.filename, error)
        return PlainText(unparsed_content_placeholder(source.filename))

    def _encode(self, content: IntermediateContent, request: ConversionRequest) -> bytes:
        """Encode content into the target format.

        Raises:
            EncodingError: If no encoder exists for the target or it fails
        """
        target = request.target
        encoder = self.factory.get_encoder(target)
        if encoder is None:
            raise EncodingError(
                f"Unsupported output format: {target.value.upper()}", error_type="unknown_target"
            )
        try:
            return encoder.encode(content, request.source.filename, target)
        except EncodingError:
            raise
        except Exception as e:
            raise EncodingError(f"Failed to create {target.value.upper()} file: {e}") from e

    def run(
        self,
        request: ConversionRequest,
        progress: Optional[ProgressManager] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> ConversionResult:
        """Convert one request.

        Args:
            request: Source file and target format
            progress: Optional progress sink; a silent one is used otherwise
            cancel_token: Optional token checked between stages

        Returns:
            The converted result

        Raises:
            ConversionInProgressError: If another run has not finished
            ConversionError: If the request is invalid or a fatal error occurs
        """
        if self.busy:
            raise ConversionInProgressError("A conversion is already in progress")

        progress = progress or ProgressManager()
        token = cancel_token or CancellationToken()
        timings: Dict[str, float] = {}
        self.history = []
        source = request.source
        logger.info("Converting %s to %s", source.filename, request.target.value.upper())

        try:
            self._enter(ConversionState.VALIDATING, progress, "Validating file...")
            with log_block_timing("validating", timings):
                self.validate(request)
            token.raise_if_cancelled()

            result: Optional[ConversionResult] = None
            if self.selector.route_for(request) is not None:
                self._enter(
                    ConversionState.IMAGE_PRESERVING, progress, "Trying image-preserving conversion..."
                )
                with log_block_timing("image_preserving", timings):
                    result = self.selector.attempt(request, progress)
                token.raise_if_cancelled()

            if result is None:
                self._enter(ConversionState.EXTRACTING, progress, "Reading file...")
                with log_block_timing("extracting", timings):
                    content = self._extract(request)
                token.raise_if_cancelled()

                self._enter(ConversionState.ENCODING, progress, "Converting...")
                with log_block_timing("encoding", timings):
                    data = self._encode(content, request)
                token.raise_if_cancelled()
                result = ConversionResult.build(data, request.target, source.filename)

            result.timings = timings
            self._enter(ConversionState.COMPLETE, progress, "Conversion complete!")
            if self.stats is not None:
                self.stats.record_conversion(files=1, size_bytes=source.size)
            logger.info(
                "Converted %s -> %s (%s, route: %s)",
                source.filename,
                result.filename,
                format_size(result.size),
                result.route,
            )
            return result

        except ConversionError as e:
            self._fail(progress, e)
            raise
        except Exception as e:
            error = ConversionError(f"Unexpected error during conversion: {e}")
            self._fail(progress, error)
            raise error from e
        finally:
            self.state = ConversionState.IDLE
            self.history.append(ConversionState.IDLE)

    def _fail(self, progress: ProgressManager, error: ConversionError) -> None:
        failed_at = self.state
        self._enter(ConversionState.FAILED, progress)
        latest = progress.latest
        progress.emit(ConversionState.FAILED.value, latest.percent if latest else 0, error.message)
        logger.error(
            "Conversion failed during %s (%s): %s", failed_at.value, error.error_type, error.message
        )

    def convert(
        self,
        source: SourceDescriptor,
        target: Union[Format, str],
        progress: Optional[ProgressManager] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> ConversionOutcome:
        """Convert a file and report the outcome instead of raising.

        Args:
            source: File to convert
            target: Output format, as a Format or extension string
            progress: Optional progress sink
            cancel_token: Optional cancellation token

        Returns:
            Outcome with the result on success, or a user-facing error message
        """
        try:
            request = ConversionRequest.of(source, target)
            result = self.run(request, progress, cancel_token)
        except ConversionError as e:
            return {
                "success": False,
                "result": None,
                "error": e.message,
                "error_type": e.error_type,
            }
        return {
            "success": True,
            "result": result,
            "error": None,
            "error_type": None,
        }
