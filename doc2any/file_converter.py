"""Converter interfaces and the value types that flow through the pipeline."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Protocol, TypedDict, Union

from bs4 import BeautifulSoup
from PIL import Image

from .errors import ValidationError
from .formats import (
    Format,
    SourceKind,
    extension_of,
    mime_type,
    output_extension,
    output_filename,
    to_format,
    SOURCE_KINDS,
)


@dataclass(frozen=True)
class SourceDescriptor:
    """A file selected for conversion."""

    filename: str
    size: int
    extension: str
    kind: Optional[SourceKind]
    data: bytes = field(repr=False, compare=False)

    @classmethod
    def from_bytes(cls, filename: str, data: bytes) -> "SourceDescriptor":
        """Describe an in-memory file.

        Args:
            filename: Original file name, used for extension detection
            data: Raw file contents

        Returns:
            Descriptor for the file
        """
        extension = extension_of(filename)
        try:
            kind: Optional[SourceKind] = SOURCE_KINDS.get(to_format(extension))
        except ValueError:
            kind = None
        return cls(
            filename=Path(filename).name,
            size=len(data),
            extension=extension,
            kind=kind,
            data=data,
        )

    @classmethod
    def from_path(cls, file_path: Path) -> "SourceDescriptor":
        """Describe a file on disk."""
        return cls.from_bytes(file_path.name, file_path.read_bytes())

    @property
    def format(self) -> Format:
        """Parsed extension. Only valid for whitelisted files."""
        return to_format(self.extension)


@dataclass(frozen=True)
class ConversionRequest:
    """A source file plus the format it should become."""

    source: SourceDescriptor
    target: Format

    @classmethod
    def of(cls, source: SourceDescriptor, target: Union[Format, str]) -> "ConversionRequest":
        """Build a request from a target given as a string or Format.

        Raises:
            ValidationError: If the target is not a known format
        """
        if isinstance(target, Format):
            return cls(source=source, target=target)
        try:
            return cls(source=source, target=to_format(target))
        except ValueError as e:
            raise ValidationError(
                f"Unsupported output format: {target}", error_type="unsupported_target"
            ) from e


@dataclass
class PlainText:
    """Flowed plain text."""

    text: str

    def as_text(self) -> str:
        return self.text


@dataclass
class SemanticHTML:
    """An HTML fragment that keeps document structure."""

    html: str

    def as_text(self) -> str:
        soup = BeautifulSoup(self.html, "html.parser")
        return soup.get_text(separator="\n\n").strip()


@dataclass
class PageImageSet:
    """Ordered raster images, one per page, slide or source image."""

    images: List[Image.Image] = field(default_factory=list)

    def as_text(self) -> str:
        return ""


IntermediateContent = Union[PlainText, SemanticHTML, PageImageSet]


@dataclass
class ConversionResult:
    """Encoded output of one conversion."""

    data: Optional[bytes] = field(repr=False)
    target: Format
    filename: str
    route: str = "standard"
    notices: List[str] = field(default_factory=list)
    timings: Dict[str, float] = field(default_factory=dict)
    size: int = 0

    def __post_init__(self) -> None:
        if self.data is not None:
            self.size = len(self.data)

    @classmethod
    def build(
        cls,
        data: bytes,
        target: Format,
        original_filename: str,
        *,
        route: str = "standard",
        notices: Optional[List[str]] = None,
    ) -> "ConversionResult":
        return cls(
            data=data,
            target=target,
            filename=output_filename(original_filename, target),
            route=route,
            notices=list(notices or []),
        )

    @property
    def extension(self) -> str:
        return output_extension(self.target)

    @property
    def mime_type(self) -> str:
        return mime_type(self.target.value)

    @property
    def released(self) -> bool:
        return self.data is None

    def save(self, directory: Path) -> Path:
        """Write the output into a directory.

        Args:
            directory: Destination directory, created if missing

        Returns:
            Path of the written file

        Raises:
            ValueError: If the result was already released
        """
        if self.data is None:
            raise ValueError(f"Result {self.filename} has already been released")
        directory.mkdir(parents=True, exist_ok=True)
        out_path = directory / self.filename
        out_path.write_bytes(self.data)
        return out_path

    def release(self) -> None:
        """Drop the output bytes once they have been delivered."""
        self.data = None


class ConversionOutcome(TypedDict, total=False):
    """Type hints for a user-facing conversion outcome."""

    success: bool
    result: Optional[ConversionResult]
    error: Optional[str]
    error_type: Optional[str]


class Extractor(Protocol):
    """Interface for content extractors."""

    def can_handle(self, extension: Format) -> bool:
        """Check if this extractor reads the given source format."""
        ...

    def extract(self, source: SourceDescriptor, target: Format) -> IntermediateContent:
        """Turn source bytes into intermediate content.

        Args:
            source: File to read
            target: Requested output format, for extractors whose output
                depends on it

        Returns:
            Intermediate content

        Raises:
            ExtractionError: If the file could not be parsed
        """
        ...


class Encoder(Protocol):
    """Interface for content encoders."""

    def can_handle(self, target: Format) -> bool:
        """Check if this encoder writes the given target format."""
        ...

    def encode(
        self, content: IntermediateContent, original_filename: str, target: Format
    ) -> bytes:
        """Turn intermediate content into output bytes.

        Args:
            content: Extracted content
            original_filename: Name of the source file, for provenance headers
            target: Output format to produce

        Returns:
            Encoded file contents
        """
        ...
