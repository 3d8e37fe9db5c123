"""Tests for the conversion orchestrator."""

import io
from typing import Callable, List

import pytest
from docx import Document  # type: ignore

from samples import SAMPLE_BUILDERS
from doc2any.conversion_pipeline import ConversionPipeline, ConversionState, is_empty
from doc2any.conversion_stats import ConversionStats
from doc2any.errors import (
    CodecUnavailableError,
    ConversionCancelled,
    ConversionInProgressError,
    EncodingError,
    ValidationError,
)
from doc2any.extractors.image_extractor import rasterize_svg
from doc2any.file_converter import (
    ConversionRequest,
    PageImageSet,
    PlainText,
    SemanticHTML,
    SourceDescriptor,
)
from doc2any.formats import CONVERSION_MAP, MIME_TYPES, Format
from doc2any.progress_manager import CancellationToken, ProgressEvent, ProgressManager

MAGIC_BYTES = {
    Format.PDF: b"%PDF",
    Format.DOCX: b"PK",
    Format.XLSX: b"PK",
    Format.PPTX: b"PK",
    Format.ODT: b"<?xml",
    Format.RTF: b"{\\rtf1",
    Format.HTML: b"<!DOCTYPE html>",
    Format.TXT: b"=" * 40,
    Format.CSV: b"Original File,",
    Format.PNG: b"\x89PNG",
    Format.JPG: b"\xff\xd8",
    Format.GIF: b"GIF8",
    Format.BMP: b"BM",
    Format.WEBP: b"RIFF",
    Format.ICO: b"\x00\x00\x01\x00",
}


def svg_supported() -> bool:
    try:
        rasterize_svg(SAMPLE_BUILDERS["svg"]())
    except CodecUnavailableError:
        return False
    return True


MATRIX = [
    pytest.param(
        source,
        target,
        id=f"{source.value}-{target.value}",
        marks=pytest.mark.skipif(
            source == Format.SVG and not svg_supported(), reason="cairo library not available"
        ),
    )
    for source, targets in CONVERSION_MAP.items()
    for target in targets
]


@pytest.mark.parametrize("source_format,target", MATRIX)
def test_full_matrix(
    source_format: Format,
    target: Format,
    sample_source: Callable[[str], SourceDescriptor],
    pipeline: ConversionPipeline,
) -> None:
    """Every listed pair yields non-empty output of the declared type."""
    outcome = pipeline.convert(sample_source(source_format.value), target)
    assert outcome["success"], outcome["error"]
    result = outcome["result"]
    assert result is not None
    assert result.data
    assert result.data.startswith(MAGIC_BYTES[target])
    assert result.mime_type == MIME_TYPES[target]
    assert result.size == len(result.data)


def test_csv_to_docx_scenario(pipeline: ConversionPipeline) -> None:
    source = SourceDescriptor.from_bytes("report.csv", b'"a,b",c\n1,2,3')
    result = pipeline.run(ConversionRequest.of(source, "docx"))

    assert result.filename == "report_converted.docx"
    document = Document(io.BytesIO(result.data))
    texts = [p.text for p in document.paragraphs]
    assert texts[:4] == ["Converted Document", "Original: report.csv", "Converted by Doc2Any", ""]
    assert texts[4] == "a,b\tc\n1\t2\t3"


def test_png_to_ico_scenario(png_photo: SourceDescriptor, pipeline: ConversionPipeline) -> None:
    result = pipeline.run(ConversionRequest.of(png_photo, Format.ICO))
    assert result.filename == "photo_converted.ico"
    assert result.data[2:4] == b"\x01\x00"
    assert result.data[6] == 0
    assert result.data[7] == 153


@pytest.mark.parametrize(
    "filename,target,error_type",
    [
        ("virus.exe", "pdf", "unsupported_extension"),
        ("notes.txt", "png", "unsupported_pair"),
        ("slides.pptx", "html", "unsupported_pair"),
        ("notes.txt", "mp3", "unsupported_target"),
    ],
)
def test_rejections(
    filename: str, target: str, error_type: str, pipeline: ConversionPipeline
) -> None:
    source = SourceDescriptor.from_bytes(filename, b"data")
    outcome = pipeline.convert(source, target)
    assert outcome["success"] is False
    assert outcome["result"] is None
    assert outcome["error_type"] == error_type
    assert outcome["error"]


def test_rejected_before_extraction(pipeline: ConversionPipeline) -> None:
    source = SourceDescriptor.from_bytes("notes.txt", b"data")
    with pytest.raises(ValidationError):
        pipeline.run(ConversionRequest(source, Format.PNG))
    assert pipeline.history == [
        ConversionState.VALIDATING,
        ConversionState.FAILED,
        ConversionState.IDLE,
    ]


def test_file_too_large() -> None:
    pipeline = ConversionPipeline(max_file_size=10)
    source = SourceDescriptor.from_bytes("notes.txt", b"x" * 11)
    outcome = pipeline.convert(source, Format.PDF)
    assert outcome["error_type"] == "file_too_large"
    assert "Maximum size is 10 Bytes" in outcome["error"]


def test_state_history_standard(pipeline: ConversionPipeline) -> None:
    source = SourceDescriptor.from_bytes("notes.txt", b"hello")
    progress = ProgressManager()
    pipeline.run(ConversionRequest(source, Format.PDF), progress)

    assert pipeline.history == [
        ConversionState.VALIDATING,
        ConversionState.EXTRACTING,
        ConversionState.ENCODING,
        ConversionState.COMPLETE,
        ConversionState.IDLE,
    ]
    assert [e.percent for e in progress.events] == [5, 30, 70, 100]
    assert not pipeline.busy


def test_state_history_image_route(pipeline: ConversionPipeline) -> None:
    source = SourceDescriptor.from_bytes("plan.pdf", SAMPLE_BUILDERS["pdf"]())
    result = pipeline.run(ConversionRequest(source, Format.PNG))
    assert result.route == "image_preserving"
    assert pipeline.history == [
        ConversionState.VALIDATING,
        ConversionState.IMAGE_PRESERVING,
        ConversionState.COMPLETE,
        ConversionState.IDLE,
    ]


def test_image_route_fallback_runs_standard_path(pipeline: ConversionPipeline) -> None:
    source = SourceDescriptor.from_bytes("plan.docx", SAMPLE_BUILDERS["docx"]())
    result = pipeline.run(ConversionRequest(source, Format.PDF))
    assert result.route == "standard"
    assert pipeline.history[:4] == [
        ConversionState.VALIDATING,
        ConversionState.IMAGE_PRESERVING,
        ConversionState.EXTRACTING,
        ConversionState.ENCODING,
    ]


def test_unreadable_source_gets_placeholder(pipeline: ConversionPipeline) -> None:
    source = SourceDescriptor.from_bytes("old.ppt", b"\xd0\xcf\x11\xe0 binary")
    result = pipeline.run(ConversionRequest(source, Format.TXT))
    text = result.data.decode("utf-8")
    assert "[Content from old.ppt]" in text


def test_empty_source_gets_placeholder(pipeline: ConversionPipeline) -> None:
    source = SourceDescriptor.from_bytes("blank.txt", b"   \n\n")
    result = pipeline.run(ConversionRequest(source, Format.HTML))
    assert b"No text content could be extracted from blank.txt" in result.data


@pytest.mark.parametrize("target", [Format.JPG, Format.PDF])
def test_unreadable_image_is_fatal(target: Format, pipeline: ConversionPipeline) -> None:
    source = SourceDescriptor.from_bytes("broken.png", b"not an image")
    outcome = pipeline.convert(source, target)
    assert outcome["success"] is False
    assert outcome["error_type"] == "not_an_image"


def test_cancellation_between_stages(pipeline: ConversionPipeline, stats: ConversionStats) -> None:
    token = CancellationToken()

    def cancel_on_extract(event: ProgressEvent) -> None:
        if event.stage == "extracting":
            token.cancel()

    source = SourceDescriptor.from_bytes("notes.txt", b"hello")
    progress = ProgressManager(cancel_on_extract)
    with pytest.raises(ConversionCancelled):
        pipeline.run(ConversionRequest(source, Format.PDF), progress, token)

    assert ConversionState.ENCODING not in pipeline.history
    assert pipeline.history[-2:] == [ConversionState.FAILED, ConversionState.IDLE]
    assert progress.latest is not None and progress.latest.stage == "failed"
    assert stats.files_converted == 0


def test_busy_pipeline_rejects_second_run(pipeline: ConversionPipeline) -> None:
    source = SourceDescriptor.from_bytes("notes.txt", b"hello")
    seen: List[str] = []

    def reenter(event: ProgressEvent) -> None:
        if event.stage == "encoding":
            outcome = pipeline.convert(source, Format.TXT)
            seen.append(outcome["error_type"] or "")

    pipeline.run(ConversionRequest(source, Format.PDF), ProgressManager(reenter))
    assert seen == [ConversionInProgressError.error_type]
    assert not pipeline.busy


def test_stats_recorded_on_success(pipeline: ConversionPipeline, stats: ConversionStats) -> None:
    source = SourceDescriptor.from_bytes("notes.txt", b"hello")
    pipeline.run(ConversionRequest(source, Format.PDF))
    pipeline.run(ConversionRequest(source, Format.RTF))
    assert stats.files_converted == 2
    assert stats.total_bytes == 10
    assert ConversionStats(stats.path).files_converted == 2


def test_failure_not_counted(pipeline: ConversionPipeline, stats: ConversionStats) -> None:
    pipeline.convert(SourceDescriptor.from_bytes("a.exe", b"x"), Format.PDF)
    assert stats.files_converted == 0


def test_unknown_encoder() -> None:
    pipeline = ConversionPipeline()
    pipeline.factory.encoders = []
    source = SourceDescriptor.from_bytes("notes.txt", b"hello")
    with pytest.raises(EncodingError) as excinfo:
        pipeline.run(ConversionRequest(source, Format.PDF))
    assert excinfo.value.error_type == "unknown_target"


def test_release_and_save(pipeline: ConversionPipeline, clean_tmp_path) -> None:
    source = SourceDescriptor.from_bytes("notes.txt", b"hello")
    result = pipeline.run(ConversionRequest(source, Format.ODT))
    out_path = result.save(clean_tmp_path)
    assert out_path.name == "notes_converted.fodt"
    assert out_path.read_bytes().startswith(b"<?xml")
    result.release()
    result.release()
    assert result.released
    with pytest.raises(ValueError):
        result.save(clean_tmp_path)


def test_is_empty() -> None:
    assert is_empty(PlainText("  \n"))
    assert not is_empty(PlainText("x"))
    assert is_empty(PageImageSet([]))
    assert not is_empty(SemanticHTML('<p><img src="data:image/png;base64,AA=="></p>'))
    assert is_empty(SemanticHTML("<p> </p>"))
