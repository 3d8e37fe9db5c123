"""Tests for the image-preserving conversion routes."""

import io

from docx import Document  # type: ignore
from PIL import Image

from samples import make_docx, make_pdf, make_pdf_with_image, make_png
from doc2any.conversion_pipeline import ConversionPipeline
from doc2any.encoders.pdf_encoder import PDFEncoder
from doc2any.extractors.document_extractor import docx_to_text
from doc2any.file_converter import ConversionRequest, PlainText, SourceDescriptor
from doc2any.formats import Format
from doc2any.image_preserving import (
    MAX_RENDERED_PAGES,
    ROUTE_NAME,
    ImagePreservingSelector,
    clamp_size,
    decode_data_uri,
    render_pdf_pages,
)
from doc2any.progress_manager import ProgressManager


def request_for(filename: str, data: bytes, target: Format) -> ConversionRequest:
    return ConversionRequest(SourceDescriptor.from_bytes(filename, data), target)


def test_route_selection() -> None:
    selector = ImagePreservingSelector()
    pdf = make_pdf()
    assert selector.route_for(request_for("a.pdf", pdf, Format.PNG)) is not None
    assert selector.route_for(request_for("a.pdf", pdf, Format.DOCX)) is not None
    assert selector.route_for(request_for("a.pdf", pdf, Format.TXT)) is None
    assert selector.route_for(request_for("a.docx", b"", Format.PDF)) is not None
    assert selector.route_for(request_for("a.docx", b"", Format.TXT)) is None
    assert selector.route_for(request_for("a.png", b"", Format.ICO)) is not None


def test_decode_data_uri() -> None:
    assert decode_data_uri("data:image/png;base64,aGVsbG8=") == b"hello"
    assert decode_data_uri("https://example.com/a.png") is None
    assert decode_data_uri(None) is None


def test_clamp_size() -> None:
    assert clamp_size(100, 50, 200, 200) == (100, 50)
    assert clamp_size(400, 100, 200, 200) == (200, 50)


def test_render_pdf_pages_limit() -> None:
    pdf = make_pdf(pages=3, width=100, height=100)
    images, total = render_pdf_pages(pdf, max_pages=2)
    assert total == 3
    assert [img.size for img in images] == [(200, 200), (200, 200)]


def test_long_pdf_to_png_truncates() -> None:
    pdf = make_pdf(pages=25, width=100, height=100)
    progress = ProgressManager()
    result = ImagePreservingSelector().attempt(request_for("long.pdf", pdf, Format.PNG), progress)

    assert result is not None
    assert result.route == ROUTE_NAME
    assert result.notices == [f"Converted first {MAX_RENDERED_PAGES} of 25 pages"]
    assert progress.notices == result.notices

    image = Image.open(io.BytesIO(result.data))
    assert image.size == (200, 200 * MAX_RENDERED_PAGES)

    rendered = [e for e in progress.events if e.stage == ROUTE_NAME]
    assert rendered[-1].percent == 85
    percents = [e.percent for e in rendered]
    assert percents == sorted(percents)


def test_pdf_to_ico_uses_first_page() -> None:
    pdf = make_pdf(pages=3, width=100, height=100)
    result = ImagePreservingSelector().attempt(request_for("deck.pdf", pdf, Format.ICO))
    assert result is not None
    assert result.notices == []
    assert result.data[2:4] == b"\x01\x00"


def test_pdf_with_image_to_docx() -> None:
    result = ImagePreservingSelector().attempt(
        request_for("figure.pdf", make_pdf_with_image(), Format.DOCX)
    )
    assert result is not None
    assert result.route == ROUTE_NAME
    document = Document(io.BytesIO(result.data))
    assert len(document.inline_shapes) >= 1
    texts = [p.text for p in document.paragraphs]
    assert texts[0] == "Converted Document"
    assert any("Figure below" in text for text in texts)


def test_pdf_without_images_is_inapplicable() -> None:
    selector = ImagePreservingSelector()
    assert selector.attempt(request_for("plain.pdf", make_pdf(), Format.DOCX)) is None


def test_docx_with_image_to_pdf() -> None:
    result = ImagePreservingSelector().attempt(
        request_for("plan.docx", make_docx(with_image=True), Format.PDF)
    )
    assert result is not None
    assert result.data.startswith(b"%PDF")
    assert result.route == ROUTE_NAME


def test_docx_without_images_matches_standard_pipeline() -> None:
    data = make_docx()
    result = ConversionPipeline().run(request_for("plan.docx", data, Format.PDF))
    expected = PDFEncoder().encode(PlainText(docx_to_text(data)), "plan.docx", Format.PDF)
    assert result.route == "standard"
    assert result.data == expected


def test_broken_source_falls_back() -> None:
    selector = ImagePreservingSelector()
    assert selector.attempt(request_for("bad.docx", b"not a zip", Format.PDF)) is None
    assert selector.attempt(request_for("bad.pdf", b"not a pdf", Format.PNG)) is None


def test_image_to_image() -> None:
    png = make_png(500, 300)
    result = ImagePreservingSelector().attempt(request_for("photo.png", png, Format.JPG))
    assert result is not None
    assert result.filename == "photo_converted.jpg"
    assert Image.open(io.BytesIO(result.data)).size == (500, 300)
