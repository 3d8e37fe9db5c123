"""Sample files built in memory for the tests."""

import io
import zipfile
from typing import Callable, Dict

import fitz  # type: ignore
import openpyxl  # type: ignore
from docx import Document  # type: ignore
from PIL import Image
from pptx import Presentation  # type: ignore
from pptx.util import Inches  # type: ignore

ODT_CONTENT = (
    '<?xml version="1.0" encoding="UTF-8"?>'
    '<office:document-content'
    ' xmlns:office="urn:oasis:names:tc:opendocument:xmlns:office:1.0"'
    ' xmlns:text="urn:oasis:names:tc:opendocument:xmlns:text:1.0">'
    "<office:body><office:text>"
    "<text:h>Quarterly notes</text:h>"
    "<text:p>First<text:s text:c=\"2\"/>line<text:line-break/>second line</text:p>"
    "</office:text></office:body></office:document-content>"
)


def make_png(width: int = 500, height: int = 300, color=(200, 40, 40)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buffer, format="PNG")
    return buffer.getvalue()


def make_image(fmt: str, width: int = 64, height: int = 48) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), (30, 120, 200)).save(buffer, format=fmt)
    return buffer.getvalue()


def make_pdf(pages: int = 1, width: float = 595, height: float = 842, text: str = "Hello PDF") -> bytes:
    doc = fitz.open()
    for number in range(pages):
        page = doc.new_page(width=width, height=height)
        page.insert_text((20, 40), f"{text} {number + 1}")
    data = doc.tobytes()
    doc.close()
    return data


def make_pdf_with_image() -> bytes:
    doc = fitz.open()
    page = doc.new_page()
    page.insert_text((72, 72), "Figure below")
    page.insert_image(fitz.Rect(72, 100, 272, 220), stream=make_png(200, 120))
    data = doc.tobytes()
    doc.close()
    return data


def make_docx(with_image: bool = False) -> bytes:
    document = Document()
    document.add_heading("Project Plan", level=1)
    document.add_paragraph("The first milestone ships in May.")
    if with_image:
        document.add_picture(io.BytesIO(make_png(120, 80)))
    document.add_paragraph("Budget review follows.")
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


def make_pptx() -> bytes:
    presentation = Presentation()
    for text in ("Welcome deck", "Roadmap items"):
        slide = presentation.slides.add_slide(presentation.slide_layouts[6])
        box = slide.shapes.add_textbox(Inches(1), Inches(1), Inches(6), Inches(1))
        box.text_frame.text = text
    buffer = io.BytesIO()
    presentation.save(buffer)
    return buffer.getvalue()


def make_xlsx() -> bytes:
    workbook = openpyxl.Workbook()
    sheet = workbook.active
    sheet.append(["Name", "Qty"])
    sheet.append(["Apples", 3])
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def make_odt() -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as package:
        package.writestr("mimetype", "application/vnd.oasis.opendocument.text")
        package.writestr("content.xml", ODT_CONTENT)
    return buffer.getvalue()


def make_zip(members: Dict[str, str]) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as package:
        for name, content in members.items():
            package.writestr(name, content)
    return buffer.getvalue()


SAMPLE_BUILDERS: Dict[str, Callable[[], bytes]] = {
    "pdf": make_pdf,
    "doc": lambda: b"Plain text saved with a .doc name\nSecond line",
    "docx": make_docx,
    "odt": make_odt,
    "txt": lambda: b"Meeting notes\n\nAction items follow.",
    "rtf": lambda: b"{\\rtf1\\ansi Hello RTF}",
    "xls": lambda: b"not a real workbook",
    "xlsx": make_xlsx,
    "ppt": lambda: b"not a real presentation",
    "pptx": make_pptx,
    "html": lambda: b"<html><body><h1>Title</h1><p>Body text</p></body></html>",
    "csv": lambda: b'"a,b",c\n1,2,3\n',
    "jpg": lambda: make_image("JPEG"),
    "jpeg": lambda: make_image("JPEG"),
    "png": lambda: make_image("PNG"),
    "gif": lambda: make_image("GIF"),
    "bmp": lambda: make_image("BMP"),
    "webp": lambda: make_image("WEBP"),
    "tiff": lambda: make_image("TIFF"),
    "tif": lambda: make_image("TIFF"),
    "ico": lambda: make_image("ICO", 32, 32),
    "svg": lambda: (
        b'<svg xmlns="http://www.w3.org/2000/svg" width="40" height="30">'
        b'<rect width="40" height="30" fill="#3366cc"/></svg>'
    ),
}
