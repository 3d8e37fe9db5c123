"""Standalone HTML page output."""

import html
import logging
import re
from typing import Set

from ..file_converter import IntermediateContent, SemanticHTML
from ..formats import Format
from ..logging_utils import log_timing
from ..text_utils import DOCUMENT_TITLE, TOOL_NAME

logger = logging.getLogger(__name__)

PAGE_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{name} - Converted by {tool}</title>
    <style>
        body {{
            font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, Oxygen, Ubuntu, sans-serif;
            line-height: 1.6;
            max-width: 800px;
            margin: 0 auto;
            padding: 40px 20px;
            color: #333;
            background: #f9f9f9;
        }}
        .header {{
            text-align: center;
            margin-bottom: 30px;
            padding-bottom: 20px;
            border-bottom: 2px solid #e0e0e0;
        }}
        .header h1 {{
            margin: 0 0 10px 0;
            color: #2c3e50;
        }}
        .header p {{
            margin: 0;
            color: #7f8c8d;
            font-size: 14px;
        }}
        .content {{
            background: white;
            padding: 30px;
            border-radius: 8px;
            box-shadow: 0 2px 10px rgba(0,0,0,0.1);
        }}
        .content p {{
            margin: 0 0 15px 0;
        }}
        .content img {{
            max-width: 100%;
        }}
        .footer {{
            text-align: center;
            margin-top: 30px;
            color: #95a5a6;
            font-size: 12px;
        }}
    </style>
</head>
<body>
    <div class="header">
        <h1>{title}</h1>
        <p>Original: {name}</p>
    </div>
    <div class="content">
        {body}
    </div>
    <div class="footer">
        Converted by {tool} File Converter
    </div>
</body>
</html>
"""


def text_to_html(text: str) -> str:
    """Escape text and turn blank lines into paragraphs, newlines into breaks."""
    escaped = text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")
    escaped = re.sub(r"\n\n+", "</p><p>", escaped).replace("\n", "<br>")
    return f"<p>{escaped}</p>"


def render_page(body: str, original_filename: str) -> str:
    return PAGE_TEMPLATE.format(
        name=html.escape(original_filename),
        tool=TOOL_NAME,
        title=DOCUMENT_TITLE,
        body=body,
    )


class HTMLEncoder:
    """Writes a styled HTML page around the converted content."""

    SUPPORTED_TARGETS: Set[Format] = {Format.HTML}

    def can_handle(self, target: Format) -> bool:
        return target in self.SUPPORTED_TARGETS

    @log_timing
    def encode(
        self, content: IntermediateContent, original_filename: str, target: Format
    ) -> bytes:
        if isinstance(content, SemanticHTML):
            # Already markup; wrap it as is
            body = content.html
        else:
            body = text_to_html(content.as_text())
        logger.info("Writing HTML page for %s", original_filename)
        return render_page(body, original_filename).encode("utf-8")
