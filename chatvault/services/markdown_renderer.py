"""
Markdown to HTML rendering for uploaded chat exports
"""

from html import escape
from typing import Optional

import markdown

MARKDOWN_EXTENSIONS = ["fenced_code", "tables", "sane_lists"]

HTML_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>{title}</title>
</head>
<body>
{body}
</body>
</html>
"""


def render_markdown(text: str, title: Optional[str] = None) -> str:
    """
    Render Markdown into a standalone HTML document

    Args:
        text: Markdown source
        title: Document title (escaped)

    Returns:
        str: HTML document
    """
    body = markdown.markdown(text or "", extensions=MARKDOWN_EXTENSIONS, output_format="html")
    return HTML_TEMPLATE.format(title=escape(title or "Chat"), body=body)
