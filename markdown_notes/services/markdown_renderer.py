from __future__ import annotations

import markdown as md

from markdown_notes.core.sanitize import sanitize_rendered_html
from markdown_notes.settings import (
    PREVIEW_DEBOUNCE_MS_CHARS_PER_STEP,
    PREVIEW_DEBOUNCE_MS_MAX_ADD,
    PREVIEW_DEBOUNCE_MS_MIN,
)

# nl2br: single newlines become <br>, like GFM "breaks"
MD_EXTENSIONS = ["fenced_code", "tables", "toc", "nl2br"]

THEME_CSS = {
    "light": """
    body { font-family: sans-serif; padding: 16px; line-height: 1.5; color: #1f2328; background: #ffffff; }
    code, pre { background: #f5f5f5; }
    th, td { border: 1px solid #d0d7de; padding: 4px 8px; }
    """,
    "dark": """
    body { font-family: sans-serif; padding: 16px; line-height: 1.5; color: #e6edf3; background: #0d1117; }
    code, pre { background: #161b22; }
    th, td { border: 1px solid #30363d; padding: 4px 8px; }
    a { color: #58a6ff; }
    """,
}

BASE_CSS = """
    pre { padding: 12px; overflow-x: auto; }
    table { border-collapse: collapse; }
    img { max-width: 100%; }
    a { text-decoration: none; }
    a:hover { text-decoration: underline; }
"""


class MarkdownRenderer:
    def __init__(self, *, theme: str = "light"):
        self.theme = theme

    def render_html(self, text: str) -> str:
        rendered = md.markdown(text or "", extensions=MD_EXTENSIONS)
        return sanitize_rendered_html(rendered)

    def render_page(self, text: str) -> str:
        css = THEME_CSS.get(self.theme, THEME_CSS["light"]) + BASE_CSS
        return f"""\
<html>
<head>
  <meta charset="utf-8"/>
  <style>{css}</style>
</head>
<body>{self.render_html(text)}</body>
</html>
"""


def compute_preview_debounce_ms(
    txt_len: int,
    *,
    min_ms: int = PREVIEW_DEBOUNCE_MS_MIN,
    max_add_ms: int = PREVIEW_DEBOUNCE_MS_MAX_ADD,
    chars_per_step: int = PREVIEW_DEBOUNCE_MS_CHARS_PER_STEP,
) -> int:
    """Larger notes => render the preview less often."""
    if txt_len <= 0 or chars_per_step <= 0:
        return min_ms
    steps = txt_len // chars_per_step
    return min_ms + min(max_add_ms, steps * min_ms)
