from markdown_notes.core.sanitize import sanitize_rendered_html
from markdown_notes.services.markdown_renderer import MarkdownRenderer, compute_preview_debounce_ms


def test_renders_markdown():
    html = MarkdownRenderer().render_html("# Title\n\n**bold** and `code`")
    assert "<h1" in html and "Title</h1>" in html
    assert "<strong>bold</strong>" in html
    assert "<code>code</code>" in html


def test_single_newline_becomes_break():
    html = MarkdownRenderer().render_html("line one\nline two")
    assert "<br" in html


def test_fenced_code_and_tables():
    text = "```python\nprint(1)\n```\n\n| a | b |\n|---|---|\n| 1 | 2 |\n"
    html = MarkdownRenderer().render_html(text)
    assert "<pre>" in html
    assert "<table>" in html


def test_script_is_stripped():
    html = MarkdownRenderer().render_html("hello <script>alert(1)</script>")
    assert "<script>" not in html


def test_sanitize_drops_event_handlers():
    out = sanitize_rendered_html('<a href="https://x.org" onclick="evil()">x</a>')
    assert "onclick" not in out
    assert 'href="https://x.org"' in out


def test_javascript_links_dropped():
    out = sanitize_rendered_html('<a href="javascript:alert(1)">x</a>')
    assert "javascript" not in out


def test_page_follows_theme():
    renderer = MarkdownRenderer(theme="dark")
    assert "#0d1117" in renderer.render_page("x")
    renderer.theme = "light"
    assert "#ffffff" in renderer.render_page("x")


def test_preview_debounce_grows_with_size():
    assert compute_preview_debounce_ms(-1) == 150
    assert compute_preview_debounce_ms(100) == 150
    assert compute_preview_debounce_ms(4000) == 450
    assert compute_preview_debounce_ms(10**6) == 650
