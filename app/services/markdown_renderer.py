"""
Markdown Renderer
=================
Renders document bodies to HTML previews with markdown-it-py.

Uses the JS-compatible default preset with raw HTML, linkify and
typographic replacements enabled, so previews match what the site build
renders.
"""
from markdown_it import MarkdownIt

_md = MarkdownIt(
    "js-default",
    {"html": True, "linkify": True, "typographer": True},
)


def render_preview(content: str) -> str:
    """Render markdown content to HTML. Blank content renders to ""."""
    if not content.strip():
        return ""
    return _md.render(content)
