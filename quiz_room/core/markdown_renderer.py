"""Markdown rendering for generated question text and explanations.

Generated questions often contain inline code, emphasis or short lists.
The API returns both the raw markdown and an HTML fragment so clients do not
need their own markdown engine.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from markdown_it import MarkdownIt


@dataclass(slots=True)
class MarkdownRenderer:
    """Converts markdown into HTML fragments."""

    enable_html: bool = False
    _markdown: MarkdownIt = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._markdown = (
            MarkdownIt("commonmark", {"html": self.enable_html})
            .enable("table")
            .enable("strikethrough")
        )

    def render_fragment(self, markdown_text: str) -> str:
        """Render a markdown string into a block-level HTML fragment."""

        sanitized = markdown_text.strip()
        if not sanitized:
            return ""
        return self._markdown.render(sanitized)

    def render_inline(self, markdown_text: str) -> str:
        """Render a single line (such as an answer option) without a wrapping paragraph."""

        return self._markdown.renderInline(markdown_text.strip())


renderer = MarkdownRenderer()
# Shared instance; MarkdownIt is safe to reuse for read-only renders.
