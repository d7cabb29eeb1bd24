#!/usr/bin/env python3
"""
Markdown to HTML fragment conversion.

Fenced code blocks are dispatched on their language tag: diagram languages
become placeholders the page shell renders client-side, everything else is
highlighted with Pygments (explicit grammar first, then automatic detection,
then plain escaped text).

MIT License - Copyright (c) 2025 Markdown to PDF Converter
"""

import html
from typing import Optional

from markdown_it import MarkdownIt
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name, guess_lexer
from pygments.util import ClassNotFound

from .console import ConsoleLogMixin

# Fence languages executed by the page shell instead of highlighted
DIAGRAM_LANGUAGES = frozenset({"mermaid"})

DIAGRAM_CLASS = "mermaid"
HIGHLIGHT_CLASS = "highlight"


def highlight_stylesheet(style: str = "default") -> str:
    """CSS rules for the highlighted markup produced by MarkupTransformer."""
    return HtmlFormatter(style=style).get_style_defs(f".{HIGHLIGHT_CLASS}")


class MarkupTransformer(ConsoleLogMixin):
    """Converts Markdown source into an HTML fragment."""

    def __init__(self, debug: bool = False):
        self.debug = debug
        self._formatter = HtmlFormatter(nowrap=True)
        self._md = MarkdownIt("commonmark", {"breaks": True, "html": True})
        self._md.enable(["table", "strikethrough"])
        self._md.renderer.rules["fence"] = self._render_fence

    def render(self, markdown: str) -> str:
        """Render Markdown to an HTML fragment. Pure function of its input."""
        return self._md.render(markdown)

    def _render_fence(self, tokens, idx, options, env) -> str:
        token = tokens[idx]
        info = token.info.strip() if token.info else ""
        language = info.split()[0].lower() if info else ""

        if language in DIAGRAM_LANGUAGES:
            # Mermaid decodes entities from innerHTML, so the text content stays verbatim
            return f'<div class="{DIAGRAM_CLASS}">{html.escape(token.content, quote=False)}</div>\n'

        class_attr = f' class="language-{html.escape(language)}"' if language else ""
        body = self.highlight_code(token.content, language)
        return f'<pre class="{HIGHLIGHT_CLASS}"><code{class_attr}>{body}</code></pre>\n'

    def highlight_code(self, code: str, language: Optional[str] = None) -> str:
        """Highlight a code block. Never raises; falls back to escaped plain text.

        Args:
            code: Raw code block content
            language: Language tag from the fence, may be empty

        Returns:
            HTML markup for the inside of a <code> element
        """
        if language:
            try:
                lexer = get_lexer_by_name(language)
                return highlight(code, lexer, self._formatter)
            except ClassNotFound:
                self._log_debug(f"No grammar for '{language}', trying automatic detection")
            except Exception as e:
                self._log_debug(f"Highlighting as '{language}' failed: {e}")

        try:
            lexer = guess_lexer(code)
            return highlight(code, lexer, self._formatter)
        except ClassNotFound:
            self._log_debug("Automatic language detection found no grammar, rendering plain text")
        except Exception as e:
            self._log_debug(f"Automatic highlighting failed: {e}")

        return html.escape(code)
