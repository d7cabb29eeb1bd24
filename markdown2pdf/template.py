#!/usr/bin/env python3
"""
Page shell assembly and running header/footer templates.

MIT License - Copyright (c) 2025 Markdown to PDF Converter
"""

import html
import re
from pathlib import Path
from typing import Optional, Tuple

from .markup import DIAGRAM_CLASS
from .request import PaperSpec

DEFAULT_MERMAID_URL = "https://cdn.jsdelivr.net/npm/mermaid@10/dist/mermaid.min.js"

# Element ids/classes the renderer queries after the settle delay
DIAGRAM_ERROR_ID = "diagram-error"
WATERMARK_CLASS = "watermark"

# Watermark font size as a fraction of the page width
WATERMARK_SCALE = 0.14

DIAGRAM_SCRIPT = """
  <script>
    window.addEventListener('load', function () {
      var errorSurface = document.getElementById('%(error_id)s');
      function showDiagramError(e) {
        errorSurface.style.display = 'block';
        errorSurface.innerText = (e && e.message) ? e.message : String(e);
      }
      try {
        mermaid.initialize({ startOnLoad: false });
        var rendering = mermaid.run({ nodes: document.querySelectorAll('.%(diagram_class)s') });
        if (rendering && typeof rendering.catch === 'function') {
          rendering.catch(showDiagramError);
        }
      } catch (e) {
        showDiagramError(e);
      }
    });
  </script>"""

RUNNING_TEMPLATE = """
    <style>
      .watermark-%(position)s {
        width: 100%%;
        font-size: 24px;
        color: rgba(0,0,0,0.1);
        -webkit-print-color-adjust: exact;
        display: flex;
        justify-content: center;
        align-items: center;
        height: 100%%;
        margin: 0;
        padding: 0;
      }
    </style>
    <div class="watermark-%(position)s">%(text)s</div>
"""


def has_diagrams(fragment: str) -> bool:
    """Whether the fragment contains diagram placeholders."""
    return f'class="{DIAGRAM_CLASS}"' in fragment


def extract_title(markdown: str, default: str = "Document") -> str:
    """Extract the document title from markdown content.

    Preference order:
    1) First ATX H1 heading starting with '# '
    2) Setext H1 style (line followed by '===')
    3) The given default
    """
    lines = markdown.splitlines()

    for line in lines:
        stripped = line.strip()
        if stripped.startswith('# '):
            heading_text = stripped[2:].strip().rstrip('#').strip()
            if heading_text:
                return heading_text

    for i in range(len(lines) - 1):
        current_line = lines[i].strip()
        underline = lines[i + 1].strip()
        if current_line and re.fullmatch(r"=+", underline):
            return current_line

    return default


def page_geometry_css(paper: PaperSpec) -> str:
    """@page rule for the requested format, orientation and border."""
    return f"""
    @page {{
      size: {paper.width} {paper.height};
      margin: {paper.border};
    }}"""


def running_templates(watermark: str) -> Tuple[str, str]:
    """Header and footer templates repeating the watermark on every page."""
    text = html.escape(watermark)
    return (
        RUNNING_TEMPLATE % {"position": "header", "text": text},
        RUNNING_TEMPLATE % {"position": "footer", "text": text},
    )


def assemble_page(
    fragment: str,
    paper: PaperSpec,
    watermark: str = "",
    title: str = "Document",
    base_dir: Optional[Path] = None,
    mermaid_url: str = DEFAULT_MERMAID_URL,
) -> str:
    """Wrap an HTML fragment in a printable page shell.

    The output depends only on the arguments, so identical inputs produce an
    identical document.

    Args:
        fragment: HTML produced by MarkupTransformer
        paper: Page geometry
        watermark: Optional overlay text, '' for none
        title: Document title
        base_dir: Directory relative resource paths resolve against
        mermaid_url: Script URL of the diagram engine

    Returns:
        Complete HTML document
    """
    diagrams = has_diagrams(fragment)

    base_tag = ""
    if base_dir is not None:
        base_tag = f'\n  <base href="{html.escape(Path(base_dir).resolve().as_uri())}/">'

    diagram_engine_tag = ""
    diagram_script = ""
    error_surface = ""
    if diagrams:
        error_surface = f'\n    <div id="{DIAGRAM_ERROR_ID}" style="display: none;"></div>'
        diagram_engine_tag = f'\n  <script src="{html.escape(mermaid_url)}"></script>'
        diagram_script = DIAGRAM_SCRIPT % {"error_id": DIAGRAM_ERROR_ID, "diagram_class": DIAGRAM_CLASS}

    watermark_tag = ""
    if watermark:
        watermark_tag = f'\n    <div class="{WATERMARK_CLASS}">{html.escape(watermark)}</div>'

    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <title>{html.escape(title)}</title>{base_tag}{diagram_engine_tag}
  <style>{page_geometry_css(paper)}
    html, body {{
      margin: 0;
      padding: 0;
    }}
    .page {{
      position: relative;
    }}
    .content {{
      position: relative;
      z-index: 1;
    }}
    .{WATERMARK_CLASS} {{
      position: fixed;
      left: 0;
      top: 0;
      right: 0;
      bottom: 0;
      display: flex;
      justify-content: center;
      align-items: center;
      font-size: calc({paper.width} * {WATERMARK_SCALE});
      color: rgba(0, 0, 0, 0.15);
      font-family: Arial, sans-serif;
      white-space: nowrap;
      pointer-events: none;
      z-index: 0;
      transform: rotate(-45deg);
    }}
    #{DIAGRAM_ERROR_ID} {{
      color: #c0392b;
      border: 1px solid #c0392b;
      padding: 0.5em;
      margin-bottom: 1em;
      white-space: pre-wrap;
    }}
  </style>
</head>
<body>
  <div class="page">{error_surface}
    <div class="content">
{fragment}
    </div>{watermark_tag}
  </div>{diagram_script}
</body>
</html>
"""
