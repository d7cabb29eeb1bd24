"""
Markdown to PDF converter package.
Converts a markdown document to PDF with syntax highlighting, Mermaid diagrams,
configurable paper geometry and an optional watermark.

MIT License - Copyright (c) 2025 Markdown to PDF Converter
"""

__version__ = "1.0.0"

from .errors import (
    ConversionError,
    DiagramRenderError,
    EngineLaunchError,
    OutputPathError,
    PageLoadError,
    PDFExportError,
    PostConditionError,
    RequestValidationError,
)
from .request import ConversionRequest, PaperSpec
from .markup import MarkupTransformer
from .template import assemble_page
from .paths import ensure_unique, resolve_output_path
from .renderer import PDFRenderer
from .config import Config
from .converter import MarkdownToPDFConverter, create_pdf_from_markdown

__all__ = [
    "ConversionError",
    "DiagramRenderError",
    "EngineLaunchError",
    "OutputPathError",
    "PageLoadError",
    "PDFExportError",
    "PostConditionError",
    "RequestValidationError",
    "ConversionRequest",
    "PaperSpec",
    "MarkupTransformer",
    "assemble_page",
    "ensure_unique",
    "resolve_output_path",
    "PDFRenderer",
    "Config",
    "MarkdownToPDFConverter",
    "create_pdf_from_markdown",
]
