#!/usr/bin/env python3
"""
Conversion request and paper geometry value objects.

Validation happens on construction so an invalid request is rejected before
any markup is rendered or any browser is launched.

MIT License - Copyright (c) 2025 Markdown to PDF Converter
"""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

from .errors import RequestValidationError

# Portrait (width, height) of every supported paper format
PAPER_DIMENSIONS: Dict[str, Tuple[str, str]] = {
    "letter": ("8.5in", "11in"),
    "legal": ("8.5in", "14in"),
    "tabloid": ("11in", "17in"),
    "a3": ("297mm", "420mm"),
    "a4": ("210mm", "297mm"),
    "a5": ("148mm", "210mm"),
}

# Names the engine's export call expects
ENGINE_FORMAT_NAMES: Dict[str, str] = {
    "letter": "Letter",
    "legal": "Legal",
    "tabloid": "Tabloid",
    "a3": "A3",
    "a4": "A4",
    "a5": "A5",
}

ORIENTATIONS = ("portrait", "landscape")

BORDER_PATTERN = re.compile(r'^[0-9]+(\.[0-9]+)?(cm|mm|in|px)$')
WATERMARK_PATTERN = re.compile(r'^[A-Z0-9\s-]+$')
WATERMARK_MAX_LENGTH = 15

DEFAULT_FILENAME = "output.pdf"
DEFAULT_FORMAT = "letter"
DEFAULT_ORIENTATION = "portrait"
DEFAULT_BORDER = "20mm"


@dataclass(frozen=True)
class PaperSpec:
    """Paper format, orientation and uniform border of the exported PDF."""

    format: str = DEFAULT_FORMAT
    orientation: str = DEFAULT_ORIENTATION
    border: str = DEFAULT_BORDER

    def __post_init__(self):
        if self.format not in PAPER_DIMENSIONS:
            allowed = ", ".join(PAPER_DIMENSIONS)
            raise RequestValidationError("paperFormat", f"'{self.format}' is not one of: {allowed}")
        if self.orientation not in ORIENTATIONS:
            raise RequestValidationError("paperOrientation", f"'{self.orientation}' is not one of: portrait, landscape")
        if not isinstance(self.border, str) or not BORDER_PATTERN.fullmatch(self.border):
            raise RequestValidationError(
                "paperBorder", f"'{self.border}' must be a number followed by cm, mm, in or px (e.g. '20mm')"
            )

    @property
    def landscape(self) -> bool:
        return self.orientation == "landscape"

    @property
    def width(self) -> str:
        """CSS width of the page in the requested orientation."""
        portrait_width, portrait_height = PAPER_DIMENSIONS[self.format]
        return portrait_height if self.landscape else portrait_width

    @property
    def height(self) -> str:
        """CSS height of the page in the requested orientation."""
        portrait_width, portrait_height = PAPER_DIMENSIONS[self.format]
        return portrait_width if self.landscape else portrait_height

    @property
    def engine_format(self) -> str:
        return ENGINE_FORMAT_NAMES[self.format]

    def margins(self) -> Dict[str, str]:
        """Uniform margins on all four sides."""
        return {'top': self.border, 'right': self.border, 'bottom': self.border, 'left': self.border}


@dataclass(frozen=True)
class ConversionRequest:
    """One validated Markdown to PDF request.

    Args:
        markdown: Markdown source text
        output_filename: Requested filename or path; None means the default filename
        paper: Paper geometry
        watermark: Optional watermark text ('' for none)
        base_dir: Directory relative image paths resolve against
    """

    markdown: str
    output_filename: Optional[str] = None
    paper: PaperSpec = field(default_factory=PaperSpec)
    watermark: str = ""
    base_dir: Optional[Path] = None

    def __post_init__(self):
        if not isinstance(self.markdown, str):
            raise RequestValidationError("markdown", "is required and must be a string")
        if self.output_filename is not None:
            if not isinstance(self.output_filename, str) or not self.output_filename.strip():
                raise RequestValidationError("outputFilename", "must be a non-empty string")
        validate_watermark(self.watermark)

    @classmethod
    def from_dict(cls, arguments: Optional[Mapping[str, Any]]) -> "ConversionRequest":
        """Build a request from the tool-call argument object.

        Accepts ``markdown`` (required), ``outputFilename`` or ``outputPath``,
        ``paperFormat``, ``paperOrientation``, ``paperBorder`` and ``watermark``.
        """
        if not arguments:
            raise RequestValidationError("arguments", "no arguments provided")
        if "markdown" not in arguments:
            raise RequestValidationError("markdown", "is required")

        output_filename = arguments.get("outputFilename") or arguments.get("outputPath")
        paper = PaperSpec(
            format=arguments.get("paperFormat") or DEFAULT_FORMAT,
            orientation=arguments.get("paperOrientation") or DEFAULT_ORIENTATION,
            border=arguments.get("paperBorder") or DEFAULT_BORDER,
        )
        base_dir = arguments.get("baseDir")
        return cls(
            markdown=arguments["markdown"],
            output_filename=output_filename,
            paper=paper,
            watermark=arguments.get("watermark") or "",
            base_dir=Path(base_dir) if base_dir else None,
        )


def validate_watermark(watermark: str) -> str:
    """Check watermark text against the length and character rules. Empty means no watermark."""
    if watermark is None or watermark == "":
        return ""
    if not isinstance(watermark, str):
        raise RequestValidationError("watermark", "must be a string")
    if len(watermark) > WATERMARK_MAX_LENGTH:
        raise RequestValidationError(
            "watermark", f"'{watermark}' is longer than {WATERMARK_MAX_LENGTH} characters"
        )
    if not WATERMARK_PATTERN.fullmatch(watermark):
        raise RequestValidationError(
            "watermark", f"'{watermark}' may only contain uppercase letters, digits, spaces and hyphens"
        )
    return watermark
