#!/usr/bin/env python3
"""
Error types raised by the conversion pipeline.

Every failure surfaces as a ConversionError carrying the pipeline phase it
happened in and a details dict the orchestrator enriches with the output path
and paper options.

MIT License - Copyright (c) 2025 Markdown to PDF Converter
"""

from typing import Any, Dict, Optional


class ConversionError(Exception):
    """Base class for all pipeline failures."""

    default_phase = "convert"

    def __init__(self, message: str, phase: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.phase = phase or self.default_phase
        self.details: Dict[str, Any] = dict(details or {})

    def to_dict(self) -> Dict[str, Any]:
        """Structured error payload for callers."""
        return {
            "message": self.message,
            "phase": self.phase,
            "details": dict(self.details),
        }

    def __str__(self) -> str:
        return f"{self.message} (phase: {self.phase})"


class RequestValidationError(ConversionError, ValueError):
    """Malformed or missing request fields. Raised before any engine is launched."""

    default_phase = "validate"

    def __init__(self, field: str, message: str):
        super().__init__(f"Invalid '{field}': {message}", details={"field": field})
        self.field = field


class OutputPathError(ConversionError):
    """Directory creation or temporary file creation failed."""

    default_phase = "resolve"

    def __init__(self, message: str, path: str, phase: Optional[str] = None):
        super().__init__(message, phase=phase, details={"attempted_path": path})
        self.path = path


class EngineLaunchError(ConversionError):
    """No launch strategy could start a rendering engine."""

    default_phase = "launch"


class PageLoadError(ConversionError):
    """Navigation to the page shell failed or did not settle in time."""

    default_phase = "load"

    def __init__(self, message: str, timed_out: bool = False, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details=details)
        self.timed_out = timed_out


class DiagramRenderError(ConversionError):
    """A diagram failed to render inside the page."""

    default_phase = "stabilize"

    def __init__(self, page_message: str):
        super().__init__(
            f"Diagram rendering failed: {page_message}",
            details={"page_message": page_message},
        )
        self.page_message = page_message


class PDFExportError(ConversionError):
    """The engine's PDF generation call failed."""

    default_phase = "export"


class PostConditionError(ConversionError):
    """Engine reported success but no PDF exists at the destination."""

    default_phase = "verify"
