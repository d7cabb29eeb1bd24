#!/usr/bin/env python3
"""
Output path resolution for generated PDFs.

Collision avoidance is a single-process existence check: two processes
resolving the same name at the same moment can still pick the same path.

MIT License - Copyright (c) 2025 Markdown to PDF Converter
"""

import os
from pathlib import Path
from typing import Optional

from .errors import OutputPathError
from .request import DEFAULT_FILENAME


def _absolute(path: str) -> Path:
    return Path(os.path.abspath(os.path.expanduser(path)))


def normalize_filename(filename: str) -> str:
    """Append a .pdf suffix unless the name already has one (case-insensitive)."""
    if filename.lower().endswith('.pdf'):
        return filename
    return f"{filename}.pdf"


def select_output_dir(requested: Optional[str] = None, override_dir: Optional[str] = None) -> Path:
    """Pick the output directory.

    Precedence: override directory, then the directory part of the requested
    path, then the user's home directory. A bare filename has no directory part.
    """
    if override_dir:
        return _absolute(override_dir)
    if requested:
        parent = Path(os.path.expanduser(requested)).parent
        if parent != Path('.'):
            return _absolute(str(parent))
    return _absolute(str(Path.home()))


def ensure_directory(directory: Path) -> Path:
    """Create the directory (and parents) if missing."""
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise OutputPathError(f"Cannot create output directory: {e}", str(directory)) from e
    if not directory.is_dir():
        raise OutputPathError("Output path exists but is not a directory", str(directory))
    return directory


def resolve_output_path(requested: Optional[str] = None, override_dir: Optional[str] = None) -> Path:
    """Resolve the absolute destination for a requested filename or path.

    Args:
        requested: Filename or path asked for by the caller; None uses the default name
        override_dir: Directory that takes precedence over everything else

    Returns:
        Absolute path inside an existing directory. Not yet checked for collisions.
    """
    directory = ensure_directory(select_output_dir(requested, override_dir))
    name = Path(os.path.expanduser(requested)).name if requested else DEFAULT_FILENAME
    return directory / normalize_filename(name or DEFAULT_FILENAME)


def ensure_unique(path: Path) -> Path:
    """Return path, or the first free name-N variant of it (name-1.pdf, name-2.pdf, ...)."""
    path = _absolute(str(path))
    if not path.exists():
        return path

    counter = 1
    while True:
        candidate = path.with_name(f"{path.stem}-{counter}{path.suffix}")
        if not candidate.exists():
            return candidate
        counter += 1
