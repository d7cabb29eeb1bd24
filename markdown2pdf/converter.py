#!/usr/bin/env python3
"""
Markdown to PDF converter using Puppeteer approach (inspired by vscode-markdown-pdf).
This uses Playwright (Python equivalent of Puppeteer) for better PDF generation control.

The converter runs markup rendering, page assembly, output path resolution
and browser rendering in sequence for one document, and reports any failure
as a single ConversionError.

MIT License - Copyright (c) 2025 Markdown to PDF Converter
"""

import asyncio
import json
import signal
import sys
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, Mapping, Optional

from colorama import Fore, Style
from tqdm import tqdm

from . import __version__
from .config import Config
from .console import ConsoleLogMixin
from .dependencies import check_dependencies, install_playwright_chromium
from .errors import ConversionError, OutputPathError, PostConditionError
from .markup import MarkupTransformer
from .paths import ensure_unique, resolve_output_path
from .renderer import PDFRenderer
from .request import (
    DEFAULT_BORDER,
    DEFAULT_FORMAT,
    DEFAULT_ORIENTATION,
    ORIENTATIONS,
    PAPER_DIMENSIONS,
    ConversionRequest,
    PaperSpec,
)
from .template import assemble_page, extract_title


@contextmanager
def scoped_html_file(document: str) -> Iterator[Path]:
    """Write the page shell to a private temporary file, removed when the block exits."""
    try:
        handle = tempfile.NamedTemporaryFile(
            "w", suffix=".html", prefix="markdown2pdf-", encoding="utf-8", delete=False
        )
    except OSError as e:
        raise OutputPathError(f"Cannot create temporary file: {e}", tempfile.gettempdir(), phase="setup") from e

    path = Path(handle.name)
    try:
        with handle:
            handle.write(document)
        yield path
    finally:
        path.unlink(missing_ok=True)


class MarkdownToPDFConverter(ConsoleLogMixin):
    """Markdown to PDF converter using Playwright (Puppeteer approach)."""

    STEPS = 5

    def __init__(
        self,
        config: Optional[Config] = None,
        renderer: Optional[PDFRenderer] = None,
        transformer: Optional[MarkupTransformer] = None,
        debug: bool = False,
        show_progress: bool = True,
    ):
        """Initialize the converter.

        Args:
            config: Layered configuration; built from env/config file when omitted
            renderer: Rendering engine driver; built from config when omitted
            transformer: Markdown renderer
            debug: Enable debug logging
            show_progress: Show a per-document progress bar
        """
        self.config = config or Config()
        self.debug = debug
        self.show_progress = show_progress
        self.transformer = transformer or MarkupTransformer(debug=debug)
        self.renderer = renderer or PDFRenderer(
            render_delay_ms=self.config.get_render_delay_ms(),
            load_timeout_ms=self.config.get_load_timeout_ms(),
            browser_path=self.config.get_browser_path(),
            debug=debug,
        )
        self._log_debug(f"Configuration: {self.config.to_dict()}")

    async def convert(self, request: ConversionRequest) -> Path:
        """Convert one request to a PDF.

        Returns:
            Absolute path of the written PDF

        Raises:
            ConversionError: with phase and output/paper details, for any failure
        """
        phase = "markup"
        output_path: Optional[Path] = None

        try:
            with tqdm(total=self.STEPS, desc="  Converting", unit="step", leave=False,
                      disable=not self.show_progress) as pbar:
                pbar.set_description("  Markup")
                fragment = self.transformer.render(request.markdown)
                pbar.update(1)

                phase = "assemble"
                pbar.set_description("  Page shell")
                document = assemble_page(
                    fragment,
                    request.paper,
                    watermark=request.watermark,
                    title=extract_title(request.markdown),
                    base_dir=request.base_dir,
                    mermaid_url=self.config.get_mermaid_url(),
                )
                pbar.update(1)

                phase = "setup"
                with scoped_html_file(document) as html_path:
                    self._log_debug(f"Wrote page shell to {html_path}")
                    pbar.update(1)

                    phase = "resolve"
                    pbar.set_description("  Output path")
                    output_path = ensure_unique(
                        resolve_output_path(request.output_filename, self.config.get_output_dir())
                    )
                    self._log_debug(f"Using output path: {output_path}")
                    pbar.update(1)

                    phase = "render"
                    pbar.set_description("  PDF")
                    self._log_debug(
                        f"Starting PDF conversion (format: {request.paper.format}, "
                        f"orientation: {request.paper.orientation}, border: {request.paper.border})"
                    )
                    await self.renderer.render(html_path, output_path, request.paper)
                    pbar.update(1)

                    phase = "verify"
                    if not output_path.is_file():
                        raise PostConditionError(
                            "PDF file was not created", details={"output_path": str(output_path)}
                        )

        except ConversionError as e:
            e.details.update(self._error_context(request, output_path))
            self._log_error(f"PDF generation failed: {e}")
            raise
        except Exception as e:
            error = ConversionError(
                f"PDF generation failed: {e}",
                phase=phase,
                details={"name": type(e).__name__, **self._error_context(request, output_path)},
            )
            self._log_error(str(error))
            raise error from e

        self._log_success(f"PDF file created successfully at: {output_path}")
        return output_path

    def convert_sync(self, request: ConversionRequest) -> Path:
        """Blocking wrapper around convert()."""
        return asyncio.run(self.convert(request))

    @staticmethod
    def _error_context(request: ConversionRequest, output_path: Optional[Path]) -> Dict[str, Any]:
        context: Dict[str, Any] = {
            "paper_format": request.paper.format,
            "paper_orientation": request.paper.orientation,
        }
        if output_path is not None:
            context["output_path"] = str(output_path)
        elif request.output_filename:
            context["output_path"] = request.output_filename
        return context


async def create_pdf_from_markdown(arguments: Mapping[str, Any], converter: Optional[MarkdownToPDFConverter] = None) -> str:
    """Handle one tool-call style request and return the confirmation text.

    Raises:
        ConversionError: RequestValidationError before anything is rendered, or
            the pipeline failure
    """
    request = ConversionRequest.from_dict(arguments)
    converter = converter or MarkdownToPDFConverter(show_progress=False)
    output_path = await converter.convert(request)
    return "\n".join([
        f"Starting PDF conversion (format: {request.paper.format}, orientation: {request.paper.orientation})",
        f"PDF file created successfully at: {output_path}",
    ])


def _print_error(error: ConversionError) -> None:
    print(f"{Fore.RED}[ERROR]{Style.RESET_ALL} {error}", file=sys.stderr)
    print(json.dumps(error.to_dict(), indent=2, default=str), file=sys.stderr)


def main(argv=None):
    """Main entry point."""
    import argparse

    parser = argparse.ArgumentParser(
        prog="markdown2pdf",
        description="Convert a markdown document to PDF with syntax highlighting and Mermaid diagrams",
    )
    parser.add_argument("input", nargs="?", help="Markdown file to convert, or '-' to read from stdin")
    parser.add_argument("-o", "--output", default=None, help="Output filename or path (default: <input name>.pdf, or output.pdf for stdin). A bare filename is placed in the home directory")
    parser.add_argument("--format", default=DEFAULT_FORMAT, choices=list(PAPER_DIMENSIONS), help=f"Paper format (default: {DEFAULT_FORMAT})")
    parser.add_argument("--orientation", default=DEFAULT_ORIENTATION, choices=list(ORIENTATIONS), help=f"Paper orientation (default: {DEFAULT_ORIENTATION})")
    parser.add_argument("--border", default=DEFAULT_BORDER, help=f"Uniform page margin, e.g. 20mm, 2cm, 1in, 40px (default: {DEFAULT_BORDER})")
    parser.add_argument("--watermark", default="", help="Watermark text, up to 15 uppercase letters, digits, spaces or hyphens (e.g. DRAFT)")
    parser.add_argument("--output-dir", default=None, help="Output directory, overrides the directory of --output (default: from config/env M2P_OUTPUT_DIR/home)")
    parser.add_argument("--render-delay", type=int, default=None, help="Milliseconds to wait after page load for diagrams to render (default: 7000)")
    parser.add_argument("--load-timeout", type=int, default=None, help="Milliseconds allowed for the page to load (default: 60000)")
    parser.add_argument("--browser-path", default=None, help="Chrome/Chromium executable used when Playwright's Chromium is unavailable")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging for detailed output")
    parser.add_argument("--no-progress", action="store_true", help="Hide the progress bar")
    parser.add_argument("--check-deps", action="store_true", help="Check dependencies and exit")
    parser.add_argument("--install-browser", action="store_true", help="Install Playwright's Chromium and exit")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    args = parser.parse_args(argv)

    config = Config({
        "output_dir": args.output_dir,
        "render_delay_ms": args.render_delay,
        "load_timeout_ms": args.load_timeout,
        "browser_path": args.browser_path,
    })

    if args.install_browser:
        sys.exit(0 if install_playwright_chromium() else 1)

    if args.check_deps:
        sys.exit(0 if check_dependencies(config.get_browser_path()) else 1)

    if not args.input:
        parser.error("an input markdown file is required")

    if args.input == "-":
        markdown = sys.stdin.read()
        base_dir = Path.cwd()
        output = args.output
    else:
        md_file = Path(args.input)
        try:
            with open(md_file, 'r', encoding='utf-8') as f:
                markdown = f.read()
        except OSError as e:
            print(f"{Fore.RED}[ERROR]{Style.RESET_ALL} Cannot read {md_file}: {e}", file=sys.stderr)
            sys.exit(1)
        base_dir = md_file.resolve().parent
        output = args.output or f"{md_file.stem}.pdf"

    # SIGTERM unwinds like Ctrl-C so the browser is closed before exit
    signal.signal(signal.SIGTERM, signal.default_int_handler)

    try:
        request = ConversionRequest(
            markdown=markdown,
            output_filename=output,
            paper=PaperSpec(format=args.format, orientation=args.orientation, border=args.border),
            watermark=args.watermark,
            base_dir=base_dir,
        )
        converter = MarkdownToPDFConverter(config, debug=args.debug, show_progress=not args.no_progress)
        output_path = converter.convert_sync(request)
    except ConversionError as e:
        _print_error(e)
        sys.exit(1)
    except KeyboardInterrupt:
        print(f"{Fore.YELLOW}[WARNING]{Style.RESET_ALL} Interrupted", file=sys.stderr)
        sys.exit(130)

    print(output_path)


if __name__ == "__main__":
    main()
