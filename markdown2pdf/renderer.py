#!/usr/bin/env python3
"""
HTML to PDF rendering with Playwright (Puppeteer approach).

One render launches one Chromium instance, loads the page shell from a
file:// URL, waits for the page to settle, checks the page's diagram error
surface, and prints to PDF. The browser is closed on every exit path.

MIT License - Copyright (c) 2025 Markdown to PDF Converter
"""

import os
import platform
import shutil
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Type

from playwright.async_api import async_playwright
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from .console import ConsoleLogMixin
from .errors import (
    ConversionError,
    DiagramRenderError,
    EngineLaunchError,
    PageLoadError,
    PDFExportError,
)
from .markup import highlight_stylesheet
from .request import PaperSpec
from .template import DIAGRAM_ERROR_ID, WATERMARK_CLASS, running_templates

DEFAULT_STYLESHEET = Path(__file__).resolve().parent / "css" / "pdf.css"
DEFAULT_RENDER_DELAY_MS = 7000
DEFAULT_LOAD_TIMEOUT_MS = 60000

VIEWPORT = {"width": 1200, "height": 1600}

BROWSER_ARGS = [
    '--disable-dev-shm-usage',  # Use /tmp instead of /dev/shm (prevents OOM crashes)
    '--disable-gpu',             # No GPU in headless mode
]
# Only added when falling back to a browser we did not install ourselves
SANDBOX_DISABLING_ARGS = [
    '--no-sandbox',
    '--disable-setuid-sandbox',
]

SYSTEM_BROWSER_NAMES = (
    "chromium",
    "chromium-browser",
    "google-chrome",
    "google-chrome-stable",
    "chrome",
    "msedge",
    "microsoft-edge",
)

WELL_KNOWN_BROWSER_PATHS = {
    "Darwin": [
        "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome",
        "/Applications/Chromium.app/Contents/MacOS/Chromium",
        "/Applications/Microsoft Edge.app/Contents/MacOS/Microsoft Edge",
    ],
    "Windows": [
        r"C:\Program Files\Google\Chrome\Application\chrome.exe",
        r"C:\Program Files (x86)\Google\Chrome\Application\chrome.exe",
        r"C:\Program Files (x86)\Microsoft\Edge\Application\msedge.exe",
    ],
    "Linux": [
        "/usr/bin/chromium",
        "/usr/bin/chromium-browser",
        "/usr/bin/google-chrome",
        "/snap/bin/chromium",
    ],
}

REPAINT_SCRIPT = """() => {
    document.body.style.transform = 'scale(1)';
    return document.body.offsetHeight;
}"""

DIAGRAM_ERROR_SCRIPT = """() => {
    const el = document.getElementById('%s');
    if (!el || el.style.display === 'none') return '';
    return (el.innerText || el.textContent || '').trim() || 'unknown diagram error';
}""" % DIAGRAM_ERROR_ID

WATERMARK_SCRIPT = """() => {
    const el = document.querySelector('.%s');
    return el ? (el.textContent || '').trim() : '';
}""" % WATERMARK_CLASS

RunningsSource = Callable[[str], Tuple[str, str]]


class RenderState(str, Enum):
    LAUNCHING = "launch"
    LOADED = "load"
    STABILIZING = "stabilize"
    EXPORTING = "export"
    CLOSED = "closed"
    FAILED = "failed"


@dataclass(frozen=True)
class LaunchStrategy:
    """One way of starting the rendering engine, tried in order."""

    name: str
    launch: Callable[[Any], Awaitable[Any]]


def discover_system_browser(explicit_path: Optional[str] = None) -> Optional[Path]:
    """Find an installed Chromium-family browser.

    Args:
        explicit_path: Configured executable, checked first

    Returns:
        Path to the executable, or None if nothing was found
    """
    if explicit_path:
        candidate = Path(os.path.expanduser(explicit_path))
        return candidate if candidate.is_file() else None

    for name in SYSTEM_BROWSER_NAMES:
        found = shutil.which(name)
        if found:
            return Path(found)

    for known in WELL_KNOWN_BROWSER_PATHS.get(platform.system(), []):
        if Path(known).is_file():
            return Path(known)
    return None


class PDFRenderer(ConsoleLogMixin):
    """Renders a page shell file to PDF with a headless Chromium."""

    def __init__(
        self,
        render_delay_ms: int = DEFAULT_RENDER_DELAY_MS,
        load_timeout_ms: int = DEFAULT_LOAD_TIMEOUT_MS,
        runnings: RunningsSource = running_templates,
        stylesheet: Optional[Path] = DEFAULT_STYLESHEET,
        highlight_css: Optional[str] = None,
        browser_path: Optional[str] = None,
        debug: bool = False,
        playwright_factory: Callable[[], Any] = async_playwright,
    ):
        """Initialize the renderer.

        Args:
            render_delay_ms: Settle delay after load, for client-side diagram rendering
            load_timeout_ms: Upper bound on navigation
            runnings: Builds (header, footer) templates from the watermark text
            stylesheet: Shared stylesheet attached after load
            highlight_css: Extra highlight stylesheet; defaults to the Pygments one
            browser_path: Executable for the fallback launch strategy
            playwright_factory: Returns an async context manager yielding a Playwright instance
        """
        self.render_delay_ms = render_delay_ms
        self.load_timeout_ms = load_timeout_ms
        self.runnings = runnings
        self.stylesheet = Path(stylesheet) if stylesheet else None
        self.highlight_css = highlight_stylesheet() if highlight_css is None else highlight_css
        self.browser_path = browser_path
        self.debug = debug
        self._playwright_factory = playwright_factory

    def launch_strategies(self) -> List[LaunchStrategy]:
        """Launch strategies in the order they are tried."""
        return [
            LaunchStrategy("pinned Playwright Chromium", self._launch_pinned),
            LaunchStrategy("system browser", self._launch_system),
        ]

    async def _launch_pinned(self, playwright) -> Any:
        executable = Path(playwright.chromium.executable_path)
        if not executable.exists():
            raise FileNotFoundError(f"Chromium build for {platform.system()}/{platform.machine()} not installed at {executable}")
        return await playwright.chromium.launch(headless=True, args=list(BROWSER_ARGS))

    async def _launch_system(self, playwright) -> Any:
        executable = discover_system_browser(self.browser_path)
        if executable is None:
            raise FileNotFoundError("no Chromium, Chrome or Edge installation found")
        self._log_debug(f"Using system browser at {executable}")
        return await playwright.chromium.launch(
            headless=True,
            executable_path=str(executable),
            args=BROWSER_ARGS + SANDBOX_DISABLING_ARGS,
        )

    async def _launch_browser(self, playwright) -> Any:
        """Try each launch strategy in turn; first success wins."""
        failures: List[str] = []
        for strategy in self.launch_strategies():
            try:
                browser = await strategy.launch(playwright)
                self._log_debug(f"Launched rendering engine via {strategy.name}")
                return browser
            except Exception as e:
                self._log_warning(f"Could not launch {strategy.name}: {e}")
                failures.append(f"{strategy.name}: {e}")

        raise EngineLaunchError(
            "No usable rendering engine found. Run 'python -m playwright install chromium' "
            "or install Chrome/Chromium.",
            details={
                "platform": platform.system(),
                "arch": platform.machine(),
                "attempts": failures,
            },
        )

    async def _close_browser(self, browser) -> None:
        """Close browser and cleanup resources."""
        try:
            await browser.close()
            self._log_debug("Browser instance closed and cleaned up")
        except Exception as e:
            self._log_warning(f"Error while closing browser: {e}")

    @contextmanager
    def _stage(self, state: RenderState, error_cls: Type[ConversionError], message: str):
        """Map unexpected exceptions inside a stage to that stage's error type."""
        self._log_debug(f"Rendering engine state: {state.value}")
        try:
            yield
        except ConversionError:
            raise
        except Exception as e:
            error = error_cls(f"{message}: {e}")
            error.phase = state.value
            raise error from e

    async def render(self, html_path: Path, pdf_path: Path, paper: PaperSpec) -> Path:
        """Render the page shell at html_path to pdf_path.

        Returns:
            pdf_path once the engine has written it
        """
        html_path = Path(html_path).resolve()
        pdf_path = Path(pdf_path)

        async with self._playwright_factory() as playwright:
            with self._stage(RenderState.LAUNCHING, EngineLaunchError, "Rendering engine launch failed"):
                browser = await self._launch_browser(playwright)
            try:
                await self._render_page(browser, html_path, pdf_path, paper)
            except Exception:
                self._log_debug(f"Rendering engine state: {RenderState.FAILED.value}")
                raise
            finally:
                await self._close_browser(browser)

        self._log_debug(f"Rendering engine state: {RenderState.CLOSED.value}")
        return pdf_path

    async def _render_page(self, browser, html_path: Path, pdf_path: Path, paper: PaperSpec) -> None:
        with self._stage(RenderState.LOADED, PageLoadError, "Failed to load page"):
            page = await browser.new_page(viewport=dict(VIEWPORT))
            await self._load(page, html_path)
            await self._attach_stylesheets(page)

        with self._stage(RenderState.STABILIZING, ConversionError, "Page did not stabilize"):
            await page.wait_for_timeout(self.render_delay_ms)
            # Force repaint to ensure proper rendering
            await page.evaluate(REPAINT_SCRIPT)

            diagram_error = await page.evaluate(DIAGRAM_ERROR_SCRIPT)
            if diagram_error:
                raise DiagramRenderError(diagram_error)

            watermark = await page.evaluate(WATERMARK_SCRIPT)

        with self._stage(RenderState.EXPORTING, PDFExportError, "PDF generation failed"):
            await page.pdf(**self._pdf_options(pdf_path, paper, watermark))

    async def _load(self, page, html_path: Path) -> None:
        url = html_path.as_uri()
        try:
            await page.goto(url, wait_until="networkidle", timeout=self.load_timeout_ms)
        except PlaywrightTimeoutError as e:
            raise PageLoadError(
                f"Timed out after {self.load_timeout_ms} ms loading page",
                timed_out=True,
                details={"url": url, "load_timeout_ms": self.load_timeout_ms},
            ) from e
        except PlaywrightError as e:
            raise PageLoadError(f"Failed to load page: {e.message}", details={"url": url}) from e

    async def _attach_stylesheets(self, page) -> None:
        """Attach the shared and highlight stylesheets on top of the shell's inline styles."""
        if self.stylesheet:
            await page.add_style_tag(path=str(self.stylesheet))
        if self.highlight_css:
            await page.add_style_tag(content=self.highlight_css)

    def _pdf_options(self, pdf_path: Path, paper: PaperSpec, watermark: str) -> Dict[str, Any]:
        options: Dict[str, Any] = {
            "path": str(pdf_path),
            "format": paper.engine_format,
            "landscape": paper.landscape,
            "margin": paper.margins(),
            "print_background": True,
            "prefer_css_page_size": True,
            "display_header_footer": bool(watermark),
        }
        if watermark:
            header, footer = self.runnings(watermark)
            options["header_template"] = header
            options["footer_template"] = footer
        return options
