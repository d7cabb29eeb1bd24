#!/usr/bin/env python3
"""
Colored console logging shared by the converter components.

MIT License - Copyright (c) 2025 Markdown to PDF Converter
"""

import threading

from colorama import init, Fore, Style

# Initialize colorama for cross-platform colored output
init(autoreset=True)

# One lock for the whole process so lines from concurrent conversions don't interleave
_print_lock = threading.Lock()


class ConsoleLogMixin:
    """Adds the [DEBUG]/[INFO]/[WARNING]/[ERROR]/[OK] console helpers.

    Classes using the mixin set ``self.debug`` to enable debug output.
    """

    debug: bool = False

    def _log_debug(self, message: str) -> None:
        """Log debug message with color (only if debug mode is enabled)."""
        if self.debug:
            with _print_lock:
                print(f"{Fore.CYAN}[DEBUG]{Style.RESET_ALL} {message}")

    def _log_info(self, message: str) -> None:
        """Log info message with color."""
        with _print_lock:
            print(f"{Fore.GREEN}[INFO]{Style.RESET_ALL} {message}")

    def _log_warning(self, message: str) -> None:
        """Log warning message with color."""
        with _print_lock:
            print(f"{Fore.YELLOW}[WARNING]{Style.RESET_ALL} {message}")

    def _log_error(self, message: str) -> None:
        """Log error message with color."""
        with _print_lock:
            print(f"{Fore.RED}[ERROR]{Style.RESET_ALL} {message}")

    def _log_success(self, message: str) -> None:
        """Log success message with color."""
        with _print_lock:
            print(f"{Fore.GREEN}[OK]{Style.RESET_ALL} {message}")
