#!/usr/bin/env python3
"""
Dependency checking and installation for markdown2pdf.
Provides platform-specific installation guidance.

MIT License - Copyright (c) 2025 Markdown to PDF Converter
"""

import platform
import subprocess
import sys
from pathlib import Path
from typing import List, Optional, Tuple

from colorama import Fore, Style, init

from .renderer import discover_system_browser

init(autoreset=True)

REQUIRED_PACKAGES = [
    # (distribution name, import name)
    ("playwright", "playwright"),
    ("markdown-it-py", "markdown_it"),
    ("pygments", "pygments"),
    ("colorama", "colorama"),
    ("tqdm", "tqdm"),
]


class DependencyChecker:
    """Check and report on required Python packages and rendering engines."""

    def __init__(self, browser_path: Optional[str] = None):
        """Initialize dependency checker."""
        self.system = platform.system()
        self.browser_path = browser_path
        self.missing_python_packages: List[str] = []

    def check_python_package(self, package_name: str, import_name: Optional[str] = None) -> bool:
        """Check if a Python package is installed."""
        if import_name is None:
            import_name = package_name

        try:
            __import__(import_name)
            return True
        except ImportError:
            self.missing_python_packages.append(package_name)
            return False

    def check_playwright_chromium(self) -> bool:
        """Check if Playwright's own Chromium build is installed for this platform."""
        try:
            from playwright.sync_api import sync_playwright

            with sync_playwright() as p:
                return Path(p.chromium.executable_path).exists()
        except Exception:
            return False

    def check_system_browser(self) -> Optional[Path]:
        """Locate a system Chromium/Chrome/Edge usable as fallback."""
        return discover_system_browser(self.browser_path)

    def get_playwright_install_command(self) -> str:
        """Get platform-specific Playwright install command."""
        return f"{sys.executable} -m playwright install chromium"

    def get_browser_install_instructions(self) -> str:
        """Get platform-specific Chrome/Chromium installation instructions."""
        if self.system == "Windows":
            return "Download Chrome from https://www.google.com/chrome/ and install"
        elif self.system == "Darwin":  # macOS
            return "brew install --cask chromium"
        else:  # Linux
            return "sudo apt-get install chromium  # or: sudo dnf install chromium"

    def check_all(self) -> Tuple[bool, List[str]]:
        """Check all dependencies and return status and messages."""
        messages: List[str] = []
        all_ok = True

        print(f"{Fore.CYAN}Checking Python packages...{Style.RESET_ALL}")
        for package_name, import_name in REQUIRED_PACKAGES:
            if self.check_python_package(package_name, import_name):
                print(f"{Fore.GREEN}[OK]{Style.RESET_ALL} {package_name} is available")
            else:
                all_ok = False
                messages.append(f"{Fore.RED}[MISSING]{Style.RESET_ALL} {package_name} - Run: pip install {package_name}")

        print(f"\n{Fore.CYAN}Checking rendering engines...{Style.RESET_ALL}")
        pinned = "playwright" not in self.missing_python_packages and self.check_playwright_chromium()
        if pinned:
            print(f"{Fore.GREEN}[OK]{Style.RESET_ALL} Playwright Chromium is installed")

        system_browser = self.check_system_browser()
        if system_browser:
            print(f"{Fore.GREEN}[OK]{Style.RESET_ALL} System browser found at {system_browser}")

        if not pinned and not system_browser:
            all_ok = False
            messages.append(f"{Fore.RED}[MISSING]{Style.RESET_ALL} No rendering engine available")
            messages.append(f"  Run: {self.get_playwright_install_command()}")
            messages.append(f"  Or:  {self.get_browser_install_instructions()}")
        elif not pinned:
            messages.append(f"{Fore.YELLOW}[WARNING]{Style.RESET_ALL} Playwright Chromium not installed, the system browser will be used")
            messages.append(f"  Run: {self.get_playwright_install_command()}")

        return all_ok, messages

    def print_summary(self) -> bool:
        """Check dependencies and print summary. Returns True if all required deps are available."""
        all_ok, messages = self.check_all()

        if messages:
            print(f"\n{Fore.YELLOW}Dependency Summary:{Style.RESET_ALL}")
            for msg in messages:
                print(f"  {msg}")
        else:
            print(f"\n{Fore.GREEN}All dependencies are available!{Style.RESET_ALL}")

        return all_ok


def check_dependencies(browser_path: Optional[str] = None) -> bool:
    """Convenience function to check dependencies."""
    checker = DependencyChecker(browser_path)
    return checker.print_summary()


def install_playwright_chromium() -> bool:
    """Install the Chromium build pinned to the installed Playwright version."""
    print("Installing Playwright Chromium...")
    try:
        subprocess.run(
            [sys.executable, "-m", "playwright", "install", "chromium"],
            check=True,
            capture_output=True,
            text=True,
        )
        print(f"{Fore.GREEN}✓{Style.RESET_ALL} Playwright Chromium installed successfully")
        return True
    except (subprocess.CalledProcessError, FileNotFoundError) as e:
        stderr = getattr(e, "stderr", None) or str(e)
        print(f"{Fore.RED}✗{Style.RESET_ALL} Failed to install Playwright Chromium: {stderr}")
        return False
