#!/usr/bin/env python3
"""
Configuration management for markdown2pdf.
Supports environment variables, config file, and CLI arguments.

MIT License - Copyright (c) 2025 Markdown to PDF Converter
"""

import os
import json
import platform
from pathlib import Path
from typing import Dict, Optional, Any

from .renderer import DEFAULT_LOAD_TIMEOUT_MS, DEFAULT_RENDER_DELAY_MS
from .template import DEFAULT_MERMAID_URL


def get_user_config_dir() -> Path:
    """Get platform-appropriate user config directory."""
    system = platform.system()

    if system == "Windows":
        config_dir = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
    elif system == "Darwin":  # macOS
        config_dir = Path.home() / "Library" / "Application Support"
    else:  # Linux and others
        config_dir = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))

    return config_dir / "markdown2pdf"


def load_config_file(config_file: Optional[Path] = None) -> Dict[str, Any]:
    """Load configuration from config file if it exists."""
    if config_file is None:
        config_file = get_user_config_dir() / "config.json"

    if config_file.exists():
        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (json.JSONDecodeError, IOError):
            return {}
        return data if isinstance(data, dict) else {}

    return {}


def parse_milliseconds(value: Any) -> Optional[int]:
    """Parse a non-negative millisecond count; None if it isn't one."""
    try:
        parsed = int(str(value).strip())
    except ValueError:
        return None
    return parsed if parsed >= 0 else None


ENV_MAPPING = {
    "M2P_OUTPUT_DIR": "output_dir",
    "M2P_RENDER_DELAY_MS": "render_delay_ms",
    "M2P_LOAD_TIMEOUT_MS": "load_timeout_ms",
    "M2P_BROWSER_PATH": "browser_path",
    "M2P_MERMAID_URL": "mermaid_url",
}

MILLISECOND_KEYS = ("render_delay_ms", "load_timeout_ms")


def get_config_from_env() -> Dict[str, Any]:
    """Load configuration from environment variables."""
    config = {}

    for env_var, config_key in ENV_MAPPING.items():
        value = os.environ.get(env_var)
        if value:
            if config_key in MILLISECOND_KEYS:
                parsed = parse_milliseconds(value)
                if parsed is not None:
                    config[config_key] = parsed
            else:
                config[config_key] = value

    return config


class Config:
    """Configuration manager with multi-layer precedence."""

    def __init__(self, cli_args: Optional[Dict[str, Any]] = None, config_file: Optional[Path] = None):
        """Initialize configuration.

        Precedence order (highest to lowest):
        1. CLI arguments
        2. Environment variables
        3. Config file
        4. Defaults
        """
        self.cli_args = {k: v for k, v in (cli_args or {}).items() if v is not None}

        file_config = load_config_file(config_file)
        for key in MILLISECOND_KEYS:
            if key in file_config:
                parsed = parse_milliseconds(file_config[key])
                if parsed is None:
                    del file_config[key]
                else:
                    file_config[key] = parsed

        env_config = get_config_from_env()

        # Merge with precedence: CLI > ENV > FILE > DEFAULTS
        self._config = {}
        self._config.update(self._get_defaults())
        self._config.update(file_config)
        self._config.update(env_config)
        self._config.update(self.cli_args)

    def _get_defaults(self) -> Dict[str, Any]:
        """Get default configuration values."""
        return {
            "output_dir": None,
            "render_delay_ms": DEFAULT_RENDER_DELAY_MS,
            "load_timeout_ms": DEFAULT_LOAD_TIMEOUT_MS,
            "browser_path": None,
            "mermaid_url": DEFAULT_MERMAID_URL,
        }

    def get_output_dir(self) -> Optional[str]:
        """Output directory override, None when unset."""
        return self._config.get("output_dir") or None

    def get_render_delay_ms(self) -> int:
        return self._config.get("render_delay_ms", DEFAULT_RENDER_DELAY_MS)

    def get_load_timeout_ms(self) -> int:
        return self._config.get("load_timeout_ms", DEFAULT_LOAD_TIMEOUT_MS)

    def get_browser_path(self) -> Optional[str]:
        return self._config.get("browser_path") or None

    def get_mermaid_url(self) -> str:
        return self._config.get("mermaid_url") or DEFAULT_MERMAID_URL

    def to_dict(self) -> Dict[str, Any]:
        """Get configuration as dictionary."""
        return self._config.copy()
