"""Configuration management for ssr-guard.

Loads environment variables (optionally from a .env file in the working
directory) and provides centralized access to CLI defaults.
"""
import os
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv

__version__ = "0.1.0"

SEVERITIES = ("error", "warn", "off")


class Config:
    """Configuration loader with environment variable support."""

    def __init__(self, env_path: Optional[Path] = None):
        """Initialize config by loading .env file.

        Args:
            env_path: Explicit .env location (defaults to ./.env)
        """
        if env_path is None:
            env_path = Path.cwd() / ".env"
        load_dotenv(env_path)

    @property
    def options_path(self) -> Path | None:
        """Get the rule options file.

        Priority:
        1. SSRGUARD_OPTIONS environment variable
        2. .ssrguard.json in the working directory, if present

        Returns:
            Path to a JSON options file, or None when there is none
        """
        explicit = os.getenv("SSRGUARD_OPTIONS")
        if explicit:
            return Path(explicit)

        default = Path.cwd() / ".ssrguard.json"
        return default if default.exists() else None

    @property
    def severity(self) -> str:
        """Get the reporting severity ('error', 'warn' or 'off').

        Raises:
            ValueError: If SSRGUARD_SEVERITY is not a known severity
        """
        severity = os.getenv("SSRGUARD_SEVERITY", "error").strip().lower()
        if severity not in SEVERITIES:
            raise ValueError(
                f"SSRGUARD_SEVERITY must be one of {', '.join(SEVERITIES)}, "
                f"got: {severity!r}"
            )
        return severity


# Singleton instance
_config = None


def get_config() -> Config:
    """Get or create singleton Config instance.

    Returns:
        Config instance
    """
    global _config
    if _config is None:
        _config = Config()
    return _config
