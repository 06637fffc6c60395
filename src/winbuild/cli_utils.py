"""CLI utility functions for winbuild.

This module provides common utilities used across CLI commands including:
- Logging setup
- Configuration loading with command-line overrides
- Error handling and formatting
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from winbuild.config import BuildConfig

DEFAULT_CONFIG_NAME = "winbuild.ini"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(verbose: bool = False, log_file: Optional[Path] = None) -> None:
    """Configure the root logger for CLI use.

    Args:
        verbose: Log tool command lines (DEBUG) instead of INFO
        log_file: Optional file that also receives the log, rotated at 10MB
    """
    logger = logging.getLogger()
    level = logging.DEBUG if verbose else logging.INFO
    logger.setLevel(level)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    logger.addHandler(console_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            str(log_file),
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=3,
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(file_handler)


class ConfigLoader:
    """Finds and loads winbuild.ini."""

    @staticmethod
    def load(config_path: Optional[Path] = None) -> BuildConfig:
        """Load the build configuration.

        Args:
            config_path: Explicit config file; if None, winbuild.ini in the
                current directory is used when present

        Returns:
            BuildConfig, defaults when no file is found

        Raises:
            BuildConfigError: If an explicit file is missing or invalid
        """
        if config_path is not None:
            return BuildConfig.load(config_path)

        default_path = Path.cwd() / DEFAULT_CONFIG_NAME
        if default_path.exists():
            return BuildConfig.load(default_path)
        return BuildConfig()


class ErrorFormatter:
    """Formats and displays error messages with ANSI color codes."""

    # ANSI color codes
    RED = "\033[1;31m"
    GREEN = "\033[1;32m"
    YELLOW = "\033[1;33m"
    RESET = "\033[0m"

    @staticmethod
    def print_error(title: str, message: str) -> None:
        """Print formatted error message.

        Args:
            title: Error title (e.g., "Compilation failed")
            message: Error message details
        """
        print(file=sys.stderr)
        print(f"{ErrorFormatter.RED}✗ {title}{ErrorFormatter.RESET}", file=sys.stderr)
        print(file=sys.stderr)
        print(message, file=sys.stderr)

    @staticmethod
    def print_success(message: str) -> None:
        print(f"{ErrorFormatter.GREEN}✓ {message}{ErrorFormatter.RESET}")

    @staticmethod
    def print_warning(message: str) -> None:
        print(f"{ErrorFormatter.YELLOW}✗ {message}{ErrorFormatter.RESET}", file=sys.stderr)
