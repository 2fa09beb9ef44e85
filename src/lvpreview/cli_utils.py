"""CLI utility functions for lvpreview.

This module provides common utilities used across CLI commands including:
- Settings loading
- Diagnostic output
- Error handling and formatting
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from lvpreview.build.diagnostics import CompilationResult
from lvpreview.config import PreviewSettings

DEFAULT_SETTINGS_FILE = "lvpreview.ini"


def configure_logging(verbose: bool = False) -> None:
    """Configure root logging for CLI runs."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )


def load_settings(settings_path: Optional[Path], search_dir: Path) -> PreviewSettings:
    """Load preview settings from an explicit file or the target directory.

    Args:
        settings_path: Explicit settings file (must exist if given)
        search_dir: Directory searched for lvpreview.ini otherwise

    Returns:
        Parsed settings (defaults if no file was found)

    Raises:
        FileNotFoundError: If an explicit settings file doesn't exist
        ConfigurationError: If the settings file is invalid
    """
    if settings_path is not None:
        if not settings_path.exists():
            raise FileNotFoundError(f"Settings file not found: {settings_path}")
        return PreviewSettings.from_ini(settings_path)
    return PreviewSettings.from_ini(search_dir / DEFAULT_SETTINGS_FILE)


def print_diagnostics(result: CompilationResult) -> None:
    """Print errors and warnings as file:line:column: severity: message."""
    for diagnostic in result.errors + result.warnings:
        print(f"  {diagnostic}")


class ErrorFormatter:
    """Formats and displays error messages with ANSI color codes."""

    RED = "\033[1;31m"
    GREEN = "\033[1;32m"
    YELLOW = "\033[1;33m"
    RESET = "\033[0m"

    @staticmethod
    def print_error(title: str, message: str) -> None:
        """Print formatted error message.

        Args:
            title: Error title (e.g., "Build failed")
            message: Error message details
        """
        print()
        print(f"{ErrorFormatter.RED}✗ {title}{ErrorFormatter.RESET}")
        print()
        print(message)
        print()

    @staticmethod
    def print_success(message: str) -> None:
        """Print formatted success message."""
        print()
        print(f"{ErrorFormatter.GREEN}✓ {message}{ErrorFormatter.RESET}")

    @staticmethod
    def print_warning(message: str) -> None:
        """Print formatted warning message."""
        print()
        print(f"{ErrorFormatter.YELLOW}! {message}{ErrorFormatter.RESET}")

    @staticmethod
    def handle_file_not_found(error: FileNotFoundError) -> None:
        """Handle FileNotFoundError with standard formatting."""
        ErrorFormatter.print_error("Error: File not found", str(error))
        sys.exit(1)

    @staticmethod
    def handle_configuration_error(error: Exception) -> None:
        """Handle ConfigurationError with standard formatting."""
        ErrorFormatter.print_error("Error: Invalid configuration", str(error))
        sys.exit(1)

    @staticmethod
    def handle_keyboard_interrupt() -> None:
        """Handle KeyboardInterrupt with standard formatting."""
        ErrorFormatter.print_warning("Build interrupted")
        sys.exit(130)

    @staticmethod
    def handle_unexpected_error(error: Exception, verbose: bool = False) -> None:
        """Handle unexpected errors with standard formatting.

        Args:
            error: The exception to handle
            verbose: Whether to print traceback
        """
        ErrorFormatter.print_error("Unexpected error", f"{type(error).__name__}: {error}")

        if verbose:
            import traceback

            print("Traceback:")
            print(traceback.format_exc())

        sys.exit(1)


class PathValidator:
    """Validates command-line paths."""

    @staticmethod
    def validate_file(path: Path) -> None:
        """Validate that a path exists and is a file.

        Raises:
            SystemExit: If path doesn't exist or isn't a file
        """
        if not path.exists():
            print(f"{ErrorFormatter.RED}✗ Error: Path does not exist: {path}{ErrorFormatter.RESET}")
            sys.exit(2)
        if not path.is_file():
            print(f"{ErrorFormatter.RED}✗ Error: Path is not a file: {path}{ErrorFormatter.RESET}")
            sys.exit(2)
