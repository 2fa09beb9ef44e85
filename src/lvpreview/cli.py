"""
Command-line interface for lvpreview.

This module provides the `lvpreview` CLI tool for building LVGL preview
modules and managing the build cache.
"""

import argparse
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from lvpreview import __version__
from lvpreview.build import BuildOrchestrator
from lvpreview.cli_utils import (
    ErrorFormatter,
    PathValidator,
    configure_logging,
    load_settings,
    print_diagnostics,
)
from lvpreview.config import load_project_config
from lvpreview.errors import ConfigurationError


@dataclass
class BuildArgs:
    """Arguments for the build command."""

    target: Path
    settings: Optional[Path] = None
    clean: bool = False
    verbose: bool = False


@dataclass
class CleanArgs:
    """Arguments for the clean command."""

    settings: Optional[Path] = None
    project: Optional[Path] = None
    verbose: bool = False


def build_command(args: BuildArgs) -> None:
    """Build a preview module.

    Examples:
        lvpreview build ui.c                       # Single-file build
        lvpreview build .lvgl-live-preview.json    # Multi-file project
        lvpreview build ui.c --settings my.ini     # Explicit settings
        lvpreview build ui.c --clean --verbose     # Rebuild LVGL objects
    """
    print(f"lvpreview v{__version__}")
    print()

    try:
        settings = load_settings(args.settings, args.target.resolve().parent)
        orchestrator = BuildOrchestrator(settings, verbose=args.verbose)

        if args.clean:
            orchestrator.clear_cache()

        print(f"Building {args.target} (LVGL {settings.lvgl_version})...")
        start_time = time.time()
        result = orchestrator.build_project(args.target)
        build_time = time.time() - start_time

        if result.success:
            ErrorFormatter.print_success("Build successful!")
            print()
            print(f"Module: {result.wasm_path}")
            print(f"Glue:   {result.js_path}")
            if result.warnings:
                print()
                print(f"{len(result.warnings)} warning(s):")
                print_diagnostics(result)
            print()
            print(f"Build time: {build_time:.2f}s")
            sys.exit(0)
        else:
            ErrorFormatter.print_error("Build failed!", f"{len(result.errors)} error(s):")
            print_diagnostics(result)
            sys.exit(1)

    except FileNotFoundError as e:
        ErrorFormatter.handle_file_not_found(e)
    except ConfigurationError as e:
        ErrorFormatter.handle_configuration_error(e)
    except KeyboardInterrupt:
        ErrorFormatter.handle_keyboard_interrupt()
    except Exception as e:
        ErrorFormatter.handle_unexpected_error(e, args.verbose)


def clean_command(args: CleanArgs) -> None:
    """Clear precompiled LVGL objects, link outputs and project caches.

    Examples:
        lvpreview clean
        lvpreview clean --project .lvgl-live-preview.json
    """
    try:
        settings = load_settings(args.settings, Path.cwd())
        orchestrator = BuildOrchestrator(settings, verbose=args.verbose)
        project = load_project_config(args.project) if args.project else None
        orchestrator.clear_cache(project)
        ErrorFormatter.print_success("Cache cleared")
        sys.exit(0)

    except FileNotFoundError as e:
        ErrorFormatter.handle_file_not_found(e)
    except ConfigurationError as e:
        ErrorFormatter.handle_configuration_error(e)
    except KeyboardInterrupt:
        ErrorFormatter.handle_keyboard_interrupt()
    except Exception as e:
        ErrorFormatter.handle_unexpected_error(e, args.verbose)


def main() -> None:
    """lvpreview - Incremental LVGL builds for live previews."""
    parser = argparse.ArgumentParser(
        prog="lvpreview",
        description="lvpreview - Incremental LVGL to WebAssembly builds",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"lvpreview {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    build_parser = subparsers.add_parser(
        "build",
        help="Build a preview module from a C file or project config",
    )
    build_parser.add_argument(
        "target",
        type=Path,
        help="C source file or .lvgl-live-preview.json",
    )
    build_parser.add_argument(
        "--settings",
        type=Path,
        default=None,
        help="Settings file (default: lvpreview.ini next to the target)",
    )
    build_parser.add_argument(
        "-c",
        "--clean",
        action="store_true",
        help="Clear cached LVGL objects before building",
    )
    build_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show verbose build output",
    )

    clean_parser = subparsers.add_parser(
        "clean",
        help="Clear cached build artifacts",
    )
    clean_parser.add_argument(
        "--settings",
        type=Path,
        default=None,
        help="Settings file (default: lvpreview.ini in the current directory)",
    )
    clean_parser.add_argument(
        "--project",
        type=Path,
        default=None,
        help="Project config whose dependency cache should also be cleared",
    )
    clean_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show verbose output",
    )

    parsed_args = parser.parse_args()

    if not parsed_args.command:
        parser.print_help()
        sys.exit(0)

    configure_logging(parsed_args.verbose)

    if parsed_args.command == "build":
        PathValidator.validate_file(parsed_args.target)
        build_command(
            BuildArgs(
                target=parsed_args.target,
                settings=parsed_args.settings,
                clean=parsed_args.clean,
                verbose=parsed_args.verbose,
            )
        )
    elif parsed_args.command == "clean":
        clean_command(
            CleanArgs(
                settings=parsed_args.settings,
                project=parsed_args.project,
                verbose=parsed_args.verbose,
            )
        )
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
