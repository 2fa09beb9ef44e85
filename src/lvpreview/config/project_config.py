"""Multi-file project configuration (.lvgl-live-preview.json).

A project config turns a preview into a multi-file build: the main file
provides ``lvgl_live_preview_init()`` and the dependencies are compiled
incrementally through the project's object cache.

Example:
    {
        "mainFile": "src/ui.c",
        "dependencies": ["src/screens/home.c", "src/widgets/gauge.c"],
        "includePaths": ["include"],
        "defines": ["USE_DARK_THEME"]
    }

Relative paths are resolved against the directory containing the config.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..errors import ConfigurationError

CONFIG_FILE_NAME = ".lvgl-live-preview.json"

LIST_FIELDS = ("dependencies", "includePaths", "defines")
KNOWN_FIELDS = {"mainFile", *LIST_FIELDS}


class ProjectConfigError(ConfigurationError):
    """Raised when a project configuration file is invalid."""

    pass


@dataclass(frozen=True)
class ProjectConfig:
    """Validated, unresolved project configuration."""

    main_file: str
    dependencies: List[str] = field(default_factory=list)
    include_paths: List[str] = field(default_factory=list)
    defines: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any, source: str = "<config>") -> "ProjectConfig":
        """Parse and validate a decoded JSON document.

        Args:
            data: Decoded JSON value
            source: Name used in error messages

        Raises:
            ProjectConfigError: If the document has the wrong shape
        """
        if not isinstance(data, dict):
            raise ProjectConfigError(f"Invalid configuration format in {source}")

        unknown = set(data) - KNOWN_FIELDS
        if unknown:
            raise ProjectConfigError(
                f"Unknown keys in {source}: {', '.join(sorted(unknown))}"
            )

        main_file = data.get("mainFile")
        if not isinstance(main_file, str) or not main_file:
            raise ProjectConfigError(f"Missing or invalid 'mainFile' in {source}")

        lists: Dict[str, List[str]] = {}
        for key in LIST_FIELDS:
            value = data.get(key, [])
            if not isinstance(value, list):
                raise ProjectConfigError(f"'{key}' must be an array in {source}")
            if not all(isinstance(item, str) for item in value):
                raise ProjectConfigError(f"All {key} must be strings in {source}")
            lists[key] = list(value)

        return cls(
            main_file=main_file,
            dependencies=lists["dependencies"],
            include_paths=lists["includePaths"],
            defines=lists["defines"],
        )

    def resolve(self, config_dir: Path, config_path: Optional[Path] = None) -> "ResolvedProjectConfig":
        """Resolve all paths against the config directory.

        Raises:
            FileNotFoundError: If the main file or a dependency is missing
            ProjectConfigError: If an include path is not a directory
        """
        config_dir = Path(config_dir).resolve()

        def absolute(path: str) -> Path:
            return (config_dir / path).resolve()

        main_file = absolute(self.main_file)
        if not main_file.is_file():
            raise FileNotFoundError(f"Main file not found: {main_file}")

        dependencies = []
        for dep in self.dependencies:
            dep_path = absolute(dep)
            if not dep_path.is_file():
                raise FileNotFoundError(f"Dependency file not found: {dep_path}")
            dependencies.append(dep_path)

        include_paths = []
        for include in self.include_paths:
            include_path = absolute(include)
            if not include_path.exists():
                raise FileNotFoundError(f"Include path directory not found: {include_path}")
            if not include_path.is_dir():
                raise ProjectConfigError(f"Include path is not a directory: {include_path}")
            include_paths.append(include_path)

        return ResolvedProjectConfig(
            main_file=main_file,
            dependencies=tuple(dependencies),
            include_paths=tuple(include_paths),
            defines=tuple(self.defines),
            config_dir=config_dir,
            config_path=config_path,
        )


@dataclass(frozen=True)
class ResolvedProjectConfig:
    """Project configuration with absolute, verified paths."""

    main_file: Path
    dependencies: tuple = ()
    include_paths: tuple = ()
    defines: tuple = ()
    config_dir: Optional[Path] = None
    config_path: Optional[Path] = None


def load_project_config(config_path: Path) -> ResolvedProjectConfig:
    """Load, validate and resolve a project configuration file.

    Args:
        config_path: Path to .lvgl-live-preview.json

    Returns:
        Resolved configuration

    Raises:
        FileNotFoundError: If the config or a referenced file is missing
        ProjectConfigError: If the file is not valid JSON or has the wrong shape
    """
    config_path = Path(config_path).resolve()
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ProjectConfigError(f"Failed to parse {config_path}: {e}") from e

    config = ProjectConfig.from_dict(data, source=str(config_path))
    return config.resolve(config_path.parent, config_path=config_path)


def find_config_file(start_dir: Path, stop_dir: Optional[Path] = None) -> Optional[Path]:
    """Search upward from start_dir for a project configuration file.

    Args:
        start_dir: Directory to start from
        stop_dir: Last directory to search (default: filesystem root)

    Returns:
        Path to the config file, or None if not found
    """
    current = Path(start_dir).resolve()
    stop = Path(stop_dir).resolve() if stop_dir else None

    while True:
        candidate = current / CONFIG_FILE_NAME
        if candidate.is_file():
            return candidate
        if stop is not None and current == stop:
            return None
        if current.parent == current:
            return None
        current = current.parent
