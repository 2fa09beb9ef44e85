"""Configuration parsing modules for lvpreview."""

from .project_config import (
    CONFIG_FILE_NAME,
    ProjectConfig,
    ProjectConfigError,
    ResolvedProjectConfig,
    find_config_file,
    load_project_config,
)
from .settings import MIN_RUNTIME_OVERHEAD_MB, PreviewSettings

__all__ = [
    "PreviewSettings",
    "MIN_RUNTIME_OVERHEAD_MB",
    "ProjectConfig",
    "ProjectConfigError",
    "ResolvedProjectConfig",
    "CONFIG_FILE_NAME",
    "find_config_file",
    "load_project_config",
]
