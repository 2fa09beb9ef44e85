"""Cache management for lvpreview.

This module provides a unified cache structure for downloaded library
sources, compiled objects and build outputs.

Cache Structure:
    ~/.lvpreview/
    ├── lvgl/
    │   └── {version}/              # Extracted LVGL release
    ├── lv_drivers/
    │   └── master/                 # Extracted lv_drivers (LVGL 8.x only)
    ├── cache/
    │   ├── obj_{build_key}/        # Precompiled LVGL objects
    │   │   └── .build_complete     # Completion marker
    │   └── lv_conf_{build_key}.h   # Generated headers
    ├── dependency-cache/
    │   └── {project_id}/           # Per-project dependency objects
    │       └── metadata.json
    └── build/
        └── {name}/                 # Link outputs (output.js, output.wasm)

The root can be overridden with the LVPREVIEW_CACHE_DIR environment variable.
"""

import hashlib
import os
import shutil
from pathlib import Path
from typing import Optional

CACHE_ENV_VAR = "LVPREVIEW_CACHE_DIR"


class Cache:
    """Manages the lvpreview cache directory structure."""

    def __init__(self, root: Optional[Path] = None):
        """Initialize cache manager.

        Args:
            root: Cache root. If None, uses LVPREVIEW_CACHE_DIR or ~/.lvpreview
        """
        if root is None:
            cache_env = os.environ.get(CACHE_ENV_VAR)
            root = Path(cache_env) if cache_env else Path.home() / ".lvpreview"

        self.cache_root = Path(root).resolve()

    @staticmethod
    def hash_key(text: str) -> str:
        """Generate a short SHA256 hash for cache directory naming.

        Args:
            text: Text to hash (a URL or a config file path)

        Returns:
            First 16 characters of SHA256 hash
        """
        return hashlib.sha256(text.encode("utf-8")).hexdigest()[:16]

    @property
    def lvgl_dir(self) -> Path:
        """Directory for extracted LVGL releases."""
        return self.cache_root / "lvgl"

    @property
    def drivers_dir(self) -> Path:
        """Directory for the extracted lv_drivers package."""
        return self.cache_root / "lv_drivers"

    @property
    def downloads_dir(self) -> Path:
        """Directory for downloaded archives awaiting extraction."""
        return self.cache_root / "downloads"

    @property
    def objects_dir(self) -> Path:
        """Directory for precompiled library objects and generated headers."""
        return self.cache_root / "cache"

    @property
    def dependency_cache_root(self) -> Path:
        """Directory holding one object cache per project."""
        return self.cache_root / "dependency-cache"

    @property
    def build_root(self) -> Path:
        """Directory for link outputs."""
        return self.cache_root / "build"

    def get_dependency_cache_dir(self, project_id: str) -> Path:
        """Get the object cache directory for a project.

        Args:
            project_id: Project identifier (see hash_key)
        """
        return self.dependency_cache_root / project_id

    def get_build_dir(self, name: str) -> Path:
        """Get the link output directory for a source file name."""
        return self.build_root / name

    def ensure_directories(self) -> None:
        """Create all cache directories if they don't exist."""
        for directory in [
            self.lvgl_dir,
            self.drivers_dir,
            self.downloads_dir,
            self.objects_dir,
            self.dependency_cache_root,
            self.build_root,
        ]:
            directory.mkdir(parents=True, exist_ok=True)

    def clean_build(self) -> None:
        """Remove all link outputs."""
        if self.build_root.exists():
            shutil.rmtree(self.build_root)
