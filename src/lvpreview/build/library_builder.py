"""LVGL library build stage.

This module precompiles the LVGL sources for one version and settings
combination and reuses the result for every later build with the same key.

Design:
    - Objects live in a directory named after a LibraryBuildKey
    - A .build_complete marker is written only after every object compiled;
      its presence alone means the directory can be trusted as-is
    - SDL driver sources are never precompiled here (see driver_profile)
    - BUILD_STRATEGY_VERSION must be bumped whenever the set of precompiled
      files or the way they are compiled changes
"""

import logging
import shutil
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from ..config.settings import PreviewSettings
from ..errors import BuildFailure
from ..packages.cache import Cache
from ..packages.lvgl_sources import LvglSourceManager
from .driver_profile import DriverProfile, resolve_driver_profile
from .templates import generate_lv_conf, generate_lv_drv_conf
from .toolchain_invoker import ToolchainInvoker

# v2: SDL drivers compiled during the final link instead of precompiled
# v3: LVGL heap size added to the key
BUILD_STRATEGY_VERSION = "v3"
MARKER_FILE = ".build_complete"


@dataclass(frozen=True)
class LibraryBuildKey:
    """Composite key scoping one set of precompiled library objects."""

    version: str
    optimization: str
    width: int
    height: int
    memory_kb: int
    driver_suffix: str = ""
    strategy: str = BUILD_STRATEGY_VERSION

    def __str__(self) -> str:
        return (
            f"{self.version}_{self.optimization}_{self.width}x{self.height}"
            f"_mem{self.memory_kb}{self.driver_suffix}_{self.strategy}"
        )


class LibraryBuilder:
    """Builds or reuses precompiled LVGL objects."""

    def __init__(
        self,
        cache: Cache,
        settings: PreviewSettings,
        source_manager: LvglSourceManager,
        invoker: ToolchainInvoker,
        batch_size: Optional[int] = None,
    ):
        """Initialize the library builder.

        Args:
            cache: Cache providing the object root directory
            settings: Preview settings (geometry, heap size, optimization)
            source_manager: Provider of LVGL and lv_drivers sources
            invoker: Toolchain invoker used for compilation
            batch_size: Parallel compile batch size (default: CPU count)
        """
        self.cache = cache
        self.settings = settings
        self.source_manager = source_manager
        self.invoker = invoker
        self.batch_size = batch_size

    @property
    def root(self) -> Path:
        """Directory owned by this stage."""
        return self.cache.objects_dir

    def build_key(self, version: str, profile: Optional[DriverProfile] = None) -> LibraryBuildKey:
        """Compute the build key for a version under the current settings."""
        profile = profile or resolve_driver_profile(version)
        return LibraryBuildKey(
            version=version,
            optimization=self.settings.optimization,
            width=self.settings.display_width,
            height=self.settings.display_height,
            memory_kb=self.settings.lvgl_memory_kb,
            driver_suffix=profile.cache_suffix,
        )

    def object_dir(self, version: str) -> Path:
        """Return the object directory for a version under the current settings."""
        return self.root / f"obj_{self.build_key(version)}"

    def is_built(self, version: str) -> bool:
        """Check whether a completed build exists for the current key."""
        return (self.object_dir(version) / MARKER_FILE).exists()

    @staticmethod
    def get_object_files(obj_dir: Path) -> List[Path]:
        """List the .o files directly inside a directory."""
        return sorted(p for p in obj_dir.iterdir() if p.is_file() and p.suffix == ".o")

    def build(self, version: str) -> List[Path]:
        """Build LVGL objects for a version, reusing a completed build.

        Args:
            version: LVGL version (e.g., "9.2.0")

        Returns:
            Sorted list of object files

        Raises:
            ConfigurationError: If the version string is invalid
            BuildFailure: If no object files were produced
            DownloadError: If the sources cannot be fetched
        """
        profile = resolve_driver_profile(version)
        key = self.build_key(version, profile)
        obj_dir = self.root / f"obj_{key}"
        marker = obj_dir / MARKER_FILE

        if marker.exists():
            object_files = self.get_object_files(obj_dir)
            logging.info(f"Using cached LVGL objects: {obj_dir} ({len(object_files)} files)")
            lvgl_path = self.source_manager.get_version_path(version)
            if lvgl_path.is_dir():
                drivers_path = None
                if profile.needs_driver_package:
                    drivers_path = self.source_manager.get_drivers_path()
                    if not drivers_path.is_dir():
                        drivers_path = None
                self._install_headers(key, profile, lvgl_path, drivers_path)
            return object_files

        logging.info(f"Building LVGL object files for version {version}...")
        self.root.mkdir(parents=True, exist_ok=True)

        lvgl_path = self.source_manager.ensure_version(version)

        drivers_path = None
        if profile.needs_driver_package:
            drivers_path = self._prepare_driver_package(lvgl_path)

        self._install_headers(key, profile, lvgl_path, drivers_path)

        # Leftovers of an interrupted build are never trusted
        if obj_dir.exists():
            shutil.rmtree(obj_dir)
        obj_dir.mkdir(parents=True)

        exclusions = profile.precompile_exclusions(lvgl_path)
        sources = self.source_manager.get_source_files(version, exclude=exclusions)
        logging.info(f"Found {len(sources)} LVGL source files")

        link_sources = profile.link_sources(lvgl_path, drivers_path)
        if link_sources:
            logging.info(f"{len(link_sources)} SDL driver sources will compile during the final link")

        object_files = self.invoker.compile_to_objects(
            sources,
            obj_dir,
            profile.include_paths(lvgl_path, drivers_path),
            optimization=self.settings.optimization,
            defines=profile.defines,
            batch_size=self.batch_size,
        )

        if not object_files:
            raise BuildFailure(f"Failed to compile LVGL {version} object files")

        marker.write_text(datetime.now().isoformat(), encoding="utf-8")
        logging.info(f"LVGL build completed: {len(object_files)} object files")
        return sorted(object_files)

    def _install_headers(
        self,
        key: LibraryBuildKey,
        profile: DriverProfile,
        lvgl_path: Path,
        drivers_path: Optional[Path] = None,
    ) -> None:
        """Write the headers for a key and copy them into the source trees.

        The LVGL and lv_drivers trees are shared by every key, so this runs on
        cache hits too: the link stage compiles against whatever lv_conf.h the
        tree holds.
        """
        conf_path = self.root / f"lv_conf_{key}.h"
        generate_lv_conf(
            conf_path,
            self.settings.display_width,
            self.settings.display_height,
            self.settings.lvgl_memory_kb,
            profile,
        )
        shutil.copyfile(conf_path, lvgl_path / "lv_conf.h")

        if drivers_path is not None:
            drv_conf_path = self.root / f"lv_drv_conf_{key}.h"
            generate_lv_drv_conf(
                drv_conf_path, self.settings.display_width, self.settings.display_height
            )
            shutil.copyfile(drv_conf_path, drivers_path / "lv_drv_conf.h")

    def _prepare_driver_package(self, lvgl_path: Path) -> Path:
        """Fetch lv_drivers for a legacy build and nest LVGL inside it."""
        drivers_path = self.source_manager.ensure_drivers()
        self._ensure_nested_library(lvgl_path, drivers_path)
        return drivers_path

    @staticmethod
    def _ensure_nested_library(lvgl_path: Path, drivers_path: Path) -> Path:
        """Place a copy of LVGL at lv_drivers/lvgl.

        lv_drivers includes "lvgl/lvgl.h" relative to its own tree. The copy
        goes to a temporary sibling first and is renamed into place, so a
        half-finished copy is never mistaken for a complete one.
        """
        nested = drivers_path / "lvgl"
        if nested.exists():
            return nested

        staging = drivers_path / ".lvgl.staging"
        if staging.exists():
            shutil.rmtree(staging)

        logging.info("Copying LVGL into lv_drivers for include compatibility...")
        shutil.copytree(lvgl_path, staging)
        staging.replace(nested)
        return nested

    def clear_cache(self) -> None:
        """Delete every precompiled object directory and generated header."""
        if not self.root.exists():
            return

        for path in self.root.iterdir():
            try:
                if path.is_dir():
                    shutil.rmtree(path)
                else:
                    path.unlink()
            except OSError as e:
                logging.warning(f"Failed to delete {path}: {e}")

        logging.info("LVGL object cache cleared")
