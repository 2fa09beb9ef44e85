"""Display driver profiles for the two LVGL major version families.

LVGL 8 renders through the external ``lv_drivers`` package, while LVGL 9
ships its own SDL driver. Each profile supplies, as data, the defines,
include paths and link-only driver sources its family needs. The profile is
resolved once per build from the version string.

SDL driver sources are link-only: they include SDL2 headers that only the
emscripten SDL port provides during the final link (``-s USE_SDL=2``), so
they must never be precompiled with the library.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional, Tuple

from ..errors import ConfigurationError

LEGACY_MAJOR_LIMIT = 9


class DriverProfile(ABC):
    """Interface for version-specific driver configuration."""

    name: str = ""
    needs_driver_package: bool = False
    cache_suffix: str = ""
    defines: Tuple[str, ...] = ()

    @abstractmethod
    def include_paths(self, lvgl_path: Path, drivers_path: Optional[Path] = None) -> List[Path]:
        """Return include directories for library and user compilation."""
        pass

    @abstractmethod
    def link_sources(self, lvgl_path: Path, drivers_path: Optional[Path] = None) -> List[Path]:
        """Return driver sources compiled during the final link."""
        pass

    def precompile_exclusions(self, lvgl_path: Path) -> List[Path]:
        """Return library directories whose sources must not be precompiled."""
        return []


class LegacyDriverProfile(DriverProfile):
    """LVGL 8.x with the lv_drivers SDL backend."""

    name = "legacy"
    needs_driver_package = True
    cache_suffix = "_with_lvdrivers"
    defines = ("LV_LVGL_H_INCLUDE_SIMPLE", "LV_CONF_INCLUDE_SIMPLE", "USE_SDL=1")

    def include_paths(self, lvgl_path: Path, drivers_path: Optional[Path] = None) -> List[Path]:
        paths = [lvgl_path, lvgl_path / "src"]
        if drivers_path is not None:
            paths.append(drivers_path)
        return paths

    def link_sources(self, lvgl_path: Path, drivers_path: Optional[Path] = None) -> List[Path]:
        if drivers_path is None:
            return []
        sdl_dir = drivers_path / "sdl"
        if not sdl_dir.is_dir():
            return []
        return sorted(sdl_dir.glob("*.c"))


class BuiltinDriverProfile(DriverProfile):
    """LVGL 9.x with its bundled SDL driver."""

    name = "builtin"
    defines = ("LV_CONF_INCLUDE_SIMPLE",)

    def include_paths(self, lvgl_path: Path, drivers_path: Optional[Path] = None) -> List[Path]:
        return [lvgl_path, lvgl_path / "src"]

    def link_sources(self, lvgl_path: Path, drivers_path: Optional[Path] = None) -> List[Path]:
        sdl_dir = lvgl_path / "src" / "drivers" / "sdl"
        if not sdl_dir.is_dir():
            return []
        return sorted(sdl_dir.glob("*.c"))

    def precompile_exclusions(self, lvgl_path: Path) -> List[Path]:
        return [lvgl_path / "src" / "drivers" / "sdl"]


def parse_major_version(version: str) -> int:
    """Extract the major version number from a version string.

    Raises:
        ConfigurationError: If the major component is not an integer
    """
    major = version.strip().lstrip("v").split(".")[0]
    try:
        return int(major)
    except ValueError:
        raise ConfigurationError(f"Invalid LVGL version: '{version}'")


def resolve_driver_profile(version: str) -> DriverProfile:
    """Select the driver profile for an LVGL version string."""
    if parse_major_version(version) < LEGACY_MAJOR_LIMIT:
        return LegacyDriverProfile()
    return BuiltinDriverProfile()
