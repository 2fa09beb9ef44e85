"""Preview settings parser.

Settings are read from the ``[preview]`` section of an INI file. Every key is
optional; missing keys fall back to the defaults below.

Example lvpreview.ini:
    [preview]
    lvgl_version = 8.3.11
    optimization = -O2
    display_width = 800
    display_height = 480
    lvgl_memory_kb = 512
    wasm_memory_mb = 128
    include_paths =
        include
        ../shared/include
    defines = USE_DARK_THEME, APP_VERSION=2
"""

import configparser
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from ..errors import ConfigurationError

SECTION = "preview"

# 5 MB stack plus emscripten runtime buffers
MIN_RUNTIME_OVERHEAD_MB = 8

VALID_OPTIMIZATIONS = {"-O0", "-O1", "-O2", "-O3", "-Os", "-Oz"}


def _split_list(value: str) -> List[str]:
    """Split a multi-line or comma-separated INI value."""
    items = []
    for line in value.splitlines():
        for item in line.split(","):
            item = item.strip()
            if item:
                items.append(item)
    return items


@dataclass
class PreviewSettings:
    """Settings consumed by the build pipeline."""

    lvgl_version: str = "9.2.0"
    optimization: str = "-O2"
    display_width: int = 480
    display_height: int = 320
    lvgl_memory_kb: int = 256
    wasm_memory_mb: int = 128
    include_paths: List[str] = field(default_factory=list)
    defines: List[str] = field(default_factory=list)
    emcc_path: Optional[str] = None
    batch_size: Optional[int] = None

    @classmethod
    def from_ini(cls, ini_path: Path) -> "PreviewSettings":
        """Load settings from an INI file.

        Args:
            ini_path: Path to the settings file. A missing file yields defaults.

        Returns:
            Parsed settings

        Raises:
            ConfigurationError: If the file cannot be parsed or a value is invalid
        """
        settings = cls()
        ini_path = Path(ini_path)
        if not ini_path.exists():
            return settings

        parser = configparser.ConfigParser(
            allow_no_value=True, interpolation=configparser.ExtendedInterpolation()
        )
        try:
            parser.read(ini_path, encoding="utf-8")
        except configparser.Error as e:
            raise ConfigurationError(f"Failed to parse {ini_path}: {e}") from e

        if SECTION not in parser:
            return settings

        section = parser[SECTION]
        try:
            settings.lvgl_version = section.get("lvgl_version", settings.lvgl_version).strip()
            settings.optimization = section.get("optimization", settings.optimization).strip()
            settings.display_width = section.getint("display_width", settings.display_width)
            settings.display_height = section.getint("display_height", settings.display_height)
            settings.lvgl_memory_kb = section.getint("lvgl_memory_kb", settings.lvgl_memory_kb)
            settings.wasm_memory_mb = section.getint("wasm_memory_mb", settings.wasm_memory_mb)
            settings.include_paths = _split_list(section.get("include_paths", "") or "")
            settings.defines = _split_list(section.get("defines", "") or "")
            settings.emcc_path = section.get("emcc_path") or None
            batch_size = section.get("batch_size")
            settings.batch_size = int(batch_size) if batch_size else None
        except (ValueError, configparser.Error) as e:
            raise ConfigurationError(f"Invalid value in [{SECTION}] of {ini_path}: {e}") from e

        return settings

    @property
    def min_wasm_memory_mb(self) -> int:
        """Smallest runtime budget that fits the LVGL heap plus overhead."""
        return math.ceil(self.lvgl_memory_kb / 1024) + MIN_RUNTIME_OVERHEAD_MB

    def validate_memory_budget(self) -> None:
        """Check that the runtime memory budget fits the LVGL heap.

        Raises:
            ConfigurationError: If wasm_memory_mb is too small
        """
        minimum = self.min_wasm_memory_mb
        if self.wasm_memory_mb < minimum:
            raise ConfigurationError(
                f"wasm_memory_mb ({self.wasm_memory_mb} MB) is too small for "
                + f"lvgl_memory_kb ({self.lvgl_memory_kb} KB). "
                + f"Minimum required: {minimum} MB"
            )

    def validate(self) -> None:
        """Validate all settings before any build work starts.

        Raises:
            ConfigurationError: If any setting is invalid
        """
        if self.optimization not in VALID_OPTIMIZATIONS:
            raise ConfigurationError(
                f"Invalid optimization '{self.optimization}'. "
                + f"Expected one of: {', '.join(sorted(VALID_OPTIMIZATIONS))}"
            )
        if self.display_width <= 0 or self.display_height <= 0:
            raise ConfigurationError(
                f"Invalid display size {self.display_width}x{self.display_height}"
            )
        if self.lvgl_memory_kb <= 0:
            raise ConfigurationError(f"lvgl_memory_kb must be positive, got {self.lvgl_memory_kb}")
        if self.batch_size is not None and self.batch_size < 1:
            raise ConfigurationError(f"batch_size must be at least 1, got {self.batch_size}")
        self.validate_memory_budget()
