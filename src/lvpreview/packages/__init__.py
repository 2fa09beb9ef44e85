"""Package management for lvpreview.

This module handles downloading, caching, and locating external packages:
LVGL releases, the lv_drivers package and the emscripten compiler.
"""

from .cache import Cache
from .downloader import ChecksumError, DownloadError, ExtractionError, PackageDownloader
from .lvgl_sources import LvglSourceManager
from .toolchain import EmscriptenToolchain, ToolchainError

__all__ = [
    "Cache",
    "PackageDownloader",
    "DownloadError",
    "ChecksumError",
    "ExtractionError",
    "LvglSourceManager",
    "EmscriptenToolchain",
    "ToolchainError",
]
