"""Content and settings fingerprints used as cache-validity keys.

Source files are hashed by content (SHA-256). Compilation settings are
normalized before hashing so that reordering include paths or defines
never invalidates the object cache.
"""

import hashlib
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Tuple

CHUNK_SIZE = 8192

# Settings digests only need to be unique within one machine's cache.
SETTINGS_HASH_LENGTH = 16


@dataclass(frozen=True)
class CompilationSettings:
    """Settings that affect object file compatibility."""

    lvgl_version: str
    optimization: str
    lvgl_memory_kb: int
    wasm_memory_mb: int
    include_paths: Tuple[str, ...] = field(default_factory=tuple)
    defines: Tuple[str, ...] = field(default_factory=tuple)

    def normalized(self) -> dict:
        """Return an order-independent representation for hashing."""
        return {
            "lvgl_version": self.lvgl_version,
            "optimization": self.optimization,
            "lvgl_memory_kb": self.lvgl_memory_kb,
            "wasm_memory_mb": self.wasm_memory_mb,
            "include_paths": sorted(str(p) for p in self.include_paths),
            "defines": sorted(self.defines),
        }


def hash_file(path: Path) -> str:
    """Compute the SHA-256 digest of a file's content.

    Args:
        path: File to hash

    Returns:
        Hex-encoded digest

    Raises:
        OSError: If the file cannot be read
    """
    sha256 = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
            sha256.update(chunk)
    return sha256.hexdigest()


def hash_settings(settings: CompilationSettings) -> str:
    """Compute a canonical digest of compilation settings.

    Args:
        settings: Compilation settings

    Returns:
        Truncated hex digest
    """
    serialized = json.dumps(settings.normalized(), sort_keys=True)
    digest = hashlib.sha256(serialized.encode("utf-8")).hexdigest()
    return digest[:SETTINGS_HASH_LENGTH]
