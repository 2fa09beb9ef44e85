"""Emscripten toolchain resolution.

Installing emsdk is out of scope; this module only locates a working emcc.

Search order:
    1. Explicit path (from settings)
    2. LVPREVIEW_EMCC environment variable
    3. $EMSDK/upstream/emscripten/emcc
    4. emcc on PATH
"""

import os
import platform
import shutil
from pathlib import Path
from typing import List, Optional

EMCC_ENV_VAR = "LVPREVIEW_EMCC"


class ToolchainError(Exception):
    """Raised when the emscripten compiler cannot be located."""

    pass


class EmscriptenToolchain:
    """Locates the emcc compiler driver."""

    def __init__(self, emcc_path: Optional[Path] = None):
        """Initialize toolchain lookup.

        Args:
            emcc_path: Explicit path to emcc (optional)
        """
        self.emcc_path = Path(emcc_path) if emcc_path else None
        self._resolved: Optional[Path] = None

    @staticmethod
    def _executable_names() -> List[str]:
        if platform.system() == "Windows":
            return ["emcc.bat", "emcc"]
        return ["emcc"]

    def _candidates(self) -> List[Path]:
        candidates = []
        if self.emcc_path is not None:
            candidates.append(self.emcc_path)

        env_path = os.environ.get(EMCC_ENV_VAR)
        if env_path:
            candidates.append(Path(env_path))

        emsdk = os.environ.get("EMSDK")
        if emsdk:
            emscripten_dir = Path(emsdk) / "upstream" / "emscripten"
            candidates.extend(emscripten_dir / name for name in self._executable_names())

        for name in self._executable_names():
            found = shutil.which(name)
            if found:
                candidates.append(Path(found))

        return candidates

    def get_emcc_path(self) -> Path:
        """Return the path to emcc.

        Raises:
            ToolchainError: If no emcc can be found
        """
        if self._resolved is not None:
            return self._resolved

        if self.emcc_path is not None and not self.emcc_path.exists():
            raise ToolchainError(f"emcc not found: {self.emcc_path}")

        for candidate in self._candidates():
            if candidate.is_file():
                self._resolved = candidate
                return candidate

        raise ToolchainError(
            "emcc not found. Install emsdk and activate it, or set "
            + f"{EMCC_ENV_VAR} to the emcc executable."
        )
