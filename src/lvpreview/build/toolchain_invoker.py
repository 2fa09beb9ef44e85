"""Toolchain invoker for the emscripten compiler (emcc).

This module runs emcc via subprocess and compiles batches of sources to
object files.

Design:
    - Wraps subprocess.run; non-zero exit or timeout raises ToolchainProcessError
      carrying whatever stdout/stderr was captured
    - Captured output is capped at a maximum buffer size
    - Sources compile in fixed-size parallel batches; each batch finishes
      before the next starts, bounding the number of live emcc processes
    - Object names include a short path hash so same-named sources from
      different directories never collide in a flat output directory
"""

import hashlib
import logging
import platform
import subprocess
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

import psutil

MAX_OUTPUT_BYTES = 10 * 1024 * 1024
MAX_BATCH_SIZE = 16
PREVIEW_DEFINE = "LVGL_LIVE_PREVIEW"


class ToolchainProcessError(Exception):
    """Raised when an emcc invocation fails or times out.

    Attributes:
        stdout: Captured standard output (possibly partial)
        stderr: Captured standard error (possibly partial)
        returncode: Process exit code, or None on timeout
    """

    def __init__(self, message: str, stdout: str = "", stderr: str = "",
                 returncode: Optional[int] = None):
        super().__init__(message)
        self.stdout = stdout
        self.stderr = stderr
        self.returncode = returncode

    @property
    def output(self) -> str:
        """Combined stdout and stderr."""
        return "\n".join(part for part in (self.stdout, self.stderr) if part)


@dataclass
class ToolchainOutput:
    """Captured output of a successful invocation."""

    stdout: str
    stderr: str


def default_batch_size() -> int:
    """Return a batch size bounded by the machine's CPU count."""
    cpus = psutil.cpu_count(logical=True) or 1
    return max(1, min(cpus, MAX_BATCH_SIZE))


def object_path_for(source: Path, output_dir: Path) -> Path:
    """Return the object file path for a source in a flat output directory."""
    source = Path(source)
    path_hash = hashlib.sha256(str(source.resolve()).encode("utf-8")).hexdigest()[:8]
    return Path(output_dir) / f"{source.stem}-{path_hash}.o"


def _decode(data) -> str:
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return data


class ToolchainInvoker:
    """Runs emcc with flag-style arguments."""

    def __init__(self, emcc_path: Path, max_output_bytes: int = MAX_OUTPUT_BYTES):
        """Initialize the invoker.

        Args:
            emcc_path: Path to a working emcc executable
            max_output_bytes: Maximum captured bytes per output stream
        """
        self.emcc_path = Path(emcc_path)
        self.max_output_bytes = max_output_bytes

    def _truncate(self, text: str, stream: str) -> str:
        data = text.encode("utf-8")
        if len(data) <= self.max_output_bytes:
            return text
        logging.warning(f"emcc {stream} exceeded {self.max_output_bytes} bytes, truncating")
        # A multi-byte character cut at the limit is dropped
        return data[:self.max_output_bytes].decode("utf-8", errors="ignore")

    def invoke(
        self,
        args: Sequence[str],
        cwd: Optional[Path] = None,
        timeout: Optional[float] = None,
    ) -> ToolchainOutput:
        """Run emcc with the given arguments.

        Args:
            args: Arguments passed after the executable
            cwd: Working directory
            timeout: Timeout in seconds (None for no timeout)

        Returns:
            Captured stdout and stderr

        Raises:
            ToolchainProcessError: On non-zero exit, timeout, or launch failure
        """
        cmd = [str(self.emcc_path)] + [str(arg) for arg in args]
        # emcc ships as a .bat launcher on Windows
        use_shell = platform.system() == "Windows"

        try:
            result = subprocess.run(
                cmd,
                cwd=str(cwd) if cwd else None,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=timeout,
                shell=use_shell,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            raise ToolchainProcessError(
                f"emcc timed out after {timeout}s",
                stdout=self._truncate(_decode(e.stdout), "stdout"),
                stderr=self._truncate(_decode(e.stderr), "stderr"),
            ) from e
        except OSError as e:
            raise ToolchainProcessError(f"Failed to launch emcc: {e}") from e

        stdout = self._truncate(result.stdout or "", "stdout")
        stderr = self._truncate(result.stderr or "", "stderr")

        if result.returncode != 0:
            raise ToolchainProcessError(
                f"emcc exited with code {result.returncode}",
                stdout=stdout,
                stderr=stderr,
                returncode=result.returncode,
            )

        return ToolchainOutput(stdout=stdout, stderr=stderr)

    def compile_object(
        self,
        source: Path,
        output_dir: Path,
        include_paths: Sequence[Path],
        optimization: str = "-O2",
        defines: Sequence[str] = (),
    ) -> Optional[Path]:
        """Compile one source to an object file.

        Returns:
            The object path, or None if compilation failed
        """
        object_path = object_path_for(source, output_dir)
        args = [optimization, f"-D{PREVIEW_DEFINE}"]
        args.extend(f"-D{define}" for define in defines)
        args.extend(["-c", str(source), "-o", str(object_path)])
        args.extend(f"-I{path}" for path in include_paths)

        try:
            self.invoke(args)
        except ToolchainProcessError as e:
            logging.warning(f"Failed to compile {Path(source).name}: {e}\n{e.output}")
            return None

        return object_path

    def compile_to_objects(
        self,
        sources: Sequence[Path],
        output_dir: Path,
        include_paths: Sequence[Path],
        optimization: str = "-O2",
        defines: Sequence[str] = (),
        batch_size: Optional[int] = None,
    ) -> List[Path]:
        """Compile sources to objects in parallel batches.

        Args:
            sources: Source files to compile
            output_dir: Directory for object files
            include_paths: Include directories
            optimization: Optimization flag
            defines: Preprocessor defines (KEY or KEY=value)
            batch_size: Sources compiled concurrently (default: CPU count)

        Returns:
            Object files that were produced, in source order
        """
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        batch_size = batch_size or default_batch_size()
        sources = list(sources)
        object_files: List[Path] = []

        with ThreadPoolExecutor(max_workers=batch_size) as executor:
            for start in range(0, len(sources), batch_size):
                batch = sources[start:start + batch_size]
                results = executor.map(
                    lambda src: self.compile_object(
                        src, output_dir, include_paths, optimization, defines
                    ),
                    batch,
                )
                object_files.extend(obj for obj in results if obj is not None)

                done = min(start + batch_size, len(sources))
                logging.info(f"  Compiled {done}/{len(sources)} files...")

        return object_files
