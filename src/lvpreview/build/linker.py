"""
emcc link stage for producing the preview module.

This module links precompiled LVGL objects, dependency objects and the
entry/user sources into output.js and output.wasm with one emcc call.
"""

import logging
import time
from pathlib import Path
from typing import List, Sequence, Union

from .diagnostics import CompilationResult, StructuredDiagnostic, parse_compiler_output
from .toolchain_invoker import PREVIEW_DEFINE, ToolchainInvoker, ToolchainProcessError

OUTPUT_NAME = "output"
MANIFEST_FILE = "objects.txt"
STACK_SIZE_MB = 5
# First-time links also build emscripten's SDL2 port
LINK_TIMEOUT = 120


def write_manifest(objects: Sequence[Path], manifest_path: Path) -> Path:
    """Write an emcc response file listing one quoted object path per line."""
    lines = ['"' + str(obj).replace("\\", "/") + '"' for obj in objects]
    manifest_path.parent.mkdir(parents=True, exist_ok=True)
    manifest_path.write_text("\n".join(lines), encoding="utf-8")
    return manifest_path


class Linker:
    """Links the final preview module with emcc."""

    def __init__(self, invoker: ToolchainInvoker, timeout: float = LINK_TIMEOUT):
        """
        Initialize linker.

        Args:
            invoker: Toolchain invoker
            timeout: Link timeout in seconds
        """
        self.invoker = invoker
        self.timeout = timeout

    def build_args(
        self,
        main_source: Path,
        user_source: Path,
        include_paths: Sequence[Path],
        defines: Sequence[str],
        additional_sources: Sequence[Path],
        memory_budget_mb: int,
        manifest_path: Path,
        js_path: Path,
    ) -> List[str]:
        """Build the emcc argument list for the link."""
        args = ["-O0", f"-D{PREVIEW_DEFINE}"]
        args.extend(f"-D{define}" for define in defines)
        args.extend([
            "-s", "WASM=1",
            "-s", "USE_SDL=2",
            "-s", "ALLOW_MEMORY_GROWTH=1",
            "-s", 'EXPORTED_FUNCTIONS=["_main"]',
            "-s", 'EXPORTED_RUNTIME_METHODS=["ccall","cwrap"]',
            "-s", f"INITIAL_MEMORY={memory_budget_mb * 1024 * 1024}",
            "-s", f"STACK_SIZE={STACK_SIZE_MB * 1024 * 1024}",
            "-s", "ASSERTIONS=0",
            "-s", "SAFE_HEAP=0",
        ])
        args.extend(f"-I{path}" for path in include_paths)
        args.append(str(main_source))
        args.append(str(user_source))
        args.extend(str(src) for src in additional_sources)
        args.append(f"@{manifest_path}")
        args.extend(["-o", str(js_path)])
        return args

    def link(
        self,
        main_source: Path,
        user_source: Path,
        library_objects: Sequence[Path],
        dependency_objects: Sequence[Path],
        include_paths: Sequence[Path],
        defines: Sequence[str],
        additional_sources: Sequence[Path],
        memory_budget_mb: int,
        output_dir: Union[str, Path],
    ) -> CompilationResult:
        """
        Link all inputs into output.js and output.wasm.

        Never raises for toolchain failures: a failed or timed-out link is
        returned as an unsuccessful result carrying the parsed diagnostics.

        Args:
            main_source: Generated entry source (main.c)
            user_source: User source providing lvgl_live_preview_init()
            library_objects: Precompiled LVGL objects
            dependency_objects: Compiled dependency objects
            include_paths: Include directories
            defines: Preprocessor defines
            additional_sources: Sources compiled during the link (SDL drivers)
            memory_budget_mb: Initial WASM memory in MB
            output_dir: Directory for outputs and the object manifest

        Returns:
            CompilationResult
        """
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        js_path = output_dir / f"{OUTPUT_NAME}.js"
        wasm_path = output_dir / f"{OUTPUT_NAME}.wasm"

        manifest_path = write_manifest(
            list(library_objects) + list(dependency_objects),
            output_dir / MANIFEST_FILE,
        )

        args = self.build_args(
            main_source,
            user_source,
            include_paths,
            defines,
            additional_sources,
            memory_budget_mb,
            manifest_path,
            js_path,
        )

        logging.info(
            f"Linking {2 + len(dependency_objects) + len(additional_sources)} user files "
            + f"+ {len(library_objects)} LVGL objects"
        )

        start_time = time.time()
        try:
            output = self.invoker.invoke(args, cwd=output_dir, timeout=self.timeout)
        except ToolchainProcessError as e:
            logging.warning(f"Link failed: {e}")
            diagnostics = parse_compiler_output(e.output)
            result = CompilationResult.from_diagnostics(diagnostics)
            result.success = False
            if not result.errors:
                result.errors.append(
                    StructuredDiagnostic(
                        file=str(user_source),
                        line=1,
                        column=1,
                        severity="error",
                        message=f"Link failed: {e}",
                    )
                )
            return result

        logging.info(f"Link completed in {time.time() - start_time:.2f}s")
        diagnostics = parse_compiler_output(output.stderr)
        return CompilationResult.from_diagnostics(diagnostics, wasm_path=wasm_path, js_path=js_path)
