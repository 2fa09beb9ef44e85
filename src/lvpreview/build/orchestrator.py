"""
Build orchestration for lvpreview.

This module turns one preview request into a linked WebAssembly module. It
integrates all build system components:
- Settings validation (memory budget, version string)
- Driver profile selection (LVGL 8 vs LVGL 9)
- Library build (precompiled LVGL objects, reused by build key)
- Dependency build (per-project object cache, multi-file mode only)
- Linking (emcc, output.js + output.wasm)

The orchestrator is the error boundary: every failure below it is returned
as an unsuccessful CompilationResult instead of an exception.
"""

import logging
import time
from pathlib import Path
from typing import List, Optional, Union

from ..config.project_config import (
    CONFIG_FILE_NAME,
    ResolvedProjectConfig,
    find_config_file,
    load_project_config,
)
from ..config.settings import PreviewSettings
from ..errors import BuildFailure, ConfigurationError
from ..packages.cache import Cache
from ..packages.lvgl_sources import LvglSourceManager
from ..packages.toolchain import EmscriptenToolchain
from .dependency_builder import DependencyBuilder
from .diagnostics import CompilationResult
from .driver_profile import resolve_driver_profile
from .fingerprint import CompilationSettings, hash_settings
from .library_builder import LibraryBuilder
from .linker import Linker
from .object_cache import ObjectCache
from .templates import generate_main_file
from .toolchain_invoker import ToolchainInvoker

MAIN_FILE_NAME = "main.c"


class BuildOrchestrator:
    """
    Orchestrates a complete preview build.

    Phases:
    1. Validate settings and select the driver profile
    2. Build or reuse LVGL objects
    3. Generate the entry source
    4. Compile project dependencies (multi-file mode)
    5. Link output.js and output.wasm

    Usage:
        orchestrator = BuildOrchestrator(PreviewSettings(lvgl_version="8.3.11"))
        result = orchestrator.build_project(Path("ui.c"))
        if result.success:
            print(f"Module: {result.wasm_path}")
    """

    def __init__(
        self,
        settings: Optional[PreviewSettings] = None,
        cache: Optional[Cache] = None,
        invoker: Optional[ToolchainInvoker] = None,
        source_manager: Optional[LvglSourceManager] = None,
        verbose: bool = False,
    ):
        """
        Initialize build orchestrator.

        Args:
            settings: Preview settings (default settings if None)
            cache: Cache instance (default cache location if None)
            invoker: Toolchain invoker (emcc resolved on first build if None)
            source_manager: LVGL source manager (created from cache if None)
            verbose: Print phase progress
        """
        self.settings = settings or PreviewSettings()
        self.cache = cache or Cache()
        self.invoker = invoker
        self.source_manager = source_manager or LvglSourceManager(
            self.cache, show_progress=verbose
        )
        self.verbose = verbose

    def _get_invoker(self) -> ToolchainInvoker:
        if self.invoker is None:
            emcc_path = EmscriptenToolchain(self.settings.emcc_path).get_emcc_path()
            logging.info(f"Using emcc: {emcc_path}")
            self.invoker = ToolchainInvoker(emcc_path)
        return self.invoker

    def _library_builder(self) -> LibraryBuilder:
        return LibraryBuilder(
            self.cache,
            self.settings,
            self.source_manager,
            self.invoker,
            batch_size=self.settings.batch_size,
        )

    def resolve_project(
        self,
        target: Path,
        project_config: Optional[ResolvedProjectConfig] = None,
    ) -> Optional[ResolvedProjectConfig]:
        """
        Decide between single-file and multi-file mode.

        Args:
            target: Source file or project config file
            project_config: Explicit project config (takes precedence)

        Returns:
            Resolved project config, or None for single-file mode

        Raises:
            ConfigurationError: If target is a config file that is invalid
            FileNotFoundError: If target is a config file referencing missing files
        """
        if project_config is not None:
            return project_config

        target = Path(target)
        if target.name == CONFIG_FILE_NAME:
            return load_project_config(target)

        config_path = find_config_file(target.resolve().parent)
        if config_path is None:
            logging.info("No project config found, using single-file mode")
            return None

        try:
            project = load_project_config(config_path)
        except (ConfigurationError, FileNotFoundError) as e:
            logging.warning(f"Ignoring invalid project config {config_path}: {e}")
            return None

        logging.info(f"Found project config: {config_path}")
        return project

    def _user_include_paths(self, base_dir: Path) -> List[Path]:
        return [(base_dir / path).resolve() for path in self.settings.include_paths]

    def project_id(self, project: ResolvedProjectConfig) -> str:
        """Identify a project's dependency cache by its config location."""
        return Cache.hash_key(str(project.config_path or project.main_file))

    def dependency_cache(
        self,
        project: ResolvedProjectConfig,
        include_paths: List[Path],
        defines: List[str],
    ) -> ObjectCache:
        """Open the object cache of a project under the current settings."""
        settings_hash = hash_settings(
            CompilationSettings(
                lvgl_version=self.settings.lvgl_version,
                optimization=self.settings.optimization,
                lvgl_memory_kb=self.settings.lvgl_memory_kb,
                wasm_memory_mb=self.settings.wasm_memory_mb,
                include_paths=tuple(str(p) for p in include_paths),
                defines=tuple(defines),
            )
        )
        cache_dir = self.cache.get_dependency_cache_dir(self.project_id(project))
        return ObjectCache(cache_dir, settings_hash)

    def build_project(
        self,
        target: Union[str, Path],
        project_config: Optional[ResolvedProjectConfig] = None,
    ) -> CompilationResult:
        """
        Build a preview module.

        Args:
            target: User source file, or a .lvgl-live-preview.json file
            project_config: Explicit project config for multi-file mode

        Returns:
            CompilationResult; failures are reported as data, never raised
        """
        target = Path(target)
        user_source = project_config.main_file if project_config else target
        start_time = time.time()

        try:
            if self.verbose:
                print("[1/5] Validating configuration...")
            self.settings.validate()
            version = self.settings.lvgl_version
            profile = resolve_driver_profile(version)

            project = self.resolve_project(target, project_config)
            if project is not None:
                user_source = project.main_file
                base_dir = project.config_dir or project.main_file.parent
            else:
                user_source = target.resolve()
                base_dir = user_source.parent

            if not Path(user_source).is_file():
                raise FileNotFoundError(f"Source file not found: {user_source}")

            if self.verbose:
                print(f"      LVGL: {version} ({profile.name} drivers)")
                print(f"      Mode: {'multi-file' if project else 'single-file'}")

            self._get_invoker()

            if self.verbose:
                print("[2/5] Building LVGL objects...")
            library_objects = self._library_builder().build(version)
            if self.verbose:
                print(f"      {len(library_objects)} LVGL objects")

            lvgl_path = self.source_manager.get_version_path(version)
            drivers_path = self.source_manager.get_drivers_path() if profile.needs_driver_package else None

            include_paths = profile.include_paths(lvgl_path, drivers_path)
            include_paths += self._user_include_paths(base_dir)
            defines = list(profile.defines) + list(self.settings.defines)
            if project is not None:
                include_paths += list(project.include_paths)
                defines += list(project.defines)

            if self.verbose:
                print("[3/5] Generating entry source...")
            main_path = generate_main_file(self.cache.build_root / MAIN_FILE_NAME)

            dependency_objects: List[Path] = []
            if project is not None and project.dependencies:
                if self.verbose:
                    print(f"[4/5] Compiling {len(project.dependencies)} dependencies...")
                object_cache = self.dependency_cache(project, include_paths, defines)
                builder = DependencyBuilder(
                    object_cache,
                    self.invoker,
                    batch_size=self.settings.batch_size,
                    verbose=self.verbose,
                )
                dependency_objects = builder.compile(
                    project.dependencies, include_paths, self.settings.optimization, defines
                )
                failed = [d for d in project.dependencies if object_cache.get_artifact(d) is None]
                if failed:
                    names = ", ".join(Path(f).name for f in failed)
                    raise BuildFailure(f"Failed to compile dependencies: {names}")
            elif self.verbose:
                print("[4/5] No dependencies")

            if self.verbose:
                print("[5/5] Linking...")
            result = Linker(self.invoker).link(
                main_path,
                Path(user_source),
                library_objects,
                dependency_objects,
                include_paths,
                defines,
                profile.link_sources(lvgl_path, drivers_path),
                self.settings.wasm_memory_mb,
                self.cache.get_build_dir(Path(user_source).stem),
            )

            if self.verbose:
                status = "successful" if result.success else "failed"
                print(f"      Build {status} in {time.time() - start_time:.2f}s")
            return result

        except KeyboardInterrupt:
            raise
        except Exception as e:
            logging.error(f"Compilation error: {e}")
            return CompilationResult.failure(user_source, f"Compilation failed: {e}")

    def clear_cache(self, project_config: Optional[ResolvedProjectConfig] = None) -> None:
        """
        Clear cached build artifacts.

        Args:
            project_config: Also clear this project's dependency objects
        """
        self._library_builder().clear_cache()
        self.cache.clean_build()

        if project_config is not None:
            cache_dir = self.cache.get_dependency_cache_dir(self.project_id(project_config))
            if cache_dir.exists():
                ObjectCache(cache_dir, settings_hash="").clear()
