"""
Build system components for lvpreview.

This module provides the build pipeline implementation including:
- Fingerprints and the per-project object cache
- Compilation through emcc (toolchain invoker)
- LVGL library and dependency build stages
- Linking into output.js / output.wasm
- Build orchestration
"""

from .dependency_builder import DependencyBuilder
from .diagnostics import CompilationResult, StructuredDiagnostic, parse_compiler_output
from .driver_profile import (
    BuiltinDriverProfile,
    DriverProfile,
    LegacyDriverProfile,
    resolve_driver_profile,
)
from .fingerprint import CompilationSettings, hash_file, hash_settings
from .library_builder import BUILD_STRATEGY_VERSION, LibraryBuilder, LibraryBuildKey
from .linker import Linker
from .object_cache import CacheEntry, ObjectCache
from .orchestrator import BuildOrchestrator
from .toolchain_invoker import ToolchainInvoker, ToolchainOutput, ToolchainProcessError

__all__ = [
    "BuildOrchestrator",
    "CompilationResult",
    "StructuredDiagnostic",
    "parse_compiler_output",
    "CompilationSettings",
    "hash_file",
    "hash_settings",
    "CacheEntry",
    "ObjectCache",
    "DriverProfile",
    "LegacyDriverProfile",
    "BuiltinDriverProfile",
    "resolve_driver_profile",
    "LibraryBuilder",
    "LibraryBuildKey",
    "BUILD_STRATEGY_VERSION",
    "DependencyBuilder",
    "Linker",
    "ToolchainInvoker",
    "ToolchainOutput",
    "ToolchainProcessError",
]
