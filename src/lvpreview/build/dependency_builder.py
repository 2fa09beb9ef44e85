"""Incremental compilation of project dependency sources."""

import logging
from pathlib import Path
from typing import List, Optional, Sequence

from .object_cache import ObjectCache
from .toolchain_invoker import ToolchainInvoker, object_path_for


class DependencyBuilder:
    """Compiles dependency sources, reusing valid cached objects.

    Objects are written into the object cache's directory, which the cache
    owns and clears as a whole.
    """

    def __init__(
        self,
        object_cache: ObjectCache,
        invoker: ToolchainInvoker,
        batch_size: Optional[int] = None,
        verbose: bool = False,
    ):
        self.object_cache = object_cache
        self.invoker = invoker
        self.batch_size = batch_size
        self.verbose = verbose

    def compile(
        self,
        files: Sequence[Path],
        include_paths: Sequence[Path],
        optimization: str,
        defines: Sequence[str] = (),
    ) -> List[Path]:
        """Compile dependency sources incrementally.

        Cache hits are reused. All misses are compiled in one batched
        invocation and recorded in the cache when their object exists.
        Sources that fail to compile are dropped from the result.

        Args:
            files: Dependency source files
            include_paths: Include directories
            optimization: Optimization flag
            defines: Preprocessor defines

        Returns:
            Object files; order does not follow the input order
        """
        files = [Path(f) for f in files]
        if not files:
            return []

        cached = self.object_cache.get_valid_entries(files)
        to_compile = [f for f in files if f not in cached]

        objects: List[Path] = []
        for source, object_path in cached.items():
            if self.verbose:
                print(f"      {source.name} (cached)")
            objects.append(object_path)

        if cached:
            logging.info(f"Reusing {len(cached)} cached dependency objects")

        if not to_compile:
            return objects

        logging.info(f"Compiling {len(to_compile)} dependency files...")
        compiled = self.invoker.compile_to_objects(
            to_compile,
            self.object_cache.cache_dir,
            include_paths,
            optimization=optimization,
            defines=defines,
            batch_size=self.batch_size,
        )
        produced = {path.resolve() for path in compiled}

        for source in to_compile:
            object_path = object_path_for(source, self.object_cache.cache_dir)
            if object_path.resolve() not in produced or not object_path.exists():
                logging.warning(f"No object produced for {source.name}, skipping")
                continue
            if self.verbose:
                print(f"      {source.name}")
            self.object_cache.record_build(source, object_path)
            objects.append(object_path)

        return objects
