"""Unit tests for DependencyBuilder."""

from pathlib import Path
from unittest.mock import Mock

import pytest

from lvpreview.build.dependency_builder import DependencyBuilder
from lvpreview.build.object_cache import ObjectCache
from lvpreview.build.toolchain_invoker import ToolchainInvoker, object_path_for

SETTINGS = "0123456789abcdef"


def fake_compile(sources, output_dir, include_paths, optimization="-O2", defines=(), batch_size=None):
    objects = []
    for source in sources:
        obj = object_path_for(source, output_dir)
        obj.write_bytes(b"obj")
        objects.append(obj)
    return objects


@pytest.fixture
def sources(tmp_path):
    """Three dependency sources."""
    paths = []
    for name in ("a", "b", "c"):
        path = tmp_path / "src" / f"{name}.c"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(f"int {name}(void) {{ return 0; }}\n")
        paths.append(path)
    return paths


@pytest.fixture
def object_cache(tmp_path):
    """Empty object cache."""
    return ObjectCache(tmp_path / "dependency-cache", SETTINGS)


@pytest.fixture
def invoker():
    """Mock invoker that writes object files."""
    mock = Mock(spec=ToolchainInvoker)
    mock.compile_to_objects.side_effect = fake_compile
    return mock


def precompile(object_cache: ObjectCache, source: Path) -> Path:
    obj = object_path_for(source, object_cache.cache_dir)
    obj.write_bytes(b"obj")
    object_cache.record_build(source, obj)
    return obj


class TestDependencyBuilder:
    """Test cases for DependencyBuilder.compile."""

    def test_cold_cache(self, object_cache, invoker, sources, tmp_path):
        """Test a cold cache compiles once and records the result."""
        a = sources[0]
        builder = DependencyBuilder(object_cache, invoker)

        objects = builder.compile([a], [tmp_path / "include"], "-O2", ["FOO"])

        invoker.compile_to_objects.assert_called_once()
        args, kwargs = invoker.compile_to_objects.call_args
        assert args[0] == [a]
        assert args[1] == object_cache.cache_dir
        assert args[2] == [tmp_path / "include"]
        assert kwargs["optimization"] == "-O2"
        assert kwargs["defines"] == ["FOO"]
        assert objects == [object_path_for(a, object_cache.cache_dir)]
        assert object_cache.is_valid(a)

    def test_partial_reuse(self, object_cache, invoker, sources):
        """Test only the invalid file is compiled when two are cached."""
        a, b, c = sources
        obj_a = precompile(object_cache, a)
        obj_b = precompile(object_cache, b)

        objects = DependencyBuilder(object_cache, invoker).compile(sources, [], "-O2")

        invoker.compile_to_objects.assert_called_once()
        assert invoker.compile_to_objects.call_args[0][0] == [c]
        assert len(objects) == 3
        assert set(objects) == {
            obj_a.resolve(),
            obj_b.resolve(),
            object_path_for(c, object_cache.cache_dir),
        }
        assert object_cache.is_valid(c)

    def test_all_cached_skips_toolchain(self, object_cache, invoker, sources):
        """Test the toolchain is not invoked when everything is valid."""
        for source in sources:
            precompile(object_cache, source)

        objects = DependencyBuilder(object_cache, invoker).compile(sources, [], "-O2")

        invoker.compile_to_objects.assert_not_called()
        assert len(objects) == 3

    def test_modified_file_recompiled(self, object_cache, invoker, sources):
        """Test an edited source is compiled again."""
        a = sources[0]
        precompile(object_cache, a)
        a.write_text("int a(void) { return 42; }\n")

        DependencyBuilder(object_cache, invoker).compile([a], [], "-O2")

        assert invoker.compile_to_objects.call_args[0][0] == [a]
        assert object_cache.is_valid(a)

    def test_failed_file_dropped(self, object_cache, invoker, sources):
        """Test files without an object are left out and not recorded."""
        a, b, _ = sources

        def compile_only_a(srcs, output_dir, *args, **kwargs):
            return fake_compile([s for s in srcs if s == a], output_dir, [])

        invoker.compile_to_objects.side_effect = compile_only_a

        objects = DependencyBuilder(object_cache, invoker).compile([a, b], [], "-O2")

        assert objects == [object_path_for(a, object_cache.cache_dir)]
        assert object_cache.is_valid(a)
        assert not object_cache.is_valid(b)
        assert object_cache.get_entry(b) is None

    def test_stale_object_not_recorded(self, object_cache, invoker, sources):
        """Test an old object file is not trusted after a failed compile."""
        a = sources[0]
        object_path_for(a, object_cache.cache_dir).write_bytes(b"old")
        invoker.compile_to_objects.side_effect = None
        invoker.compile_to_objects.return_value = []

        objects = DependencyBuilder(object_cache, invoker).compile([a], [], "-O2")

        assert objects == []
        assert object_cache.get_entry(a) is None

    def test_empty_input(self, object_cache, invoker):
        """Test no files means no work."""
        assert DependencyBuilder(object_cache, invoker).compile([], [], "-O2") == []
        invoker.compile_to_objects.assert_not_called()
