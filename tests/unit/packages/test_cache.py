"""Unit tests for cache management."""

import os
from pathlib import Path
from unittest.mock import patch

from lvpreview.packages.cache import CACHE_ENV_VAR, Cache


class TestCache:
    """Test cases for Cache class."""

    def test_init_default_directory(self):
        """Test initialization with default directory."""
        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop(CACHE_ENV_VAR, None)
            cache = Cache()
        assert cache.cache_root == (Path.home() / ".lvpreview").resolve()

    def test_init_custom_directory(self, tmp_path):
        """Test initialization with custom root."""
        cache = Cache(tmp_path / "root")
        assert cache.cache_root == (tmp_path / "root").resolve()
        assert cache.lvgl_dir == cache.cache_root / "lvgl"
        assert cache.drivers_dir == cache.cache_root / "lv_drivers"
        assert cache.objects_dir == cache.cache_root / "cache"
        assert cache.build_root == cache.cache_root / "build"

    def test_init_with_env_override(self, tmp_path):
        """Test cache directory override via environment variable."""
        cache_dir = tmp_path / "custom_cache"
        with patch.dict(os.environ, {CACHE_ENV_VAR: str(cache_dir)}):
            cache = Cache()
        assert cache.cache_root == cache_dir.resolve()

    def test_hash_key(self):
        """Test key hashing function."""
        hash1 = Cache.hash_key("/projects/a/.lvgl-live-preview.json")
        hash2 = Cache.hash_key("/projects/b/.lvgl-live-preview.json")

        # Hashes should be deterministic
        assert Cache.hash_key("/projects/a/.lvgl-live-preview.json") == hash1
        assert hash1 != hash2
        assert len(hash1) == 16

    def test_project_directories(self, tmp_path):
        """Test per-project and per-build directories."""
        cache = Cache(tmp_path)
        assert cache.get_dependency_cache_dir("abc") == cache.dependency_cache_root / "abc"
        assert cache.get_build_dir("ui") == cache.build_root / "ui"

    def test_ensure_directories(self, tmp_path):
        """Test that all directories are created."""
        cache = Cache(tmp_path)
        cache.ensure_directories()

        assert cache.lvgl_dir.is_dir()
        assert cache.drivers_dir.is_dir()
        assert cache.downloads_dir.is_dir()
        assert cache.objects_dir.is_dir()
        assert cache.dependency_cache_root.is_dir()
        assert cache.build_root.is_dir()

    def test_clean_build(self, tmp_path):
        """Test that only link outputs are removed."""
        cache = Cache(tmp_path)
        cache.ensure_directories()
        (cache.get_build_dir("ui")).mkdir()
        (cache.get_build_dir("ui") / "output.wasm").write_bytes(b"\0asm")

        cache.clean_build()
        cache.clean_build()

        assert not cache.build_root.exists()
        assert cache.objects_dir.exists()
