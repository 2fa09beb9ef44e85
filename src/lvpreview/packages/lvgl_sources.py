"""LVGL source management.

Downloads LVGL releases and the lv_drivers package from GitHub on demand,
caches the extracted trees, and enumerates the C sources to compile.
"""

import shutil
from pathlib import Path
from typing import List, Optional, Sequence

from .cache import Cache
from .downloader import PackageDownloader

LVGL_URL = "https://github.com/lvgl/lvgl/archive/refs/tags/v{version}.zip"
LV_DRIVERS_BRANCH = "master"
LV_DRIVERS_URL = "https://github.com/lvgl/lv_drivers/archive/refs/heads/{branch}.zip"


class LvglSourceManager:
    """Manages local copies of LVGL and lv_drivers sources."""

    def __init__(
        self,
        cache: Cache,
        downloader: Optional[PackageDownloader] = None,
        show_progress: bool = False,
    ):
        """Initialize the source manager.

        Args:
            cache: Cache providing the download locations
            downloader: Package downloader (created on first download if None)
            show_progress: Whether to show download progress
        """
        self.cache = cache
        self.downloader = downloader
        self.show_progress = show_progress

    def _get_downloader(self) -> PackageDownloader:
        if self.downloader is None:
            self.downloader = PackageDownloader()
        return self.downloader

    def get_version_path(self, version: str) -> Path:
        """Get the local directory for an LVGL version."""
        return self.cache.lvgl_dir / version

    def get_include_path(self, version: str) -> Path:
        """Get the include directory for an LVGL version."""
        return self.get_version_path(version)

    def get_drivers_path(self) -> Path:
        """Get the local directory for lv_drivers."""
        return self.cache.drivers_dir / LV_DRIVERS_BRANCH

    def ensure_version(self, version: str) -> Path:
        """Ensure an LVGL version is available locally.

        Args:
            version: LVGL version (e.g., "8.3.11")

        Returns:
            Path to the extracted version directory

        Raises:
            DownloadError: If the release cannot be downloaded
            ExtractionError: If the archive cannot be extracted
        """
        version_path = self.get_version_path(version)
        if version_path.exists():
            return version_path

        print(f"Downloading LVGL {version}...")
        self._fetch(
            LVGL_URL.format(version=version),
            f"lvgl-{version}",
            version_path,
        )
        print(f"LVGL {version} downloaded successfully")
        return version_path

    def ensure_drivers(self) -> Path:
        """Ensure the lv_drivers package is available locally.

        Returns:
            Path to the extracted lv_drivers directory
        """
        drivers_path = self.get_drivers_path()
        if drivers_path.exists():
            return drivers_path

        print("Downloading lv_drivers...")
        self._fetch(
            LV_DRIVERS_URL.format(branch=LV_DRIVERS_BRANCH),
            f"lv_drivers-{LV_DRIVERS_BRANCH}",
            drivers_path,
        )
        return drivers_path

    def _fetch(self, url: str, extracted_name: str, dest: Path) -> None:
        """Download an archive and move its top-level folder to dest.

        Extraction happens in a staging directory so that dest only
        appears once it is complete.
        """
        downloader = self._get_downloader()
        archive_path = self.cache.downloads_dir / f"{extracted_name}.zip"
        staging_dir = dest.parent / f".{dest.name}.staging"

        if staging_dir.exists():
            shutil.rmtree(staging_dir)

        try:
            downloader.download(url, archive_path, show_progress=self.show_progress)
            downloader.extract_archive(archive_path, staging_dir, show_progress=self.show_progress)

            extracted = staging_dir / extracted_name
            if not extracted.is_dir():
                # Archive without the expected top-level folder
                extracted = staging_dir

            dest.parent.mkdir(parents=True, exist_ok=True)
            extracted.replace(dest)
        finally:
            if staging_dir.exists():
                shutil.rmtree(staging_dir, ignore_errors=True)
            if archive_path.exists():
                archive_path.unlink()

    def get_source_files(self, version: str, exclude: Sequence[Path] = ()) -> List[Path]:
        """Get all C sources of an LVGL version.

        Args:
            version: LVGL version
            exclude: Directories whose sources are skipped

        Returns:
            Sorted list of .c files under the version's src directory
        """
        src_path = self.get_version_path(version) / "src"
        if not src_path.exists():
            return []

        excluded = [Path(path).resolve() for path in exclude]
        sources = []
        for source in src_path.rglob("*.c"):
            if not source.is_file():
                continue
            resolved = source.resolve()
            if any(resolved.is_relative_to(directory) for directory in excluded):
                continue
            sources.append(source)

        return sorted(sources)
