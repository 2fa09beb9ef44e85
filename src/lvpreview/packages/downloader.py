"""Package downloader with progress tracking and checksum verification.

This module handles downloading library archives from URLs, extracting them,
and verifying integrity with checksums.
"""

import hashlib
import tarfile
import zipfile
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

import requests
from tqdm import tqdm


class DownloadError(Exception):
    """Raised when download fails."""

    pass


class ChecksumError(Exception):
    """Raised when checksum verification fails."""

    pass


class ExtractionError(Exception):
    """Raised when archive extraction fails."""

    pass


class PackageDownloader:
    """Downloads and extracts packages with progress tracking."""

    def __init__(self, chunk_size: int = 8192, timeout: int = 30):
        """Initialize downloader.

        Args:
            chunk_size: Size of chunks for downloading and hashing
            timeout: Connection timeout in seconds
        """
        self.chunk_size = chunk_size
        self.timeout = timeout

    def download(
        self,
        url: str,
        dest_path: Path,
        checksum: Optional[str] = None,
        show_progress: bool = True,
    ) -> Path:
        """Download a file from a URL.

        Args:
            url: URL to download from
            dest_path: Destination file path
            checksum: Optional SHA256 checksum for verification
            show_progress: Whether to show progress bar

        Returns:
            Path to the downloaded file

        Raises:
            DownloadError: If download fails
            ChecksumError: If checksum verification fails
        """
        dest_path = Path(dest_path)
        dest_path.parent.mkdir(parents=True, exist_ok=True)

        # Use temporary file during download
        temp_file = dest_path.with_suffix(dest_path.suffix + ".tmp")

        try:
            response = requests.get(url, stream=True, timeout=self.timeout)
            response.raise_for_status()

            total_size = int(response.headers.get("content-length", 0))

            progress_bar = None
            if show_progress and total_size > 0:
                filename = Path(urlparse(url).path).name
                progress_bar = tqdm(
                    total=total_size,
                    unit="B",
                    unit_scale=True,
                    unit_divisor=1024,
                    desc=f"Downloading {filename}",
                )

            sha256 = hashlib.sha256() if checksum else None

            with open(temp_file, "wb") as f:
                for chunk in response.iter_content(chunk_size=self.chunk_size):
                    if chunk:
                        f.write(chunk)
                        if progress_bar:
                            progress_bar.update(len(chunk))
                        if sha256:
                            sha256.update(chunk)

            if progress_bar:
                progress_bar.close()

            if checksum and sha256:
                actual_checksum = sha256.hexdigest()
                if actual_checksum.lower() != checksum.lower():
                    temp_file.unlink()
                    raise ChecksumError(
                        f"Checksum mismatch for {url}\n"
                        + f"Expected: {checksum}\n"
                        + f"Got: {actual_checksum}"
                    )

            temp_file.replace(dest_path)
            return dest_path

        except requests.RequestException as e:
            if temp_file.exists():
                temp_file.unlink()
            raise DownloadError(f"Failed to download {url}: {e}") from e

        except Exception:
            if temp_file.exists():
                temp_file.unlink()
            raise

    def extract_archive(
        self, archive_path: Path, dest_dir: Path, show_progress: bool = True
    ) -> Path:
        """Extract an archive file.

        Supports .tar.gz, .tar.bz2, .tar.xz, and .zip formats.

        Args:
            archive_path: Path to the archive file
            dest_dir: Destination directory for extraction
            show_progress: Whether to show progress information

        Returns:
            Path to the extracted directory

        Raises:
            ExtractionError: If extraction fails
        """
        archive_path = Path(archive_path)
        dest_dir = Path(dest_dir)

        if not archive_path.exists():
            raise ExtractionError(f"Archive not found: {archive_path}")

        dest_dir.mkdir(parents=True, exist_ok=True)

        if show_progress:
            print(f"Extracting {archive_path.name}...")

        try:
            if archive_path.suffix == ".zip":
                with zipfile.ZipFile(archive_path, "r") as zip_file:
                    zip_file.extractall(dest_dir)
            elif archive_path.name.endswith((".tar.gz", ".tar.bz2", ".tar.xz")):
                with tarfile.open(archive_path, "r:*") as tar:
                    tar.extractall(dest_dir, filter="data")
            else:
                raise ExtractionError(
                    f"Unsupported archive format: {archive_path.suffix}"
                )
        except ExtractionError:
            raise
        except (OSError, zipfile.BadZipFile, tarfile.TarError) as e:
            raise ExtractionError(f"Failed to extract {archive_path}: {e}") from e

        return dest_dir
