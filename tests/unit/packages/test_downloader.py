"""Unit tests for the package downloader."""

import hashlib
import zipfile
from unittest.mock import MagicMock, patch

import pytest
import requests

from lvpreview.packages.downloader import (
    ChecksumError,
    DownloadError,
    ExtractionError,
    PackageDownloader,
)

PAYLOAD = b"lvgl archive bytes"


def fake_response(chunks, content_length=None):
    response = MagicMock()
    response.headers = {"content-length": str(content_length)} if content_length else {}
    response.iter_content.return_value = iter(chunks)
    return response


class TestDownload:
    """Test cases for PackageDownloader.download."""

    def test_download(self, tmp_path):
        """Test a download is written to the destination."""
        dest = tmp_path / "downloads" / "lvgl.zip"
        with patch("lvpreview.packages.downloader.requests.get") as get:
            get.return_value = fake_response([PAYLOAD[:5], PAYLOAD[5:]])
            result = PackageDownloader().download("https://example.com/lvgl.zip", dest, show_progress=False)

        assert result == dest
        assert dest.read_bytes() == PAYLOAD
        assert not dest.with_suffix(".zip.tmp").exists()
        get.assert_called_once_with("https://example.com/lvgl.zip", stream=True, timeout=30)

    def test_checksum_match(self, tmp_path):
        dest = tmp_path / "lvgl.zip"
        checksum = hashlib.sha256(PAYLOAD).hexdigest().upper()
        with patch("lvpreview.packages.downloader.requests.get") as get:
            get.return_value = fake_response([PAYLOAD])
            PackageDownloader().download("https://example.com/lvgl.zip", dest, checksum=checksum, show_progress=False)

        assert dest.exists()

    def test_checksum_mismatch(self, tmp_path):
        """Test a checksum mismatch leaves no file behind."""
        dest = tmp_path / "lvgl.zip"
        with patch("lvpreview.packages.downloader.requests.get") as get:
            get.return_value = fake_response([PAYLOAD])
            with pytest.raises(ChecksumError, match="Checksum mismatch"):
                PackageDownloader().download("https://example.com/lvgl.zip", dest, checksum="0" * 64, show_progress=False)

        assert not dest.exists()
        assert not dest.with_suffix(".zip.tmp").exists()

    def test_request_error(self, tmp_path):
        """Test network errors are wrapped in DownloadError."""
        dest = tmp_path / "lvgl.zip"
        with patch("lvpreview.packages.downloader.requests.get") as get:
            get.side_effect = requests.ConnectionError("offline")
            with pytest.raises(DownloadError, match="Failed to download"):
                PackageDownloader().download("https://example.com/lvgl.zip", dest, show_progress=False)

        assert not dest.exists()

    def test_http_error(self, tmp_path):
        dest = tmp_path / "lvgl.zip"
        with patch("lvpreview.packages.downloader.requests.get") as get:
            response = fake_response([])
            response.raise_for_status.side_effect = requests.HTTPError("404 Not Found")
            get.return_value = response
            with pytest.raises(DownloadError, match="404"):
                PackageDownloader().download("https://example.com/v0.zip", dest, show_progress=False)

    def test_progress_bar(self, tmp_path):
        """Test progress is reported when the size is known."""
        dest = tmp_path / "lvgl.zip"
        with patch("lvpreview.packages.downloader.requests.get") as get, patch(
            "lvpreview.packages.downloader.tqdm"
        ) as bar:
            get.return_value = fake_response([PAYLOAD], content_length=len(PAYLOAD))
            PackageDownloader().download("https://example.com/lvgl.zip", dest)

        bar.assert_called_once()
        bar.return_value.update.assert_called_once_with(len(PAYLOAD))
        bar.return_value.close.assert_called_once()


class TestExtractArchive:
    """Test cases for PackageDownloader.extract_archive."""

    def test_zip(self, tmp_path):
        archive = tmp_path / "lvgl.zip"
        with zipfile.ZipFile(archive, "w") as zf:
            zf.writestr("lvgl-9.2.0/lvgl.h", "#pragma once\n")

        dest = PackageDownloader().extract_archive(archive, tmp_path / "out", show_progress=False)

        assert (dest / "lvgl-9.2.0" / "lvgl.h").read_text() == "#pragma once\n"

    def test_missing_archive(self, tmp_path):
        with pytest.raises(ExtractionError, match="Archive not found"):
            PackageDownloader().extract_archive(tmp_path / "none.zip", tmp_path / "out")

    def test_unsupported_format(self, tmp_path):
        archive = tmp_path / "lvgl.rar"
        archive.write_bytes(b"rar")
        with pytest.raises(ExtractionError, match="Unsupported archive format"):
            PackageDownloader().extract_archive(archive, tmp_path / "out", show_progress=False)

    def test_corrupt_zip(self, tmp_path):
        archive = tmp_path / "lvgl.zip"
        archive.write_bytes(b"not a zip")
        with pytest.raises(ExtractionError, match="Failed to extract"):
            PackageDownloader().extract_archive(archive, tmp_path / "out", show_progress=False)
