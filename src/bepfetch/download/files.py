"""
File Operations for the bepfetch Download Subsystem

This module implements the download-and-extract boundary: fetching a resolved
asset to disk and unpacking its ZIP archive into a game directory.
"""

import os
import shutil
import zipfile
from pathlib import Path
from typing import List

from bepfetch.exceptions import DownloadError, ExtractionError
from bepfetch.log_utils import logger
from bepfetch.utils import download_file_with_retry

from .interfaces import Asset


def _is_within_base(real_base_dir: str, candidate: str) -> bool:
    """
    Determine whether the candidate path resides within the given base directory.

    Returns:
        True if the candidate path is inside `real_base_dir`, False otherwise.
    """
    try:
        return os.path.commonpath([real_base_dir, candidate]) == real_base_dir
    except ValueError:
        return False


def safe_extract_path(extract_dir: str, file_path: str) -> str:
    """
    Resolve a safe absolute extraction path and prevent directory traversal.

    Parameters:
        extract_dir (str): Base directory intended for extraction.
        file_path (str): Member path from the archive to be extracted.

    Returns:
        str: Absolute, normalized path inside extract_dir suitable for extraction.

    Raises:
        ValueError: If the resolved path is outside extract_dir.
    """
    real_extract_dir = os.path.realpath(extract_dir)
    prospective_path = os.path.join(real_extract_dir, file_path)
    normalized_path = os.path.realpath(prospective_path)

    if not _is_within_base(real_extract_dir, normalized_path):
        raise ValueError(
            f"Unsafe extraction path '{file_path}' is outside base '{extract_dir}'"
        )

    return normalized_path


class FileOperations:
    """
    Download and extraction helpers used by the install command.

    The release core stops at producing an Asset; this class turns that Asset
    into files inside a target directory.
    """

    def _is_safe_archive_member(self, member_name: str) -> bool:
        """
        Determine whether an archive member name is safe to extract.

        Returns:
            `True` if the member name contains no absolute paths, parent-directory references, or null bytes, `False` otherwise.
        """
        if (
            not member_name
            or member_name.startswith("/")
            or member_name.startswith("\\")
        ):
            return False
        normalized = os.path.normpath(member_name)
        if os.path.isabs(normalized):
            return False
        if normalized == "..":
            return False
        if normalized.startswith(f"..{os.sep}"):
            return False
        if os.altsep and normalized.startswith(f"..{os.altsep}"):
            return False
        if "\x00" in normalized:
            return False
        return True

    def extract_archive(self, zip_path: str, extract_dir: str) -> List[Path]:
        """
        Extract every file of a ZIP archive into the target directory.

        Unsafe members (absolute or traversing paths) are skipped with a warning.

        Returns:
            List[Path]: Paths of the extracted files.

        Raises:
            ExtractionError: If the archive is unreadable or a file cannot be written.
        """
        extracted_files: List[Path] = []
        try:
            with zipfile.ZipFile(zip_path, "r") as zip_ref:
                for file_info in zip_ref.infolist():
                    if file_info.is_dir():
                        continue

                    file_name = file_info.filename
                    if not self._is_safe_archive_member(file_name):
                        logger.warning(
                            "Skipping unsafe archive member %s (possible traversal)",
                            file_name,
                        )
                        continue

                    try:
                        extract_path = safe_extract_path(extract_dir, file_name)
                    except ValueError as e:
                        logger.warning(f"Skipping unsafe extraction path: {e}")
                        continue

                    os.makedirs(os.path.dirname(extract_path), exist_ok=True)
                    with (
                        zip_ref.open(file_info) as source,
                        open(extract_path, "wb") as target,
                    ):
                        shutil.copyfileobj(source, target)

                    extracted_files.append(Path(extract_path))
                    logger.debug(f"Extracted {file_name} to {extract_path}")
        except (zipfile.BadZipFile, OSError) as e:
            raise ExtractionError(
                "Error extracting archive", archive_path=zip_path, details=str(e)
            ) from e

        logger.info(f"Extracted {len(extracted_files)} files into {extract_dir}")
        return extracted_files

    def install_asset(
        self, asset: Asset, extract_dir: str, download_dir: str
    ) -> List[Path]:
        """
        Download `asset` into `download_dir`, then extract it into `extract_dir`.

        Raises:
            DownloadError: If the download fails.
            ExtractionError: If the archive cannot be extracted.
        """
        archive_path = os.path.join(download_dir, os.path.basename(asset.name))
        if not download_file_with_retry(asset.download_url, archive_path):
            raise DownloadError(
                f"Failed to download {asset.name}", url=asset.download_url
            )
        return self.extract_archive(archive_path, extract_dir)
