"""Archive expansion for release artifacts."""

from __future__ import annotations

import shutil
import tarfile
import zipfile
from pathlib import Path, PurePosixPath
from typing import Tuple

from acornget.bootstrap.platform import ArchiveFormat
from acornget.core.errors import ArchiveError
from acornget.core.logging import get_logger

LOGGER = get_logger(__name__)


def binary_names(binary_name: str) -> Tuple[str, ...]:
    """File names the binary may have inside an archive."""
    return (binary_name, f"{binary_name}.exe")


def extract_binary(
    archive_path: Path,
    archive_format: ArchiveFormat,
    dest_dir: Path,
    binary_name: str,
) -> Path:
    """Extract the binary from an archive into ``dest_dir``.

    Only the binary member is extracted. Members whose paths would escape
    ``dest_dir`` are rejected.

    Returns:
        Path to the extracted binary.

    Raises:
        ArchiveError: If the archive is unreadable, unsafe, or does not
            contain the binary.
    """
    names = binary_names(binary_name)
    try:
        if archive_format == ArchiveFormat.ZIP:
            extracted = _extract_zip(archive_path, dest_dir, names)
        else:
            extracted = _extract_tar(archive_path, dest_dir, names)
    except (tarfile.TarError, zipfile.BadZipFile, OSError) as e:
        raise ArchiveError(f"Failed to expand {archive_path.name}: {e}") from e

    if extracted is None:
        raise ArchiveError(f"{binary_name} binary not found in {archive_path.name}")

    LOGGER.debug(f"Extracted {extracted}")
    return extracted


def _check_member(dest_dir: Path, member_name: str) -> None:
    member_path = (dest_dir / member_name).resolve()
    if not member_path.is_relative_to(dest_dir.resolve()):
        raise ArchiveError(f"Path traversal detected: {member_name}")


def _extract_tar(archive_path: Path, dest_dir: Path, names: Tuple[str, ...]):
    with tarfile.open(archive_path, "r:gz") as tar:
        for member in tar.getmembers():
            _check_member(dest_dir, member.name)
            member_name = PurePosixPath(member.name).name
            if member.isfile() and member_name in names:
                source = tar.extractfile(member)
                if source is None:
                    continue
                target = dest_dir / member_name
                with source, open(target, "wb") as out:
                    shutil.copyfileobj(source, out)
                return target
    return None


def _extract_zip(archive_path: Path, dest_dir: Path, names: Tuple[str, ...]):
    with zipfile.ZipFile(archive_path, "r") as zf:
        for info in zf.infolist():
            _check_member(dest_dir, info.filename)
            member_name = PurePosixPath(info.filename).name
            if not info.is_dir() and member_name in names:
                target = dest_dir / member_name
                with zf.open(info) as source, open(target, "wb") as out:
                    shutil.copyfileobj(source, out)
                return target
    return None
