"""SHA-256 digests and checksum manifests."""

from __future__ import annotations

import hashlib
from pathlib import Path, PurePosixPath

_CHUNK_SIZE = 1024 * 1024


def file_sha256(path: Path) -> str:
    """Return the hex SHA-256 digest of a file."""
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def expected_digest(manifest: str, artifact_name: str) -> str:
    """Find the digest recorded for ``artifact_name`` in a manifest.

    Manifests use the ``sha256sum`` layout: ``<digest>  <filename>``, with an
    optional ``*`` before binary-mode file names. Directory prefixes on the
    file name are ignored.

    Returns:
        The lowercase hex digest, or an empty string when no line matches.
    """
    for line in manifest.splitlines():
        fields = line.split()
        if len(fields) < 2:
            continue
        if PurePosixPath(fields[-1].lstrip("*")).name == artifact_name:
            return fields[0].lower()
    return ""


def read_expected_digest(manifest_path: Path, artifact_name: str) -> str:
    return expected_digest(
        manifest_path.read_text(encoding="utf-8", errors="replace"),
        artifact_name,
    )
