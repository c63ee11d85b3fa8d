"""Verified download and install pipeline.

Stages run strictly in order and each depends on the previous one
succeeding:

1. Skip check (skip-download only asserts an executable binary exists)
2. Platform detection, transport selection, version resolution
3. Checksum manifest download and expected digest lookup
4. Short-circuit when the installed binary already matches
5. Artifact download
6. Integrity verification against the expected digest
7. Archive expansion (archive packaging only)
8. Atomic placement into the install directory

Any failure raises an ``InstallError`` and leaves the installed binary
untouched. The temporary working directory is removed on every exit path.
"""

from __future__ import annotations

import tempfile
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from acornget.bootstrap.paths import Privilege
from acornget.bootstrap.platform import PlatformTarget, detect_platform
from acornget.bootstrap.transport import Transport, select_transport
from acornget.bootstrap.validation import is_installed, require_executable
from acornget.bootstrap.versions import resolve_version
from acornget.config.models import InstallConfig, PackagingKind
from acornget.core.errors import IntegrityError
from acornget.core.logging import get_logger
from acornget.install.archive import extract_binary
from acornget.install.checksum import file_sha256, read_expected_digest
from acornget.install.placement import place_binary
from acornget.install.sources import ArtifactSource, build_source
from acornget.install.symlinks import create_symlinks

LOGGER = get_logger(__name__)

TMP_DIR_PREFIX = "acorn-install."
MANIFEST_FILE_NAME = "acorn.hash"


class InstallOutcome(str, Enum):
    """How a successful run ended."""

    INSTALLED = "installed"
    UP_TO_DATE = "up_to_date"
    SKIPPED = "skipped"


class Installer:
    """Runs the install pipeline once for a resolved configuration."""

    def __init__(
        self,
        config: InstallConfig,
        privilege: Optional[Privilege] = None,
        transport_factory: Callable[[], Transport] = select_transport,
        platform_detector: Callable[[PackagingKind], PlatformTarget] = detect_platform,
        tmp_root: Optional[Path] = None,
    ) -> None:
        self.config = config
        self.privilege = privilege or Privilege(sudo=config.sudo)
        self._transport_factory = transport_factory
        self._platform_detector = platform_detector
        self._tmp_root = tmp_root

    def run(self) -> InstallOutcome:
        """Install or verify the binary.

        Returns:
            The outcome of a successful run.

        Raises:
            InstallError: On any fatal condition.
        """
        config = self.config

        if config.skip_download:
            LOGGER.info(f"Skipping {config.binary_name} download and verify")
            self.verify_executable()
            create_symlinks(config, self.privilege)
            return InstallOutcome.SKIPPED

        target = self._platform_detector(config.packaging)
        LOGGER.debug(f"Detected platform {target}")
        transport = self._transport_factory()

        with tempfile.TemporaryDirectory(prefix=TMP_DIR_PREFIX, dir=self._tmp_root) as tmp:
            tmp_dir = Path(tmp)
            version = resolve_version(config, transport)
            source = build_source(config, target, version)

            expected = self.download_hash(transport, source, tmp_dir)
            if self.installed_hash_matches(expected):
                LOGGER.info(
                    f"Skipping binary download, installed {config.binary_name} matches hash"
                )
                create_symlinks(config, self.privilege)
                return InstallOutcome.UP_TO_DATE

            artifact = self.download_artifact(transport, source, tmp_dir, target)
            self.verify_artifact(artifact, expected)
            binary = self.unpack(artifact, tmp_dir, target)
            place_binary(binary, config, self.privilege)

        create_symlinks(config, self.privilege)
        LOGGER.info(f"Installed {config.binary_name} {version}")
        return InstallOutcome.INSTALLED

    def verify_executable(self) -> None:
        """Require an executable binary at the install path."""
        require_executable(self.config.binary_path)

    def download_hash(
        self, transport: Transport, source: ArtifactSource, tmp_dir: Path
    ) -> str:
        """Fetch the checksum manifest and return the expected digest."""
        manifest_path = tmp_dir / MANIFEST_FILE_NAME
        LOGGER.info(f"Downloading hash {source.manifest_url}")
        transport.fetch(manifest_path, source.manifest_url)

        expected = read_expected_digest(manifest_path, source.artifact_name)
        if not expected:
            LOGGER.warning(f"No checksum for {source.artifact_name} in manifest")
        return expected

    def installed_hash_matches(self, expected: str) -> bool:
        binary_path = self.config.binary_path
        if not expected or not is_installed(binary_path):
            return False
        return file_sha256(binary_path) == expected

    def download_artifact(
        self,
        transport: Transport,
        source: ArtifactSource,
        tmp_dir: Path,
        target: PlatformTarget,
    ) -> Path:
        artifact_path = tmp_dir / f"{self.config.binary_name}{target.extension}"
        kind = "archive" if target.packaging.is_archive else "binary"
        LOGGER.info(f"Downloading {kind} {source.artifact_url}")
        transport.fetch(artifact_path, source.artifact_url)
        return artifact_path

    def verify_artifact(self, artifact: Path, expected: str) -> None:
        """Compare the downloaded artifact against the expected digest.

        Raises:
            IntegrityError: On mismatch. Nothing has been installed yet.
        """
        LOGGER.info("Verifying binary download")
        actual = file_sha256(artifact)
        if actual != expected:
            raise IntegrityError(
                f"Download sha256 does not match {expected}, got {actual}"
            )

    def unpack(self, artifact: Path, tmp_dir: Path, target: PlatformTarget) -> Path:
        """Return the path of the binary to install."""
        packaging = target.packaging
        if not packaging.is_archive or packaging.archive_format is None:
            return artifact
        extract_dir = tmp_dir / "expanded"
        extract_dir.mkdir()
        return extract_binary(
            artifact,
            packaging.archive_format,
            extract_dir,
            self.config.binary_name,
        )
