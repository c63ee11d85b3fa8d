"""Download URL templating.

Release builds come from the release-hosting endpoint, keyed by version tag:
    {release_url}/download/{tag}/checksums.txt
    {release_url}/download/{tag}/acorn-{tag}{suffix}{ext}

Developer builds come from commit-scoped storage, keyed by commit:
    {storage_url}/acorn{suffix}-{commit}.sha256sum
    {storage_url}/acorn{suffix}-{commit}{ext}
"""

from __future__ import annotations

from dataclasses import dataclass

from acornget.bootstrap.platform import PlatformTarget
from acornget.bootstrap.versions import ResolvedVersion
from acornget.config.models import InstallConfig

RELEASE_MANIFEST_NAME = "checksums.txt"
COMMIT_MANIFEST_EXTENSION = ".sha256sum"


@dataclass(frozen=True)
class ArtifactSource:
    """Where to fetch the manifest and artifact for one run."""

    manifest_url: str
    artifact_url: str
    artifact_name: str


def build_source(
    config: InstallConfig,
    target: PlatformTarget,
    version: ResolvedVersion,
) -> ArtifactSource:
    """Build the manifest and artifact URLs for a resolved version."""
    name = config.binary_name

    if version.is_commit:
        stem = f"{name}{target.suffix}-{version.commit}"
        artifact_name = f"{stem}{target.extension}"
        return ArtifactSource(
            manifest_url=f"{config.storage_url}/{stem}{COMMIT_MANIFEST_EXTENSION}",
            artifact_url=f"{config.storage_url}/{artifact_name}",
            artifact_name=artifact_name,
        )

    base = f"{config.release_url}/download/{version.tag}"
    artifact_name = f"{name}-{version.tag}{target.suffix}{target.extension}"
    return ArtifactSource(
        manifest_url=f"{base}/{RELEASE_MANIFEST_NAME}",
        artifact_url=f"{base}/{artifact_name}",
        artifact_name=artifact_name,
    )
