"""Configuration data models for acornget.

``InstallConfig`` is built once at startup by the loader and passed by
reference through the pipeline. It is frozen so no stage can mutate it.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple

BINARY_NAME = "acorn"

DEFAULT_CHANNEL = "latest"
DEFAULT_CHANNEL_URL = "https://update.acrn.io/v1-release/channels"
DEFAULT_RELEASE_URL = "https://github.com/acorn-io/acorn/releases"
DEFAULT_STORAGE_URL = "https://cdn.acrn.io/cli"

DEFAULT_BINARY_OWNER = "root"


class SymlinkPolicy(str, Enum):
    """How secondary links to the binary are created."""

    MISSING = "missing"  # link only when the command is not already present
    SKIP = "skip"
    FORCE = "force"


class PackagingKind(str, Enum):
    """How release artifacts are published."""

    ARCHIVE = "archive"
    RAW_BINARY = "raw"


@dataclass(frozen=True)
class InstallConfig:
    """Fully resolved installer configuration.

    Precedence for the release to install: ``commit`` over ``version`` over a
    channel lookup. ``bin_dir_read_only`` always implies ``skip_download``.
    """

    bin_dir: Path
    channel: str = DEFAULT_CHANNEL
    channel_url: str = DEFAULT_CHANNEL_URL
    version: Optional[str] = None
    commit: Optional[str] = None
    bin_dir_read_only: bool = False
    skip_download: bool = False
    symlink: SymlinkPolicy = SymlinkPolicy.MISSING
    symlinks: Tuple[str, ...] = ()
    packaging: PackagingKind = PackagingKind.ARCHIVE
    release_url: str = DEFAULT_RELEASE_URL
    storage_url: str = DEFAULT_STORAGE_URL
    binary_name: str = BINARY_NAME
    sudo: bool = False
    binary_owner: Optional[str] = DEFAULT_BINARY_OWNER

    def __post_init__(self) -> None:
        if self.bin_dir_read_only and not self.skip_download:
            object.__setattr__(self, "skip_download", True)

    @property
    def binary_path(self) -> Path:
        """Path of the installed binary."""
        return self.bin_dir / self.binary_name
