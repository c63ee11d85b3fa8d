"""Platform detection for release artifact naming.

Maps the host kernel name and machine architecture to the OS/arch naming
used by published acorn artifacts, and applies the packaging convention
(archive per platform, or raw binary) to derive the artifact suffix and
extension.
"""

from __future__ import annotations

import platform as _platform
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from acornget.config.models import PackagingKind
from acornget.core.errors import UnsupportedPlatformError

OS_LINUX = "linux"
OS_MACOS = "macOS"
OS_WINDOWS = "windows"

ARCH_AMD64 = "amd64"
ARCH_ARM64 = "arm64"
ARCH_UNIVERSAL = "universal"

_OS_NAMES = {
    "linux": OS_LINUX,
    "darwin": OS_MACOS,
    "windows": OS_WINDOWS,
}

# Shells on Windows report their own kernel names
_WINDOWS_PREFIXES = ("mingw", "msys", "cygwin")

_ARCH_NAMES = {
    "amd64": ARCH_AMD64,
    "x86_64": ARCH_AMD64,
    "arm64": ARCH_ARM64,
    "aarch64": ARCH_ARM64,
}


class ArchiveFormat(str, Enum):
    TAR_GZ = ".tar.gz"
    ZIP = ".zip"


@dataclass(frozen=True)
class ArtifactPackaging:
    """How the artifact for one platform is packaged."""

    kind: PackagingKind
    archive_format: Optional[ArchiveFormat] = None

    @property
    def is_archive(self) -> bool:
        return self.kind == PackagingKind.ARCHIVE

    @property
    def extension(self) -> str:
        return self.archive_format.value if self.archive_format else ""


@dataclass(frozen=True)
class PlatformTarget:
    """Canonical platform and artifact naming for this run."""

    os: str
    arch: str
    packaging: ArtifactPackaging

    @property
    def suffix(self) -> str:
        """Suffix inserted into artifact file names, e.g. ``-linux-amd64``."""
        if self.packaging.is_archive:
            return f"-{self.os}-{self.arch}"
        # Raw binaries: the default amd64 build carries no suffix.
        if self.arch == ARCH_AMD64:
            return ""
        return f"-{self.os}-{self.arch}"

    @property
    def extension(self) -> str:
        return self.packaging.extension

    def __str__(self) -> str:
        return f"{self.os}-{self.arch}"


def detect_platform(
    packaging: PackagingKind = PackagingKind.ARCHIVE,
    system: Callable[[], str] = _platform.system,
    machine: Callable[[], str] = _platform.machine,
) -> PlatformTarget:
    """Detect the host platform.

    Args:
        packaging: Packaging convention of the published artifacts.
        system: Returns the kernel name (like ``uname``).
        machine: Returns the machine architecture (like ``uname -m``).

    Returns:
        PlatformTarget for the host.

    Raises:
        UnsupportedPlatformError: If the OS or architecture is not published.
    """
    raw_os = system()
    os_name = normalize_os(raw_os)
    if os_name is None:
        raise UnsupportedPlatformError(f"Unsupported platform {raw_os}")

    if os_name == OS_MACOS:
        # macOS builds are universal binaries
        arch = ARCH_UNIVERSAL
    else:
        raw_arch = machine()
        arch = _ARCH_NAMES.get(raw_arch.lower())
        if arch is None:
            raise UnsupportedPlatformError(f"Unsupported architecture {raw_arch}")

    return PlatformTarget(
        os=os_name,
        arch=arch,
        packaging=select_packaging(packaging, os_name),
    )


def normalize_os(raw_os: str) -> Optional[str]:
    """Map a kernel name to artifact OS naming, or None if unsupported."""
    key = raw_os.strip().lower()
    if key in _OS_NAMES:
        return _OS_NAMES[key]
    if key.startswith(_WINDOWS_PREFIXES):
        return OS_WINDOWS
    return None


def select_packaging(kind: PackagingKind, os_name: str) -> ArtifactPackaging:
    """Pick the archive format for a platform under a packaging convention."""
    if kind == PackagingKind.RAW_BINARY:
        return ArtifactPackaging(kind=kind)
    archive_format = ArchiveFormat.ZIP if os_name == OS_WINDOWS else ArchiveFormat.TAR_GZ
    return ArtifactPackaging(kind=kind, archive_format=archive_format)
