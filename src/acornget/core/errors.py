"""Error types raised by the install pipeline.

Every failure is terminal. Stages raise one of these and the CLI runner is
the only place that catches them, logs a single ``[ERROR]`` line and maps
the error type to a process exit code.
"""

from __future__ import annotations


class InstallError(Exception):
    """Base class for fatal install errors."""


class ConfigError(InstallError):
    """Configuration loading, parsing or consistency error."""


class BinaryNotFoundError(ConfigError):
    """No executable binary where skip-download expects one."""


class UnsupportedPlatformError(InstallError):
    """Host OS or architecture has no published artifact."""


class TransportUnavailableError(InstallError):
    """Neither curl nor wget is available."""


class DownloadError(InstallError):
    """A fetch failed (network, HTTP status, TLS)."""


class IntegrityError(InstallError):
    """Downloaded artifact does not match the published digest."""


class ArchiveError(InstallError):
    """Archive could not be expanded or does not contain the binary."""


class PlacementError(InstallError):
    """Binary could not be moved into the install directory."""
