"""Verified download and installation of the acorn binary."""

from acornget.install.installer import Installer, InstallOutcome

__all__ = [
    "Installer",
    "InstallOutcome",
]
