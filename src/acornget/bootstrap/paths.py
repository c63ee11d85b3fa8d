"""Install directory selection and privilege handling.

When the installer is not running as root, every operation that touches the
install directory goes through ``sudo``. The same strategy object is used for
the writability probe and for the final placement of the binary.
"""

from __future__ import annotations

import os
import shlex
import shutil
import subprocess
from pathlib import Path
from typing import List, Sequence

from acornget.core.logging import get_logger

LOGGER = get_logger(__name__)

DEFAULT_BIN_DIR = Path("/usr/local/bin")
FALLBACK_BIN_DIR = Path("/opt/bin")

# Name of the file touched and removed to check writability
PROBE_FILE_NAME = "acorn-ro-test"

SUDO = "sudo"


def is_root() -> bool:
    """Check whether the effective user is root."""
    geteuid = getattr(os, "geteuid", None)
    if geteuid is None:
        # No uid concept (Windows); nothing to escalate to.
        return True
    return geteuid() == 0


class Privilege:
    """Runs filesystem operations directly or elevated through sudo."""

    def __init__(self, sudo: bool = False) -> None:
        self.sudo = sudo

    @classmethod
    def detect(cls) -> "Privilege":
        """Pick the direct strategy for root, sudo otherwise."""
        return cls(sudo=not is_root())

    def command(self, argv: Sequence[str]) -> List[str]:
        """Return argv prefixed with sudo when elevated."""
        if self.sudo:
            return [SUDO, *argv]
        return list(argv)

    def run(self, argv: Sequence[str]) -> subprocess.CompletedProcess:
        cmd = self.command(argv)
        LOGGER.debug(f"Running: {' '.join(cmd)}")
        return subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            check=False,
        )

    def can_write(self, directory: Path) -> bool:
        """Probe a directory by creating and removing a scratch file."""
        probe = directory / PROBE_FILE_NAME
        if not self.sudo:
            try:
                probe.touch()
                probe.unlink()
            except OSError as e:
                LOGGER.debug(f"{directory} is not writable: {e}")
                return False
            return True

        quoted = shlex.quote(str(probe))
        try:
            result = self.run(["sh", "-c", f"touch {quoted} && rm -rf {quoted}"])
        except OSError as e:
            LOGGER.debug(f"Could not run writability probe for {directory}: {e}")
            return False
        if result.returncode != 0:
            LOGGER.debug(f"{directory} is not writable: {result.stderr.strip()}")
            return False
        return True

    def copy(self, source: Path, destination: Path) -> None:
        if not self.sudo:
            shutil.copyfile(source, destination)
            return
        self._check(["cp", str(source), str(destination)])

    def chmod(self, path: Path, mode: int) -> None:
        if not self.sudo:
            path.chmod(mode)
            return
        self._check(["chmod", format(mode, "o"), str(path)])

    def chown(self, path: Path, owner: str) -> None:
        if not self.sudo:
            shutil.chown(path, user=owner)
            return
        self._check(["chown", owner, str(path)])

    def replace(self, source: Path, destination: Path) -> None:
        """Rename source over destination."""
        if not self.sudo:
            os.replace(source, destination)
            return
        self._check(["mv", "-f", str(source), str(destination)])

    def remove(self, path: Path) -> None:
        if not self.sudo:
            path.unlink(missing_ok=True)
            return
        self._check(["rm", "-f", str(path)])

    def symlink(self, target: Path, link: Path) -> None:
        if not self.sudo:
            link.symlink_to(target)
            return
        self._check(["ln", "-s", str(target), str(link)])

    def _check(self, argv: Sequence[str]) -> None:
        result = self.run(argv)
        if result.returncode != 0:
            raise OSError(
                f"'{' '.join(self.command(argv))}' failed: {result.stderr.strip()}"
            )


def select_bin_dir(
    privilege: Privilege,
    default: Path = DEFAULT_BIN_DIR,
    fallback: Path = FALLBACK_BIN_DIR,
) -> Path:
    """Choose the install directory when none is configured.

    Uses ``default`` when it is writable, otherwise ``fallback`` if that
    directory exists. An unwritable default is not an error; it is kept when
    there is no fallback.
    """
    if privilege.can_write(default):
        return default
    if fallback.is_dir():
        LOGGER.debug(f"{default} is not writable, using {fallback}")
        return fallback
    return default
