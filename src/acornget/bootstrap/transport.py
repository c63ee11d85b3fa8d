"""Download transports.

The installer shells out to ``curl`` or ``wget``, whichever is found first,
and binds that transport for the rest of the run. Transports never retry;
a failed fetch is fatal.
"""

from __future__ import annotations

import os
import shutil
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple, Type

from acornget.core.errors import DownloadError, TransportUnavailableError
from acornget.core.logging import get_logger

LOGGER = get_logger(__name__)


class Transport(ABC):
    """Fetches URLs to local files."""

    def __init__(self, executable: str) -> None:
        self.executable = executable

    @property
    @abstractmethod
    def name(self) -> str:
        """Tool name (e.g., 'curl', 'wget')."""

    @abstractmethod
    def fetch(self, destination: Path, url: str) -> None:
        """Download ``url`` into ``destination``, following redirects.

        Raises:
            DownloadError: On any network, HTTP or TLS failure.
        """

    @abstractmethod
    def effective_url(self, url: str) -> str:
        """Return the URL that ``url`` redirects to.

        Raises:
            DownloadError: If the request fails.
        """

    def _run(self, cmd: List[str]) -> subprocess.CompletedProcess:
        LOGGER.debug(f"Running: {' '.join(cmd)}")
        try:
            return subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as e:
            raise DownloadError(f"Could not run {self.name}: {e}") from e


class CurlTransport(Transport):
    @property
    def name(self) -> str:
        return "curl"

    def fetch(self, destination: Path, url: str) -> None:
        result = self._run([self.executable, "-o", str(destination), "-sfL", url])
        if result.returncode != 0:
            LOGGER.debug(f"curl exited with {result.returncode}: {result.stderr.strip()}")
            raise DownloadError("Download failed")

    def effective_url(self, url: str) -> str:
        result = self._run([
            self.executable,
            "-w", "%{url_effective}",
            "-L", "-s", "-S",
            url,
            "-o", os.devnull,
        ])
        if result.returncode != 0:
            raise DownloadError(f"Failed to query {url}: {result.stderr.strip()}")
        return result.stdout.strip()


class WgetTransport(Transport):
    @property
    def name(self) -> str:
        return "wget"

    def fetch(self, destination: Path, url: str) -> None:
        result = self._run([self.executable, "-qO", str(destination), url])
        if result.returncode != 0:
            LOGGER.debug(f"wget exited with {result.returncode}: {result.stderr.strip()}")
            raise DownloadError("Download failed")

    def effective_url(self, url: str) -> str:
        # -S prints the server response headers on stderr
        result = self._run([self.executable, "-SqO", os.devnull, url])
        # The redirect target may itself answer with an HTTP error
        location = parse_location(result.stderr)
        if location is not None:
            return location
        if result.returncode != 0:
            raise DownloadError(f"Failed to query {url}: {result.stderr.strip()}")
        return url


def parse_location(headers: str) -> Optional[str]:
    """Return the last ``Location`` header value from wget's -S output."""
    location = None
    for line in headers.splitlines():
        name, sep, value = line.strip().partition(":")
        if sep and name.lower() == "location" and value.strip():
            # Drop a trailing "[following]" annotation
            location = value.split()[0]
    return location


# Preference order
TRANSPORTS: Sequence[Tuple[str, Type[Transport]]] = (
    ("curl", CurlTransport),
    ("wget", WgetTransport),
)


def select_transport(
    which: Callable[[str], Optional[str]] = shutil.which,
) -> Transport:
    """Bind the first available transport tool.

    Raises:
        TransportUnavailableError: If neither curl nor wget is installed.
    """
    for name, transport_cls in TRANSPORTS:
        executable = which(name)
        if executable:
            LOGGER.debug(f"Using {name} at {executable} for downloads")
            return transport_cls(executable)
    raise TransportUnavailableError("Can not find curl or wget for downloading files")
