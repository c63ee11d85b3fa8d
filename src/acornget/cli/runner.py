"""Top-level runner for the acornget CLI.

This is the only place where install errors are caught. Each error type maps
to an exit code, and a single ``[ERROR]`` line is logged before returning it.
"""

from __future__ import annotations

import os
import signal
from contextlib import contextmanager
from importlib.metadata import PackageNotFoundError, version
from typing import Callable, Dict, Iterator, Mapping, Optional, Type

from acornget.cli.exit_codes import (
    EXIT_INSTALL_FAILURE,
    EXIT_INTERRUPTED,
    EXIT_INVALID_CONFIG,
    EXIT_SUCCESS,
    EXIT_TRANSPORT_UNAVAILABLE,
    EXIT_UNSUPPORTED_PLATFORM,
)
from acornget.config.loader import DEBUG_ENV, load_config
from acornget.config.models import InstallConfig
from acornget.core.errors import (
    ConfigError,
    InstallError,
    TransportUnavailableError,
    UnsupportedPlatformError,
)
from acornget.core.logging import configure_logging, get_logger
from acornget.install.installer import Installer, InstallOutcome

LOGGER = get_logger(__name__)

EXIT_CODES: Dict[Type[InstallError], int] = {
    ConfigError: EXIT_INVALID_CONFIG,
    UnsupportedPlatformError: EXIT_UNSUPPORTED_PLATFORM,
    TransportUnavailableError: EXIT_TRANSPORT_UNAVAILABLE,
}


class Terminated(Exception):
    """Raised from the SIGTERM handler so cleanup runs on the way out."""


def get_version() -> str:
    try:
        return version("acornget")
    except PackageNotFoundError:
        from acornget import __version__

        return __version__


def exit_code_for(error: InstallError) -> int:
    """Map an install error to its exit code."""
    for error_cls in type(error).__mro__:
        if error_cls in EXIT_CODES:
            return EXIT_CODES[error_cls]
    return EXIT_INSTALL_FAILURE


@contextmanager
def terminate_as_exception() -> Iterator[None]:
    """Turn SIGTERM into an exception for the duration of the block."""

    def _handler(signum, frame):
        raise Terminated(f"Received signal {signum}")

    try:
        previous = signal.signal(signal.SIGTERM, _handler)
    except ValueError:
        # Not in the main thread; leave signal handling alone.
        yield
        return
    try:
        yield
    finally:
        signal.signal(signal.SIGTERM, previous)


class InstallRunner:
    """Loads configuration, runs the installer and picks the exit code."""

    def __init__(
        self,
        environ: Optional[Mapping[str, str]] = None,
        installer_factory: Callable[[InstallConfig], Installer] = Installer,
    ) -> None:
        self._environ = os.environ if environ is None else environ
        self._installer_factory = installer_factory

    def run(self) -> int:
        debug = self._environ.get(DEBUG_ENV, "").strip().lower() == "true"
        configure_logging(debug=debug)
        LOGGER.debug(f"acornget {get_version()}")

        try:
            with terminate_as_exception():
                config = load_config(self._environ)
                outcome = self._installer_factory(config).run()
        except InstallError as e:
            LOGGER.error(str(e))
            return exit_code_for(e)
        except OSError as e:
            LOGGER.error(f"Installation failed: {e}")
            return EXIT_INSTALL_FAILURE
        except (KeyboardInterrupt, Terminated):
            LOGGER.error("Installation interrupted")
            return EXIT_INTERRUPTED

        if outcome == InstallOutcome.UP_TO_DATE:
            LOGGER.info(f"{config.binary_name} is already up to date")
        return EXIT_SUCCESS
