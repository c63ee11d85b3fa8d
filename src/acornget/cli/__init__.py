"""acornget CLI package.

The CLI takes no arguments; it is controlled entirely by INSTALL_ACORN_*
environment variables.
"""

from __future__ import annotations

from acornget.cli.runner import InstallRunner, get_version
from acornget.cli.exit_codes import (
    EXIT_SUCCESS,
    EXIT_INSTALL_FAILURE,
    EXIT_UNSUPPORTED_PLATFORM,
    EXIT_INVALID_CONFIG,
    EXIT_TRANSPORT_UNAVAILABLE,
    EXIT_INTERRUPTED,
)


def main() -> int:
    """CLI entrypoint.

    Returns:
        Exit code suitable for use as a console script.
    """
    runner = InstallRunner()
    return runner.run()


__all__ = [
    "main",
    "get_version",
    "InstallRunner",
    "EXIT_SUCCESS",
    "EXIT_INSTALL_FAILURE",
    "EXIT_UNSUPPORTED_PLATFORM",
    "EXIT_INVALID_CONFIG",
    "EXIT_TRANSPORT_UNAVAILABLE",
    "EXIT_INTERRUPTED",
]


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
