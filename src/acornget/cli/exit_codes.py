"""Exit codes for the acornget CLI.

- 0: Success (installed, already up to date, or skipped)
- 1: Install failure (download, checksum mismatch, archive, placement)
- 2: Unsupported platform
- 3: Invalid configuration (bad values, missing binary with skip-download)
- 4: Neither curl nor wget available
- 130: Interrupted
"""

from __future__ import annotations

EXIT_SUCCESS = 0
EXIT_INSTALL_FAILURE = 1
EXIT_UNSUPPORTED_PLATFORM = 2
EXIT_INVALID_CONFIG = 3
EXIT_TRANSPORT_UNAVAILABLE = 4
EXIT_INTERRUPTED = 130
