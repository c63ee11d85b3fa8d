"""Atomic placement of the verified binary.

The binary is first copied next to its final location as a hidden staging
file, so the last step is a rename within a single directory. Readers of the
target path see either the old binary or the complete new one.
"""

from __future__ import annotations

import uuid
from pathlib import Path

from acornget.bootstrap.paths import Privilege
from acornget.config.models import InstallConfig
from acornget.core.errors import PlacementError
from acornget.core.logging import get_logger

LOGGER = get_logger(__name__)

BINARY_MODE = 0o755


def staging_path(config: InstallConfig) -> Path:
    return config.bin_dir / f".{config.binary_name}.{uuid.uuid4().hex[:12]}.tmp"


def place_binary(binary: Path, config: InstallConfig, privilege: Privilege) -> Path:
    """Install ``binary`` at ``config.binary_path``, replacing any prior file.

    Raises:
        PlacementError: If any step fails. The prior binary is left in place.
    """
    target = config.binary_path
    staged = staging_path(config)

    LOGGER.info(f"Installing {config.binary_name} to {target}")
    placed = False
    try:
        binary.chmod(BINARY_MODE)
        privilege.copy(binary, staged)
        privilege.chmod(staged, BINARY_MODE)
        if config.binary_owner:
            privilege.chown(staged, config.binary_owner)
        privilege.replace(staged, target)
        placed = True
    except (OSError, LookupError) as e:
        raise PlacementError(f"Failed to install {target}: {e}") from e
    finally:
        # Also runs on KeyboardInterrupt and SIGTERM
        if not placed:
            _discard(staged, privilege)

    return target


def _discard(staged: Path, privilege: Privilege) -> None:
    try:
        privilege.remove(staged)
    except OSError as e:
        LOGGER.warning(f"Could not remove staging file {staged}: {e}")
