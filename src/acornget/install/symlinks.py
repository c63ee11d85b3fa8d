"""Secondary command links to the installed binary."""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Callable, List, Optional

from acornget.bootstrap.paths import Privilege
from acornget.config.models import InstallConfig, SymlinkPolicy
from acornget.core.logging import get_logger

LOGGER = get_logger(__name__)


def create_symlinks(
    config: InstallConfig,
    privilege: Privilege,
    which: Callable[[str], Optional[str]] = shutil.which,
) -> List[Path]:
    """Link each configured command name to the installed binary.

    ``SKIP`` creates nothing. ``FORCE`` replaces whatever is at the link
    path. ``MISSING`` only links names that are neither on PATH nor present
    in the install directory. Failures are logged and do not abort the run.

    Returns:
        Links that were created.
    """
    if not config.symlinks:
        return []

    if config.bin_dir_read_only:
        LOGGER.info(f"Skipping symlinks, {config.bin_dir} is read-only")
        return []

    created: List[Path] = []
    for name in config.symlinks:
        link = config.bin_dir / name

        if config.symlink == SymlinkPolicy.SKIP:
            LOGGER.info(f"Skipping {link} symlink to {config.binary_name}")
            continue

        exists = link.exists() or link.is_symlink()
        if config.symlink == SymlinkPolicy.MISSING:
            if exists:
                LOGGER.info(f"Skipping {link} symlink, already exists")
                continue
            found = which(name)
            if found:
                LOGGER.info(f"Skipping {link} symlink, command exists in PATH at {found}")
                continue

        LOGGER.info(f"Creating {link} symlink to {config.binary_name}")
        try:
            if exists:
                privilege.remove(link)
            privilege.symlink(config.binary_path, link)
        except OSError as e:
            LOGGER.warning(f"Failed to create {link} symlink: {e}")
            continue
        created.append(link)

    return created
