"""Checks on the binary already in the install directory."""

from __future__ import annotations

import os
from enum import Enum
from pathlib import Path

from acornget.core.errors import BinaryNotFoundError


class BinaryStatus(str, Enum):
    """State of the installed binary."""

    PRESENT = "present"
    MISSING = "missing"
    NOT_A_FILE = "not_a_file"
    NOT_EXECUTABLE = "not_executable"


def binary_status(path: Path) -> BinaryStatus:
    if path.is_file():
        if os.access(path, os.X_OK):
            return BinaryStatus.PRESENT
        return BinaryStatus.NOT_EXECUTABLE
    if path.exists():
        return BinaryStatus.NOT_A_FILE
    return BinaryStatus.MISSING


def is_installed(path: Path) -> bool:
    return binary_status(path) == BinaryStatus.PRESENT


def require_executable(path: Path) -> None:
    """Raise unless an executable binary exists at ``path``.

    Raises:
        BinaryNotFoundError: Naming what was found instead.
    """
    status = binary_status(path)
    if status == BinaryStatus.PRESENT:
        return
    detail = {
        BinaryStatus.MISSING: "nothing there",
        BinaryStatus.NOT_A_FILE: "not a regular file",
        BinaryStatus.NOT_EXECUTABLE: "file is not executable",
    }[status]
    raise BinaryNotFoundError(
        f"Executable {path.name} binary not found at {path} ({detail})"
    )
