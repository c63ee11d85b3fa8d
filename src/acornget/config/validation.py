"""Configuration validation for acornget.

Warns on unknown keys and on values of the wrong type. Does not raise;
value errors that make the install impossible are raised by the loader.
"""

from __future__ import annotations

from dataclasses import dataclass
from difflib import get_close_matches
from typing import Any, Dict, List, Optional, Set

from acornget.config.models import PackagingKind, SymlinkPolicy
from acornget.core.logging import get_logger

LOGGER = get_logger(__name__)

STRING_KEYS: Set[str] = {
    "channel",
    "channel_url",
    "version",
    "commit",
    "bin_dir",
    "symlink",
    "packaging",
    "release_url",
    "storage_url",
}

BOOLEAN_KEYS: Set[str] = {
    "bin_dir_read_only",
    "skip_download",
}

LIST_KEYS: Set[str] = {
    "symlinks",
}

VALID_KEYS: Set[str] = STRING_KEYS | BOOLEAN_KEYS | LIST_KEYS

VALID_SYMLINK_VALUES: Set[str] = {policy.value for policy in SymlinkPolicy}
VALID_PACKAGING_VALUES: Set[str] = {kind.value for kind in PackagingKind}


@dataclass
class ConfigValidationWarning:
    """A validation warning for configuration."""

    message: str
    source: str
    key: Optional[str] = None
    suggestion: Optional[str] = None


def validate_config(
    data: Dict[str, Any],
    source: str,
) -> List[ConfigValidationWarning]:
    """Validate a configuration dictionary.

    Args:
        data: Config dictionary to validate.
        source: Where the values came from, for warning messages.

    Returns:
        List of validation warnings.
    """
    warnings: List[ConfigValidationWarning] = []

    for key, value in data.items():
        if key not in VALID_KEYS:
            warnings.append(_warn(
                f"Unknown key '{key}'",
                source,
                key,
                _suggest_key(key, VALID_KEYS),
            ))
            continue

        if value is None:
            continue

        if key in STRING_KEYS and not isinstance(value, str):
            warnings.append(_warn(
                f"'{key}' must be a string, got {type(value).__name__}", source, key
            ))
        elif key in BOOLEAN_KEYS and not isinstance(value, (bool, str)):
            warnings.append(_warn(
                f"'{key}' must be a boolean, got {type(value).__name__}", source, key
            ))
        elif key in LIST_KEYS and not isinstance(value, list):
            warnings.append(_warn(
                f"'{key}' must be a list, got {type(value).__name__}", source, key
            ))

    symlink = data.get("symlink")
    if isinstance(symlink, str) and symlink and symlink not in VALID_SYMLINK_VALUES:
        warnings.append(_warn(
            f"Invalid value '{symlink}' for 'symlink'",
            source,
            "symlink",
            _suggest_key(symlink, VALID_SYMLINK_VALUES),
        ))

    packaging = data.get("packaging")
    if isinstance(packaging, str) and packaging and packaging not in VALID_PACKAGING_VALUES:
        warnings.append(_warn(
            f"Invalid value '{packaging}' for 'packaging'",
            source,
            "packaging",
            _suggest_key(packaging, VALID_PACKAGING_VALUES),
        ))

    return warnings


def _warn(
    message: str,
    source: str,
    key: Optional[str] = None,
    suggestion: Optional[str] = None,
) -> ConfigValidationWarning:
    warning = ConfigValidationWarning(
        message=message,
        source=source,
        key=key,
        suggestion=suggestion,
    )
    _log_warning(warning)
    return warning


def _suggest_key(invalid_key: str, valid_keys: Set[str]) -> Optional[str]:
    """Suggest a valid key for a potential typo."""
    matches = get_close_matches(invalid_key, sorted(valid_keys), n=1, cutoff=0.6)
    return matches[0] if matches else None


def _log_warning(warning: ConfigValidationWarning) -> None:
    msg = f"{warning.message} in {warning.source}"
    if warning.suggestion:
        msg += f" (did you mean '{warning.suggestion}'?)"
    LOGGER.warning(msg)
