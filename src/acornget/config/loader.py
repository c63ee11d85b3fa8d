"""Configuration loading and resolution.

Builds the immutable ``InstallConfig`` from:
- ``INSTALL_ACORN_*`` environment variables
- An optional YAML config file named by ``INSTALL_ACORN_CONFIG``
- Built-in defaults, plus a writability probe for the install directory

Environment variables take precedence over the config file.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from acornget.bootstrap.paths import Privilege, select_bin_dir
from acornget.config.models import (
    DEFAULT_BINARY_OWNER,
    DEFAULT_CHANNEL,
    DEFAULT_CHANNEL_URL,
    DEFAULT_RELEASE_URL,
    DEFAULT_STORAGE_URL,
    InstallConfig,
    PackagingKind,
    SymlinkPolicy,
)
from acornget.config.validation import validate_config
from acornget.core.errors import ConfigError
from acornget.core.logging import get_logger

LOGGER = get_logger(__name__)

CONFIG_FILE_ENV = "INSTALL_ACORN_CONFIG"
DEBUG_ENV = "INSTALL_ACORN_DEBUG"

# Environment variable -> config key
ENV_KEYS: Dict[str, str] = {
    "INSTALL_ACORN_SKIP_DOWNLOAD": "skip_download",
    "INSTALL_ACORN_SYMLINK": "symlink",
    "INSTALL_ACORN_VERSION": "version",
    "INSTALL_ACORN_COMMIT": "commit",
    "INSTALL_ACORN_BIN_DIR": "bin_dir",
    "INSTALL_ACORN_BIN_DIR_READ_ONLY": "bin_dir_read_only",
    "INSTALL_ACORN_CHANNEL_URL": "channel_url",
    "INSTALL_ACORN_CHANNEL": "channel",
    "INSTALL_ACORN_PACKAGING": "packaging",
}

# Environment variable pattern: ${VAR} or ${VAR:-default}
ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+)(?::-([^}]*))?\}")


def load_config(
    environ: Optional[Mapping[str, str]] = None,
    privilege: Optional[Privilege] = None,
) -> InstallConfig:
    """Load and resolve the installer configuration.

    Args:
        environ: Environment mapping (defaults to os.environ).
        privilege: Privilege strategy (defaults to detecting root).

    Returns:
        Fully populated InstallConfig.

    Raises:
        ConfigError: If the config file is missing or invalid, or a value
            cannot be interpreted.
    """
    if environ is None:
        environ = os.environ

    merged: Dict[str, Any] = {}

    config_file = environ.get(CONFIG_FILE_ENV)
    if config_file:
        path = Path(config_file).expanduser()
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")
        try:
            file_dict = load_yaml_file(path, environ)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e
        validate_config(file_dict, source=str(path))
        merged.update(file_dict)
        LOGGER.debug(f"Loaded config from {path}")

    env_dict = read_environment(environ)
    validate_config(env_dict, source="environment")
    merged.update(env_dict)

    return resolve_install_config(merged, privilege)


def read_environment(environ: Mapping[str, str]) -> Dict[str, Any]:
    """Collect the set (non-empty) INSTALL_ACORN_* variables as config keys."""
    values: Dict[str, Any] = {}
    for env_name, key in ENV_KEYS.items():
        value = environ.get(env_name)
        if value:
            values[key] = value
    return values


def load_yaml_file(
    path: Path, environ: Optional[Mapping[str, str]] = None
) -> Dict[str, Any]:
    """Load and parse a YAML config file.

    Performs environment variable expansion on string values.

    Raises:
        yaml.YAMLError: If YAML parsing fails.
        ConfigError: If the document is not a mapping.
    """
    with open(path, "r", encoding="utf-8") as f:
        content = f.read()

    data = yaml.safe_load(content)

    if data is None:
        return {}

    if not isinstance(data, dict):
        raise ConfigError(f"Config file must be a YAML mapping, got {type(data).__name__}")

    return expand_env_vars(data, environ)


def expand_env_vars(data: Any, environ: Optional[Mapping[str, str]] = None) -> Any:
    """Recursively expand ${VAR} and ${VAR:-default} in config values."""
    if environ is None:
        environ = os.environ

    if isinstance(data, dict):
        return {k: expand_env_vars(v, environ) for k, v in data.items()}
    elif isinstance(data, list):
        return [expand_env_vars(item, environ) for item in data]
    elif isinstance(data, str):
        return ENV_VAR_PATTERN.sub(lambda m: _env_var_replacer(m, environ), data)
    else:
        return data


def _env_var_replacer(match: re.Match[str], environ: Mapping[str, str]) -> str:
    var_name = match.group(1)
    default_value = match.group(2)

    value = environ.get(var_name)
    if value is not None:
        return value
    if default_value is not None:
        return default_value

    LOGGER.warning(f"Environment variable ${var_name} is not set and has no default")
    return ""


def resolve_install_config(
    data: Mapping[str, Any],
    privilege: Optional[Privilege] = None,
) -> InstallConfig:
    """Fill in defaults and derived values to produce an InstallConfig.

    Args:
        data: Merged raw config values keyed by field name.
        privilege: Privilege strategy used for the install directory probe.

    Returns:
        InstallConfig with no unset required fields.
    """
    if privilege is None:
        privilege = Privilege.detect()

    bin_dir_value = _as_str(data.get("bin_dir"))
    if bin_dir_value:
        bin_dir = Path(bin_dir_value).expanduser()
    else:
        bin_dir = select_bin_dir(privilege)

    bin_dir_read_only = _as_bool(data.get("bin_dir_read_only"))
    skip_download = _as_bool(data.get("skip_download")) or bin_dir_read_only

    return InstallConfig(
        bin_dir=bin_dir,
        channel=_as_str(data.get("channel")) or DEFAULT_CHANNEL,
        channel_url=(_as_str(data.get("channel_url")) or DEFAULT_CHANNEL_URL).rstrip("/"),
        version=_as_str(data.get("version")),
        commit=_as_str(data.get("commit")),
        bin_dir_read_only=bin_dir_read_only,
        skip_download=skip_download,
        symlink=_parse_symlink_policy(data.get("symlink")),
        symlinks=_parse_symlinks(data.get("symlinks")),
        packaging=_parse_packaging(data.get("packaging")),
        release_url=(_as_str(data.get("release_url")) or DEFAULT_RELEASE_URL).rstrip("/"),
        storage_url=(_as_str(data.get("storage_url")) or DEFAULT_STORAGE_URL).rstrip("/"),
        sudo=privilege.sudo,
        # Ownership only applies where files have POSIX owners
        binary_owner=DEFAULT_BINARY_OWNER if os.name == "posix" else None,
    )


def _as_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() == "true"


def _parse_symlink_policy(value: Any) -> SymlinkPolicy:
    text = _as_str(value)
    if text is None:
        return SymlinkPolicy.MISSING
    try:
        return SymlinkPolicy(text.lower())
    except ValueError:
        raise ConfigError(
            f"Invalid symlink policy '{text}', expected 'skip' or 'force'"
        ) from None


def _parse_packaging(value: Any) -> PackagingKind:
    text = _as_str(value)
    if text is None:
        return PackagingKind.ARCHIVE
    try:
        return PackagingKind(text.lower())
    except ValueError:
        raise ConfigError(
            f"Invalid packaging '{text}', expected 'archive' or 'raw'"
        ) from None


def _parse_symlinks(value: Any) -> tuple:
    if value is None:
        return ()
    if not isinstance(value, list):
        raise ConfigError(f"'symlinks' must be a list, got {type(value).__name__}")
    return tuple(str(name).strip() for name in value if str(name).strip())
