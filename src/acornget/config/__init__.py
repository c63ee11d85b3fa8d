"""Configuration module for acornget.

Resolves the installer configuration from:
- INSTALL_ACORN_* environment variables
- An optional YAML config file (INSTALL_ACORN_CONFIG)
- Built-in defaults and an install directory probe
"""

from acornget.config.models import (
    InstallConfig,
    PackagingKind,
    SymlinkPolicy,
)
from acornget.config.loader import load_config, resolve_install_config
from acornget.config.validation import validate_config, ConfigValidationWarning

__all__ = [
    "InstallConfig",
    "PackagingKind",
    "SymlinkPolicy",
    "load_config",
    "resolve_install_config",
    "validate_config",
    "ConfigValidationWarning",
]
