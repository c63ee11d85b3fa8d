"""Tests for acornget.config.validation."""

from __future__ import annotations

from acornget.config.validation import validate_config


class TestValidateConfig:
    def test_valid_config_has_no_warnings(self) -> None:
        data = {
            "channel": "stable",
            "skip_download": True,
            "symlinks": ["acorn-cli"],
            "symlink": "force",
            "packaging": "raw",
        }
        assert validate_config(data, source="install.yml") == []

    def test_unknown_key_with_suggestion(self) -> None:
        warnings = validate_config({"chanel": "stable"}, source="install.yml")

        assert len(warnings) == 1
        assert warnings[0].key == "chanel"
        assert warnings[0].suggestion == "channel"

    def test_wrong_types(self) -> None:
        warnings = validate_config(
            {"channel": 3, "skip_download": [], "symlinks": "a"}, source="install.yml"
        )

        assert {w.key for w in warnings} == {"channel", "skip_download", "symlinks"}

    def test_invalid_symlink_value(self) -> None:
        warnings = validate_config({"symlink": "forse"}, source="environment")

        assert len(warnings) == 1
        assert warnings[0].suggestion == "force"

    def test_invalid_packaging_value(self) -> None:
        warnings = validate_config({"packaging": "archve"}, source="environment")

        assert warnings[0].suggestion == "archive"

    def test_none_values_ignored(self) -> None:
        assert validate_config({"version": None}, source="install.yml") == []
