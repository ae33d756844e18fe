"""Tests for settings loading."""

from pathlib import Path

import pytest

from watermarker.config import Settings, get_settings, load_settings
from watermarker.errors import InvalidArgument


class TestSettings:
    def test_defaults(self):
        settings = Settings(_env_file=None)
        assert settings.enabled is True
        assert settings.apply_on_upload is True
        assert settings.apply_on_import is True
        assert settings.supported_type_set == {"image/jpeg", "image/png", "image/webp"}
        assert settings.derivative_type_list == ["large", "medium"]

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("WATERMARKER_ENABLED", "false")
        monkeypatch.setenv("WATERMARKER_SUPPORTED_TYPES", " Image/JPEG , image/gif ,")
        monkeypatch.setenv("WATERMARKER_DERIVATIVE_TYPES", "large")

        settings = Settings(_env_file=None)

        assert settings.enabled is False
        assert settings.supported_type_set == {"image/jpeg", "image/gif"}
        assert settings.derivative_type_list == ["large"]

    def test_lists_are_joined(self):
        settings = Settings(_env_file=None, derivative_types=["large", "square"])
        assert settings.derivative_types == "large,square"
        assert settings.derivative_type_list == ["large", "square"]

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()


class TestLoadSettings:
    """YAML overlay on top of the environment."""

    def test_yaml_values(self, tmp_path):
        config = tmp_path / "watermarker.yaml"
        config.write_text(
            "apply-on-import: false\n"
            "derivative_types: [large, medium, square]\n"
            "files_root: /srv/files\n"
        )

        settings = load_settings(config)

        assert settings.apply_on_import is False
        assert settings.derivative_type_list == ["large", "medium", "square"]
        assert settings.files_root == Path("/srv/files")

    def test_empty_file(self, tmp_path):
        config = tmp_path / "empty.yaml"
        config.write_text("")
        assert load_settings(config).enabled is True

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_settings(tmp_path / "absent.yaml")

    def test_not_a_mapping(self, tmp_path):
        config = tmp_path / "list.yaml"
        config.write_text("- enabled\n- disabled\n")
        with pytest.raises(InvalidArgument):
            load_settings(config)
