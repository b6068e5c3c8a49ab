"""
Tests for input validation and settings.
"""

import pytest
from pydantic import ValidationError

from manjaliof.config import (
    AppSettings,
    ConfigurationError,
    InputSettings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)
from manjaliof.validation import InputValidator, InvalidInputError


@pytest.fixture
def validator():
    return InputValidator(InputSettings(sellers="arian,pouya"))


class TestInputValidator:
    """Tests for InputValidator."""

    @pytest.mark.parametrize("name", ["alice", "Bob_2", "c.d-e", "x" * 32])
    def test_valid_names(self, validator, name):
        assert validator.validate_name(name) == name

    def test_empty_name(self, validator):
        with pytest.raises(InvalidInputError, match="name can't be empty"):
            validator.validate_name("")

    def test_name_too_long(self, validator):
        with pytest.raises(InvalidInputError, match="32"):
            validator.validate_name("x" * 33)

    @pytest.mark.parametrize("name", ["ali ce", "ali/ce", "ali;ce", "ålice"])
    def test_name_charset(self, validator, name):
        with pytest.raises(InvalidInputError, match="invalid name"):
            validator.validate_name(name)

    def test_seller_allow_list(self, validator):
        assert validator.sellers == ["arian", "pouya"]
        assert validator.validate_seller("pouya") == "pouya"
        with pytest.raises(InvalidInputError, match="arian, pouya"):
            validator.validate_seller("mallory")

    def test_info_length(self, validator):
        assert validator.validate_info("") == ""
        assert validator.validate_info("x" * 64) == "x" * 64
        with pytest.raises(InvalidInputError):
            validator.validate_info("x" * 65)

    def test_amounts(self, validator):
        assert validator.validate_amount(0, "days") == 0
        with pytest.raises(InvalidInputError, match="money"):
            validator.validate_amount(-1, "money")

    def test_custom_limits(self):
        validator = InputValidator(InputSettings(sellers="sam", name_max_length=3))
        assert validator.sellers == ["sam"]
        with pytest.raises(InvalidInputError):
            validator.validate_name("abcd")


class TestSettings:
    """Tests for the pydantic-settings configuration."""

    def test_data_folder_required(self):
        settings = StorageSettings()
        with pytest.raises(ConfigurationError, match="MANJALIOF_DATA"):
            settings.require_data_dir()

    def test_paths_from_environment(self, monkeypatch, tmp_path):
        monkeypatch.setenv("MANJALIOF_DATA", str(tmp_path))
        monkeypatch.setenv("MANJALIOF_BACKEND", "json")

        settings = StorageSettings()

        assert settings.backend == "json"
        assert settings.db_path == tmp_path / "data.db"
        assert settings.json_path == tmp_path / "data.json"

    def test_unknown_backend_rejected(self, monkeypatch):
        monkeypatch.setenv("MANJALIOF_BACKEND", "postgres")
        with pytest.raises(ValidationError):
            StorageSettings()

    def test_sellers_from_environment(self, monkeypatch):
        monkeypatch.setenv("MANJALIOF_SELLERS", " arian , pouya,sam ")
        assert InputSettings().sellers_list == ["arian", "pouya", "sam"]

    def test_empty_sellers_rejected(self):
        with pytest.raises(ValidationError):
            InputSettings(sellers=" , ")

    def test_log_level_normalized(self):
        assert AppSettings(log_level="debug").log_level == "DEBUG"
        with pytest.raises(ValidationError):
            AppSettings(log_level="loud")

    def test_validate_all_settings(self, monkeypatch, tmp_path):
        results = validate_all_settings()
        assert results["storage"] is False
        assert "MANJALIOF_DATA" in results["storage_error"]
        assert results["input"] is True

        monkeypatch.setenv("MANJALIOF_DATA", str(tmp_path))
        get_settings.cache_clear()
        assert validate_all_settings() == {"storage": True, "input": True, "app": True}
