"""Integration tests for configuration module."""

from pathlib import Path

import pytest

from engage.config import (
    ConfigurationError,
    TagMatchMode,
    load_config,
    validate_config_file,
)
from engage.config.environment import DEFAULT_DATABASE_URL, load_environment_config
from engage.config.models import AppConfig, MatchingConfig, NotificationsConfig
from engage.config.validators import check_for_warnings

FIXTURES_DIR = Path(__file__).parent / "fixtures"


class TestConfigurationLoading:
    """Test configuration loading from YAML files."""

    def test_load_valid_config(self, mock_env_vars):
        """Test loading a valid configuration file."""
        app_config, env_config = load_config(FIXTURES_DIR / "valid_config.yaml")

        assert app_config.matching.max_results == 5
        assert app_config.matching.tag_match_mode == TagMatchMode.TOKEN
        assert app_config.matching.timezone == "America/Chicago"

        assert app_config.notifications.enabled is True
        assert app_config.notifications.workflow_key == "need-match-alert"
        # Trailing slash is dropped
        assert app_config.notifications.api_base_url == "https://api.knock.app/v1"
        assert app_config.notifications.request_timeout == 15
        assert app_config.notifications.max_retries == 2
        assert app_config.notifications.retry_backoff_multiplier == 3.0

        assert app_config.logging.level == "DEBUG"
        assert app_config.logging.format == "json"

        assert env_config.knock_api_key == "sk_test_123"
        assert env_config.database_url == DEFAULT_DATABASE_URL

    def test_load_minimal_config(self, mock_env_vars):
        """Test loading a minimal configuration with defaults."""
        app_config, _ = load_config(FIXTURES_DIR / "minimal_config.yaml")

        assert app_config.matching.max_results == 10
        assert app_config.matching.tag_match_mode == "substring"
        assert app_config.matching.timezone is None
        assert app_config.notifications.workflow_key == "need_match"
        assert app_config.notifications.max_retries == 3
        assert app_config.logging.format == "key-value"

    def test_config_file_not_found(self, mock_env_vars):
        """Test error when config file doesn't exist."""
        with pytest.raises(ConfigurationError) as exc_info:
            load_config(Path("nonexistent.yaml"))

        assert "not found" in str(exc_info.value).lower()
        assert "config.example.yaml" in str(exc_info.value)

    def test_default_lookup_without_any_file(self, tmp_path, monkeypatch, mock_env_vars):
        """Test error listing the paths tried when no config file exists."""
        monkeypatch.chdir(tmp_path)

        with pytest.raises(ConfigurationError) as exc_info:
            load_config()

        assert "config.yaml" in str(exc_info.value)

    def test_default_lookup_finds_config_dir(self, tmp_path, monkeypatch, mock_env_vars):
        """Test config/config.yaml is used when ./config.yaml is absent."""
        (tmp_path / "config").mkdir()
        (tmp_path / "config" / "config.yaml").write_text("matching:\n  max_results: 7\n")
        monkeypatch.chdir(tmp_path)

        app_config, _ = load_config()

        assert app_config.matching.max_results == 7

    def test_invalid_yaml_syntax(self, tmp_path, mock_env_vars):
        """Test error when YAML syntax is invalid."""
        invalid_yaml = tmp_path / "invalid.yaml"
        invalid_yaml.write_text("matching:\n  max_results: '5\n    broken")

        with pytest.raises(ConfigurationError) as exc_info:
            load_config(invalid_yaml)

        assert "parse" in str(exc_info.value).lower()

    def test_empty_file(self, tmp_path, mock_env_vars):
        """Test error when the config file is empty."""
        empty = tmp_path / "empty.yaml"
        empty.write_text("")

        with pytest.raises(ConfigurationError) as exc_info:
            load_config(empty)

        assert "empty" in str(exc_info.value).lower()

    def test_top_level_must_be_mapping(self, mock_env_vars):
        """Test error when the YAML document is a list."""
        with pytest.raises(ConfigurationError) as exc_info:
            load_config(FIXTURES_DIR / "invalid_top_level_list.yaml")

        assert "mapping" in str(exc_info.value).lower()


class TestConfigurationValidation:
    """Test configuration validation rules."""

    def test_max_results_must_be_positive(self, mock_env_vars):
        with pytest.raises(ConfigurationError) as exc_info:
            load_config(FIXTURES_DIR / "invalid_max_results.yaml")

        assert "max_results" in str(exc_info.value)

    def test_unknown_timezone(self, mock_env_vars):
        with pytest.raises(ConfigurationError) as exc_info:
            load_config(FIXTURES_DIR / "invalid_timezone.yaml")

        assert "Unknown timezone" in str(exc_info.value)

    def test_invalid_tag_match_mode(self, mock_env_vars):
        with pytest.raises(ConfigurationError) as exc_info:
            load_config(FIXTURES_DIR / "invalid_match_mode.yaml")

        error_msg = str(exc_info.value)
        assert "tag_match_mode" in error_msg
        assert "Invalid value" in error_msg

    def test_errors_are_numbered_with_suggestions(self, mock_env_vars):
        with pytest.raises(ConfigurationError) as exc_info:
            load_config(FIXTURES_DIR / "invalid_max_results.yaml")

        error = exc_info.value
        assert len(error.errors) == 1
        assert "  1. " in str(error)
        assert "Suggestions:" in str(error)

    def test_blank_workflow_key_rejected(self):
        with pytest.raises(ValueError):
            NotificationsConfig(workflow_key="   ")

    def test_blank_timezone_means_host(self):
        config = MatchingConfig(timezone="  ")
        assert config.timezone is None
        assert config.tzinfo() is None

    def test_tzinfo_for_configured_zone(self):
        config = MatchingConfig(timezone="Europe/London")
        assert config.tzinfo().key == "Europe/London"

    def test_defaults_are_plain_values(self):
        config = AppConfig()
        assert config.matching.tag_match_mode == "substring"
        assert config.logging.level == "INFO"


class TestConfigurationWarnings:
    """Test non-fatal configuration warnings."""

    def test_disabled_notifications_warns(self, monkeypatch):
        monkeypatch.delenv("KNOCK_API_KEY", raising=False)

        with pytest.warns(UserWarning, match="Notifications are disabled"):
            app_config, env_config = load_config(
                FIXTURES_DIR / "notifications_disabled_config.yaml"
            )

        # No API key needed when nothing is sent
        assert app_config.notifications.enabled is False
        assert env_config.knock_api_key is None

    def test_unknown_section_warns(self):
        warnings = check_for_warnings({"matching": {}, "sources": []})
        assert any("sources" in w for w in warnings)

    def test_large_max_results_warns(self):
        warnings = check_for_warnings({"matching": {"max_results": 75}})
        assert any("75" in w for w in warnings)

    def test_clean_config_has_no_warnings(self):
        assert check_for_warnings({"matching": {"max_results": 5}}) == []


class TestEnvironmentVariables:
    """Test environment variable loading and validation."""

    def test_load_valid_environment_config(self, mock_env_vars):
        env_config = load_environment_config()

        assert env_config.knock_api_key == "sk_test_123"
        assert env_config.database_url == DEFAULT_DATABASE_URL
        assert env_config.log_level is None

    def test_missing_knock_api_key(self, monkeypatch):
        monkeypatch.delenv("KNOCK_API_KEY", raising=False)

        with pytest.raises(ConfigurationError) as exc_info:
            load_environment_config()

        assert "KNOCK_API_KEY" in str(exc_info.value)

    def test_knock_api_key_optional_when_not_required(self, monkeypatch):
        monkeypatch.delenv("KNOCK_API_KEY", raising=False)

        env_config = load_environment_config(require_knock_api_key=False)

        assert env_config.knock_api_key is None

    def test_override_disables_key_requirement(self, monkeypatch):
        monkeypatch.delenv("KNOCK_API_KEY", raising=False)

        app_config, env_config = load_config(
            FIXTURES_DIR / "valid_config.yaml", require_knock_api_key=False
        )

        assert app_config.notifications.enabled is True
        assert env_config.knock_api_key is None

    def test_invalid_database_url(self, mock_env_vars, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "engage.db")

        with pytest.raises(ConfigurationError) as exc_info:
            load_environment_config()

        assert "DATABASE_URL" in str(exc_info.value)

    def test_empty_database_url(self, mock_env_vars, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "  ")

        with pytest.raises(ConfigurationError):
            load_environment_config()

    def test_invalid_log_level(self, mock_env_vars, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "VERBOSE")

        with pytest.raises(ConfigurationError) as exc_info:
            load_environment_config()

        assert "LOG_LEVEL" in str(exc_info.value)

    def test_all_errors_reported_together(self, monkeypatch):
        monkeypatch.delenv("KNOCK_API_KEY", raising=False)
        monkeypatch.setenv("LOG_LEVEL", "VERBOSE")
        monkeypatch.setenv("DATABASE_URL", "engage.db")

        with pytest.raises(ConfigurationError) as exc_info:
            load_environment_config()

        assert len(exc_info.value.errors) == 3

    def test_optional_env_vars(self, mock_env_vars, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgresql://engage:secret@db/engage")
        monkeypatch.setenv("LOG_LEVEL", "debug")

        env_config = load_environment_config()

        assert env_config.database_url == "postgresql://engage:secret@db/engage"
        assert env_config.log_level == "DEBUG"


class TestConfigurationHelpers:
    """Test configuration helper methods."""

    def test_validate_config_file_utility(self, capsys):
        """Test the standalone config validation utility."""
        assert validate_config_file(FIXTURES_DIR / "valid_config.yaml") is True
        assert "is valid" in capsys.readouterr().out

        assert validate_config_file(FIXTURES_DIR / "invalid_max_results.yaml") is False
        assert "validation failed" in capsys.readouterr().out

    def test_validate_config_file_ignores_environment(self, monkeypatch):
        monkeypatch.delenv("KNOCK_API_KEY", raising=False)
        assert validate_config_file(FIXTURES_DIR / "valid_config.yaml") is True
