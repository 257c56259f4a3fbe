"""
Test Configuration Module
========================

Unit tests for configuration loading and validation.
"""

import pytest
import yaml
from pathlib import Path

# Add parent directory to path
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.config import (
    Config, EngineConfig, UIConfig, LoggingConfig,
    get_default_config_dir, load_config, save_config
)
from core.exceptions import ConfigError


@pytest.fixture(autouse=True)
def isolated_config_dir(tmp_path, monkeypatch):
    """Point the default config directory at an empty temp dir."""
    monkeypatch.setenv("ELIZA_CONFIG_DIR", str(tmp_path))
    for var in ("ELIZA_ENGINE_LANGUAGE", "ELIZA_ENGINE_DATA_DIR", "ELIZA_ENGINE_DEFAULT_REPLY",
                "ELIZA_UI_WEB_HOST", "ELIZA_UI_WEB_PORT", "ELIZA_UI_WEB_DEBUG",
                "ELIZA_UI_MAX_SESSIONS", "ELIZA_LOG_DIR", "ELIZA_LOG_LEVEL", "ELIZA_LOG_JSON"):
        monkeypatch.delenv(var, raising=False)
    return tmp_path


class TestEngineConfig:
    """Tests for EngineConfig."""

    def test_default_values(self):
        """Test default configuration values."""
        config = EngineConfig()
        assert config.language == "us"
        assert config.data_dir == ""
        assert config.default_reply == "Please go on."

    def test_validation_valid(self):
        """Test valid configuration passes validation."""
        config = EngineConfig(language="fr")
        config.validate()  # Should not raise

    def test_validation_unknown_language(self):
        """Test unsupported language raises error."""
        config = EngineConfig(language="de")
        with pytest.raises(ConfigError):
            config.validate()

    def test_validation_missing_data_dir(self, tmp_path):
        """Test nonexistent script directory raises error."""
        config = EngineConfig(data_dir=str(tmp_path / "missing"))
        with pytest.raises(ConfigError):
            config.validate()

    def test_validation_empty_default_reply(self):
        """Test empty default reply raises error."""
        config = EngineConfig(default_reply="  ")
        with pytest.raises(ConfigError):
            config.validate()


class TestUIConfig:
    """Tests for UIConfig."""

    def test_default_values(self):
        """Test default configuration values."""
        config = UIConfig()
        assert config.web_host == "127.0.0.1"
        assert config.web_port == 8080
        assert config.max_sessions == 1000

    def test_validation_invalid_port(self):
        """Test out-of-range port raises error."""
        with pytest.raises(ConfigError):
            UIConfig(web_port=70000).validate()

    def test_validation_invalid_max_sessions(self):
        """Test max_sessions below one raises error."""
        with pytest.raises(ConfigError):
            UIConfig(max_sessions=0).validate()

    def test_validation_invalid_theme(self):
        """Test unknown TUI theme raises error."""
        with pytest.raises(ConfigError):
            UIConfig(tui_theme="neon").validate()


class TestLoggingConfig:
    """Tests for LoggingConfig."""

    def test_validation_invalid_level(self):
        """Test unknown log level raises error."""
        with pytest.raises(ConfigError):
            LoggingConfig(log_level="LOUD").validate()


class TestConfig:
    """Tests for main Config class."""

    def test_default_values(self):
        """Test default configuration values."""
        config = Config()
        assert config.app_name == "ELIZA"
        assert config.engine is not None
        assert config.ui is not None

    def test_to_dict(self):
        """Test conversion to dictionary."""
        d = Config().to_dict()
        assert d["app_name"] == "ELIZA"
        assert d["engine"]["language"] == "us"
        assert "ui" in d
        assert "logging" in d


class TestLoadConfig:
    """Tests for loading configuration from disk and environment."""

    def test_default_config_dir_from_env(self, isolated_config_dir):
        """Test ELIZA_CONFIG_DIR selects the config directory."""
        assert get_default_config_dir() == isolated_config_dir

    def test_missing_default_file_uses_defaults(self):
        """Test absent config.yaml is not an error."""
        config = load_config()
        assert config.engine.language == "us"

    def test_missing_explicit_file_raises(self, tmp_path):
        """Test explicitly named missing file raises error."""
        with pytest.raises(ConfigError):
            load_config(str(tmp_path / "nope.yaml"))

    def test_yaml_values_applied(self, tmp_path):
        """Test values from YAML override defaults."""
        path = tmp_path / "custom.yaml"
        path.write_text(yaml.safe_dump({
            "engine": {"language": "fr"},
            "ui": {"web_port": 9000, "unknown_key": 1},
        }))

        config = load_config(str(path))
        assert config.engine.language == "fr"
        assert config.ui.web_port == 9000

    def test_non_mapping_file_raises(self, tmp_path):
        """Test a YAML list at top level is rejected."""
        path = tmp_path / "bad.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError):
            load_config(str(path))

    def test_invalid_yaml_value_fails_validation(self, tmp_path):
        """Test file values are validated."""
        path = tmp_path / "bad.yaml"
        path.write_text(yaml.safe_dump({"engine": {"language": "xx"}}))
        with pytest.raises(ConfigError):
            load_config(str(path))

    def test_env_overrides(self, monkeypatch):
        """Test environment variables override file values."""
        monkeypatch.setenv("ELIZA_ENGINE_LANGUAGE", "fr")
        monkeypatch.setenv("ELIZA_UI_WEB_PORT", "9100")
        monkeypatch.setenv("ELIZA_UI_WEB_DEBUG", "yes")

        config = load_config()
        assert config.engine.language == "fr"
        assert config.ui.web_port == 9100
        assert config.ui.web_debug is True

    def test_env_override_invalid_int(self, monkeypatch):
        """Test non-numeric port raises error."""
        monkeypatch.setenv("ELIZA_UI_WEB_PORT", "eighty")
        with pytest.raises(ConfigError):
            load_config()

    def test_env_ignored_when_disabled(self, monkeypatch):
        """Test load_env=False skips environment overrides."""
        monkeypatch.setenv("ELIZA_ENGINE_LANGUAGE", "fr")
        assert load_config(load_env=False).engine.language == "us"

    def test_save_and_reload(self, tmp_path):
        """Test saved configuration loads back."""
        config = Config()
        config.engine.language = "fr"
        config.ui.web_port = 8181

        path = tmp_path / "saved" / "config.yaml"
        save_config(config, str(path))

        loaded = load_config(str(path))
        assert loaded.engine.language == "fr"
        assert loaded.ui.web_port == 8181
