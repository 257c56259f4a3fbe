"""
Configuration - Application settings for ELIZA
==============================================

Settings come from three layers, later ones winning:

1. Dataclass defaults below
2. config.yaml in the configuration directory (or an explicit path)
3. ELIZA_* environment variables

Example config.yaml:

    engine:
      language: fr
    ui:
      web_port: 9000
    logging:
      log_dir: ~/.local/share/eliza/logs
"""

import os
import yaml
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple
from dataclasses import dataclass, field, asdict

from .exceptions import ConfigError

SUPPORTED_LANGUAGES = ("us", "fr")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
TUI_THEMES = ("dark", "light")


@dataclass
class EngineConfig:
    """
    Response engine settings.

    Selects which script (rules, reflections and messages) is loaded
    and where it is loaded from.
    """
    language: str = "us"

    # Directory holding rules_<lang>.yaml etc. Empty = bundled scripts
    data_dir: str = ""

    # Used when a script has no fallback rule, or a turn fails unexpectedly
    default_reply: str = "Please go on."

    def validate(self) -> None:
        if self.language not in SUPPORTED_LANGUAGES:
            raise ConfigError(
                f"Unsupported language: {self.language}",
                {"supported": list(SUPPORTED_LANGUAGES)}
            )

        if self.data_dir and not Path(self.data_dir).expanduser().is_dir():
            raise ConfigError(f"Script directory does not exist: {self.data_dir}")

        if not self.default_reply.strip():
            raise ConfigError("default_reply cannot be empty")


@dataclass
class UIConfig:
    """Settings for the web and terminal front ends."""
    web_host: str = "127.0.0.1"
    web_port: int = 8080
    web_debug: bool = False

    # Conversations kept in memory by the web UI before the oldest is evicted
    max_sessions: int = 1000

    tui_theme: str = "dark"
    show_intro: bool = True

    def validate(self) -> None:
        if not 1 <= self.web_port <= 65535:
            raise ConfigError(f"Invalid web port: {self.web_port}")

        if self.max_sessions < 1:
            raise ConfigError("max_sessions must be at least 1")

        if self.tui_theme not in TUI_THEMES:
            raise ConfigError(f"Invalid TUI theme: {self.tui_theme}",
                              {"supported": list(TUI_THEMES)})


@dataclass
class LoggingConfig:
    # Empty = no log files, console only
    log_dir: str = ""
    log_level: str = "INFO"
    json_format: bool = False

    def validate(self) -> None:
        if str(self.log_level).upper() not in LOG_LEVELS:
            raise ConfigError(f"Invalid log level: {self.log_level}")


@dataclass
class Config:
    """
    Complete application configuration.

    Attributes:
        engine (EngineConfig): Script language and location
        ui (UIConfig): Web server and TUI settings
        logging (LoggingConfig): Log destinations and level
        config_dir (str): Directory config.yaml is read from (set at load)
    """
    app_name: str = "ELIZA"
    version: str = "1.0.0"
    debug: bool = False

    engine: EngineConfig = field(default_factory=EngineConfig)
    ui: UIConfig = field(default_factory=UIConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    config_dir: str = ""

    def validate(self) -> None:
        """
        Validate every section.

        Raises:
            ConfigError: On the first invalid value found
        """
        for section in (self.engine, self.ui, self.logging):
            section.validate()

    def to_dict(self) -> Dict[str, Any]:
        """Serializable form, as written by save_config()."""
        return {
            "app_name": self.app_name,
            "version": self.version,
            "debug": self.debug,
            "engine": asdict(self.engine),
            "ui": asdict(self.ui),
            "logging": asdict(self.logging),
        }


def _to_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


# ELIZA_* variable -> (section, attribute, converter)
ENV_OVERRIDES: Dict[str, Tuple[str, str, Callable[[str], Any]]] = {
    "ELIZA_ENGINE_LANGUAGE": ("engine", "language", str),
    "ELIZA_ENGINE_DATA_DIR": ("engine", "data_dir", str),
    "ELIZA_ENGINE_DEFAULT_REPLY": ("engine", "default_reply", str),
    "ELIZA_UI_WEB_HOST": ("ui", "web_host", str),
    "ELIZA_UI_WEB_PORT": ("ui", "web_port", int),
    "ELIZA_UI_WEB_DEBUG": ("ui", "web_debug", _to_bool),
    "ELIZA_UI_MAX_SESSIONS": ("ui", "max_sessions", int),
    "ELIZA_LOG_DIR": ("logging", "log_dir", str),
    "ELIZA_LOG_LEVEL": ("logging", "log_level", str),
    "ELIZA_LOG_JSON": ("logging", "json_format", _to_bool),
}


def get_default_config_dir() -> Path:
    """
    Directory holding config.yaml.

    ELIZA_CONFIG_DIR if set, else $XDG_CONFIG_HOME/eliza, else
    ~/.config/eliza.
    """
    explicit = os.environ.get("ELIZA_CONFIG_DIR")
    if explicit:
        return Path(explicit).expanduser()

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "eliza"

    return Path.home() / ".config" / "eliza"


def load_config(config_path: Optional[str] = None, load_env: bool = True) -> Config:
    """
    Build the configuration from defaults, file and environment.

    Without config_path the default directory's config.yaml is used
    if it exists. An explicit config_path must exist.

    Args:
        config_path: YAML file to read
        load_env: Apply ELIZA_* environment overrides

    Returns:
        Validated Config

    Raises:
        ConfigError: If the file is missing (explicit path only),
            unreadable, not a mapping, or any value is invalid
    """
    config = Config(config_dir=str(get_default_config_dir()))

    if config_path:
        yaml_path = Path(config_path).expanduser()
        if not yaml_path.exists():
            raise ConfigError("Config file not found", {"path": str(yaml_path)})
    else:
        yaml_path = Path(config.config_dir) / "config.yaml"

    if yaml_path.exists():
        _apply_yaml_config(config, _read_config_file(yaml_path))

    if load_env:
        _apply_env_overrides(config)

    config.validate()
    return config


def _read_config_file(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in config file: {e}", {"path": str(path)})
    except OSError as e:
        raise ConfigError(f"Cannot read config file: {e}", {"path": str(path)})

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError("Config file must contain a mapping", {"path": str(path)})
    return data


def _apply_yaml_config(config: Config, data: Dict[str, Any]) -> None:
    """Copy known keys from a parsed config file onto config; unknown keys are ignored."""
    for key in ("app_name", "version", "debug"):
        if key in data:
            setattr(config, key, data[key])

    for name in ("engine", "ui", "logging"):
        values = data.get(name)
        if values is None:
            continue
        if not isinstance(values, dict):
            raise ConfigError(f"Config section '{name}' must be a mapping")

        section = getattr(config, name)
        for key, value in values.items():
            if hasattr(section, key):
                setattr(section, key, value)


def _apply_env_overrides(config: Config) -> None:
    """Apply ELIZA_* environment variables listed in ENV_OVERRIDES."""
    for env_var, (section, key, converter) in ENV_OVERRIDES.items():
        raw = os.environ.get(env_var)
        if raw is None:
            continue

        try:
            value = converter(raw)
        except ValueError:
            raise ConfigError(f"Invalid value for {env_var}: {raw!r}")

        setattr(getattr(config, section), key, value)


def save_config(config: Config, config_path: Optional[str] = None) -> None:
    """
    Write config as YAML.

    Args:
        config: Configuration to write
        config_path: Target file; defaults to config.yaml in config.config_dir

    Raises:
        ConfigError: If the file cannot be written
    """
    yaml_path = Path(config_path) if config_path else Path(config.config_dir) / "config.yaml"

    try:
        yaml_path.parent.mkdir(parents=True, exist_ok=True)
        with open(yaml_path, "w", encoding="utf-8") as f:
            yaml.safe_dump(config.to_dict(), f, default_flow_style=False,
                           sort_keys=False, allow_unicode=True)
    except OSError as e:
        raise ConfigError(f"Cannot write config file: {e}", {"path": str(yaml_path)})
