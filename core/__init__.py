"""
Core Module - Settings, logging and errors
==========================================

Shared by the engine, the services and every front end:
- config: layered YAML/environment settings
- logging: "eliza" logger tree with per-session context
- exceptions: the ElizaError hierarchy
"""

from .config import Config, load_config, save_config
from .exceptions import (
    ElizaError,
    ConfigError,
    RuleSetError,
    SessionNotFoundError,
    SessionTerminatedError,
)
from .logging import setup_logging, get_logger, log_context

__all__ = [
    "Config",
    "load_config",
    "save_config",
    "ElizaError",
    "ConfigError",
    "RuleSetError",
    "SessionNotFoundError",
    "SessionTerminatedError",
    "setup_logging",
    "get_logger",
    "log_context",
]
