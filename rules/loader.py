"""
Script Loader - YAML rules, reflections and messages
====================================================

A script is the set of files that make up one language:

    rules_<lang>.yaml        keyword rules and their patterns
    reflections_<lang>.yaml  pronoun reflection table
    messages_<lang>.yaml     intro, greetings and other shell strings

Loading either succeeds completely or raises RuleSetError; an engine
is never built from a partially loaded script. Loaded scripts are
cached for the lifetime of the process and are read-only.
"""

import threading
import yaml
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from core.exceptions import RuleSetError
from core.logging import get_logger
from .models import RuleSet
from .reflection import ReflectionTable

logger = get_logger("rules.loader")

BUNDLED_DATA_DIR = Path(__file__).parent / "data"


@dataclass(frozen=True)
class ScriptMessages:
    """
    Localized strings used by the conversation shells.

    Attributes:
        intro (str): Banner shown before the first greeting
        greetings (tuple): Opening lines, one picked at random
        goodbye (str): Reply to a quit word
        prompt (str): Input prompt label
        quit_words (tuple): Inputs that end the conversation
        crash (tuple): Lines shown after a parity error
        reboot (str): Label of the restart action after a crash
    """
    greetings: Tuple[str, ...]
    intro: str = ""
    goodbye: str = "Goodbye. Thank you for talking with me."
    prompt: str = "You:"
    quit_words: Tuple[str, ...] = ("quit", "bye", "exit")
    crash: Tuple[str, ...] = field(default_factory=tuple)
    reboot: str = "Reboot"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScriptMessages":
        greetings = data.get("greetings")
        if not isinstance(greetings, list) or not greetings:
            raise RuleSetError("Messages must define a non-empty 'greetings' list")

        kwargs: Dict[str, Any] = {"greetings": tuple(str(g) for g in greetings)}
        for key in ("intro", "goodbye", "prompt", "reboot"):
            if data.get(key) is not None:
                kwargs[key] = str(data[key])
        for key in ("quit_words", "crash"):
            if data.get(key) is not None:
                if not isinstance(data[key], list):
                    raise RuleSetError(f"Messages '{key}' must be a list")
                kwargs[key] = tuple(str(item) for item in data[key])

        return cls(**kwargs)


@dataclass(frozen=True)
class Script:
    """A fully loaded language script."""
    language: str
    rules: RuleSet
    reflections: ReflectionTable
    messages: ScriptMessages


def _read_yaml(path: Path, root_key: str) -> Any:
    """Read a YAML file and return the value under root_key."""
    if not path.exists():
        raise RuleSetError("Script file not found", {"path": str(path)})

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise RuleSetError(f"Failed to parse script file: {e}", {"path": str(path)})
    except OSError as e:
        raise RuleSetError(f"Failed to read script file: {e}", {"path": str(path)})

    if not isinstance(data, dict) or root_key not in data:
        raise RuleSetError(f"Script file has no '{root_key}' section", {"path": str(path)})

    return data[root_key]


def load_rule_set(path: Path, require_fallback: bool = True) -> RuleSet:
    """
    Load and validate a rules file.

    Args:
        path: Path to rules_<lang>.yaml
        require_fallback: Reject scripts without an @none rule

    Returns:
        RuleSet in file order

    Raises:
        RuleSetError: If the file is missing or any rule is malformed
    """
    entries = _read_yaml(Path(path), "rules")
    if not isinstance(entries, list) or not entries:
        raise RuleSetError("'rules' must be a non-empty list", {"path": str(path)})

    try:
        rule_set = RuleSet.from_dicts(entries)
    except RuleSetError as e:
        e.details.setdefault("path", str(path))
        raise

    if require_fallback and rule_set.fallback is None:
        raise RuleSetError("Script has no fallback (@none) rule", {"path": str(path)})

    logger.info(f"Loaded {len(rule_set)} rules from {path}")
    return rule_set


def load_reflections(path: Path) -> ReflectionTable:
    """
    Load a reflections file.

    Raises:
        RuleSetError: If the file is missing or not a word mapping
    """
    raw = _read_yaml(Path(path), "reflections")
    if not isinstance(raw, dict):
        raise RuleSetError("'reflections' must be a mapping", {"path": str(path)})

    for word, substitute in raw.items():
        if not isinstance(substitute, str):
            raise RuleSetError("Reflection substitute must be a string",
                               {"path": str(path), "word": word})

    table = ReflectionTable(raw)
    logger.info(f"Loaded {len(table)} reflections from {path}")
    return table


def load_messages(path: Path) -> ScriptMessages:
    """Load a messages file."""
    path = Path(path)
    if not path.exists():
        raise RuleSetError("Script file not found", {"path": str(path)})

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise RuleSetError(f"Failed to parse script file: {e}", {"path": str(path)})

    if not isinstance(data, dict):
        raise RuleSetError("Messages file must contain a mapping", {"path": str(path)})

    return ScriptMessages.from_dict(data)


def available_languages(data_dir: Optional[str] = None) -> List[str]:
    """Languages that have a rules file in the script directory."""
    directory = Path(data_dir).expanduser() if data_dir else BUNDLED_DATA_DIR
    return sorted(p.stem[len("rules_"):] for p in directory.glob("rules_*.yaml"))


_cache: Dict[Tuple[str, str], Script] = {}
_cache_lock = threading.Lock()


def load_script(language: str = "us", data_dir: Optional[str] = None) -> Script:
    """
    Load (or return the cached) script for a language.

    Args:
        language: Language code, e.g. "us" or "fr"
        data_dir: Directory holding the script files; defaults to
            the scripts bundled with the package

    Returns:
        Script

    Raises:
        RuleSetError: If any of the three files is missing or invalid
    """
    directory = Path(data_dir).expanduser() if data_dir else BUNDLED_DATA_DIR
    key = (language, str(directory.resolve()))

    with _cache_lock:
        if key not in _cache:
            _cache[key] = Script(
                language=language,
                rules=load_rule_set(directory / f"rules_{language}.yaml"),
                reflections=load_reflections(directory / f"reflections_{language}.yaml"),
                messages=load_messages(directory / f"messages_{language}.yaml"),
            )
        return _cache[key]


def clear_script_cache() -> None:
    """Forget loaded scripts (used after editing script files)."""
    with _cache_lock:
        _cache.clear()
