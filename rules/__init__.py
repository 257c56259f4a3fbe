"""
Rules Module - ELIZA response engine
====================================

This module provides the rule-based response system:
- Input normalization and accent stripping
- Keyword rules with priorities and insult flags
- Decomposition patterns with round-robin reassembly
- Pronoun reflection
- YAML script loading
"""

from .engine import ElizaEngine, DEFAULT_REPLY
from .loader import Script, ScriptMessages, load_script, available_languages
from .models import (
    Rule,
    RuleSet,
    DecompositionUnit,
    ApplyOutcome,
    ApplyResult,
    FALLBACK_KEYWORD,
    INSULT_THRESHOLD,
    PARITY_ERROR,
)
from .preprocess import normalize, strip_accents
from .reflection import ReflectionTable
from .templates import Template, MEMORY_PREFIX

__all__ = [
    "ElizaEngine",
    "DEFAULT_REPLY",
    "Script",
    "ScriptMessages",
    "load_script",
    "available_languages",
    "Rule",
    "RuleSet",
    "DecompositionUnit",
    "ApplyOutcome",
    "ApplyResult",
    "FALLBACK_KEYWORD",
    "INSULT_THRESHOLD",
    "PARITY_ERROR",
    "normalize",
    "strip_accents",
    "ReflectionTable",
    "Template",
    "MEMORY_PREFIX",
]
