"""
Rule Models - Immutable script data structures
==============================================

A script is an ordered RuleSet. Each Rule is triggered by a keyword
and owns an ordered list of DecompositionUnits; each unit pairs a
regular expression with the reassembly templates used when it matches.

None of these objects carry mutable state. The round-robin position of
each unit lives in the session (see services.session.CursorState), so
one loaded RuleSet can serve any number of conversations.
"""

import re
from collections import abc
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

from core.exceptions import RuleSetError
from .preprocess import normalize_keyword, strip_accents
from .templates import is_memory_directive

FALLBACK_KEYWORD = "@none"
INSULT_THRESHOLD = 4
PARITY_ERROR = "PARITY ERROR!!! PARITY ERROR!!! SESSION TERMINATED."


class ApplyOutcome(Enum):
    """What trying one rule against the input produced."""
    REPLY = "reply"
    MEMORY_STORED = "memory_stored"
    NO_MATCH = "no_match"


@dataclass(frozen=True)
class ApplyResult:
    """
    Result of applying a rule's decomposition units to the input.

    Attributes:
        outcome (ApplyOutcome): Which of the three outcomes occurred
        text (str): The reply for REPLY, the enqueued entry for
            MEMORY_STORED, None for NO_MATCH
        unit_index (int): Index of the unit that matched, if any
    """
    outcome: ApplyOutcome
    text: Optional[str] = None
    unit_index: Optional[int] = None

    @classmethod
    def reply(cls, text: str, unit_index: int) -> "ApplyResult":
        return cls(ApplyOutcome.REPLY, text, unit_index)

    @classmethod
    def memory_stored(cls, entry: str, unit_index: int) -> "ApplyResult":
        return cls(ApplyOutcome.MEMORY_STORED, entry, unit_index)

    @classmethod
    def no_match(cls) -> "ApplyResult":
        return cls(ApplyOutcome.NO_MATCH)


@dataclass(frozen=True)
class DecompositionUnit:
    """
    A decomposition pattern paired with its reassembly templates.

    The pattern is accent-stripped and compiled case-insensitively
    once, at construction.

    Attributes:
        pattern (str): Regular expression as written in the script
        reassemblies (tuple): Response templates, used round-robin
    """
    pattern: str
    reassemblies: Tuple[str, ...]
    regex: re.Pattern = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        if not isinstance(self.pattern, str):
            raise RuleSetError("Decomposition pattern must be a string",
                               {"pattern": self.pattern})

        reassemblies = tuple(self.reassemblies)
        if not reassemblies:
            raise RuleSetError("Decomposition pattern has no reassemblies",
                               {"pattern": self.pattern})
        for template in reassemblies:
            if not isinstance(template, str):
                raise RuleSetError("Reassembly must be a string",
                                   {"pattern": self.pattern, "reassembly": template})

        try:
            regex = re.compile(strip_accents(self.pattern), re.IGNORECASE)
        except re.error as e:
            raise RuleSetError(f"Invalid decomposition pattern: {e}",
                               {"pattern": self.pattern})

        object.__setattr__(self, "reassemblies", reassemblies)
        object.__setattr__(self, "regex", regex)

    def to_dict(self) -> Dict[str, Any]:
        return {"decomposition": self.pattern, "reassemblies": list(self.reassemblies)}


@dataclass(frozen=True)
class Rule:
    """
    A keyword rule.

    Attributes:
        keyword (str): Substring that makes the rule eligible, or
            FALLBACK_KEYWORD for the no-match fallback rule
        priority (int): Higher priorities are tried first
        insult (bool): Replies from this rule count towards the
            parity error
        units (tuple): Decomposition units, tried in order
    """
    keyword: str
    priority: int
    insult: bool = False
    units: Tuple[DecompositionUnit, ...] = ()
    normalized_keyword: str = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        if not isinstance(self.keyword, str) or not self.keyword.strip():
            raise RuleSetError("Rule keyword must be a non-empty string",
                               {"keyword": self.keyword})
        if isinstance(self.priority, bool) or not isinstance(self.priority, int):
            raise RuleSetError("Rule priority must be an integer",
                               {"keyword": self.keyword, "priority": self.priority})

        units = tuple(self.units)
        if not units:
            raise RuleSetError("Rule has no decomposition patterns",
                               {"keyword": self.keyword})

        object.__setattr__(self, "insult", bool(self.insult))
        object.__setattr__(self, "units", units)
        object.__setattr__(self, "normalized_keyword", normalize_keyword(self.keyword))

    @property
    def is_fallback(self) -> bool:
        return self.keyword == FALLBACK_KEYWORD

    def to_dict(self) -> Dict[str, Any]:
        """Convert rule to dictionary (script file layout)."""
        return {
            "keyword": self.keyword,
            "priority": self.priority,
            "insult": self.insult,
            "patterns": [unit.to_dict() for unit in self.units],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Rule":
        """
        Create rule from a script entry.

        Raises:
            RuleSetError: If the entry is malformed
        """
        if not isinstance(data, dict):
            raise RuleSetError("Rule entry must be a mapping", {"entry": data})

        keyword = data.get("keyword")
        patterns = data.get("patterns")
        if not isinstance(patterns, list):
            raise RuleSetError("Rule 'patterns' must be a list", {"keyword": keyword})

        units = []
        for entry in patterns:
            if not isinstance(entry, dict):
                raise RuleSetError("Pattern entry must be a mapping",
                                   {"keyword": keyword, "entry": entry})
            reassemblies = entry.get("reassemblies")
            if not isinstance(reassemblies, list):
                raise RuleSetError("Pattern 'reassemblies' must be a list",
                                   {"keyword": keyword,
                                    "pattern": entry.get("decomposition")})
            units.append(DecompositionUnit(entry.get("decomposition"), tuple(reassemblies)))

        return cls(
            keyword=keyword,
            priority=data.get("priority"),
            insult=data.get("insult") is True,
            units=tuple(units),
        )


class RuleSet(abc.Sequence):
    """
    Ordered, immutable collection of rules.

    Order is the script order and breaks priority ties. At most one
    rule may use the fallback keyword; it is kept out of keyword
    matching and exposed as `fallback`.
    """

    def __init__(self, rules: Sequence[Rule]):
        self._rules: Tuple[Rule, ...] = tuple(rules)

        fallbacks = [i for i, rule in enumerate(self._rules) if rule.is_fallback]
        if len(fallbacks) > 1:
            raise RuleSetError("Script defines more than one fallback rule",
                               {"count": len(fallbacks)})

        self.fallback_index: Optional[int] = fallbacks[0] if fallbacks else None
        if self.fallback is not None:
            for unit in self.fallback.units:
                if any(is_memory_directive(t) for t in unit.reassemblies):
                    raise RuleSetError("Fallback rule cannot use memory directives")

    def __getitem__(self, index):
        return self._rules[index]

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules)

    def __repr__(self) -> str:
        return f"RuleSet({len(self)} rules)"

    @property
    def fallback(self) -> Optional[Rule]:
        if self.fallback_index is None:
            return None
        return self._rules[self.fallback_index]

    def candidates(self, text: str) -> List[Tuple[int, Rule]]:
        """
        Rules whose keyword occurs in normalized text.

        Returns (index, rule) pairs sorted by descending priority.
        The sort is stable, so equal priorities keep script order.
        """
        matching = [
            (index, rule) for index, rule in enumerate(self._rules)
            if not rule.is_fallback and rule.normalized_keyword in text
        ]
        matching.sort(key=lambda pair: pair[1].priority, reverse=True)
        return matching

    def to_dict(self) -> Dict[str, Any]:
        return {"rules": [rule.to_dict() for rule in self._rules]}

    @classmethod
    def from_dicts(cls, entries: Sequence[Dict[str, Any]]) -> "RuleSet":
        return cls([Rule.from_dict(entry) for entry in entries])
