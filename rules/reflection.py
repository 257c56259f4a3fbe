"""
Reflection Table - Pronoun reflection for captured text
=======================================================

Turns the user's point of view into ELIZA's before captured text is
echoed back: "my job" becomes "your job", "you to help me" becomes
"I to help you".
"""

from collections import abc
from types import MappingProxyType
from typing import Dict, Iterator, Mapping

from .preprocess import strip_accents


class ReflectionTable(abc.Mapping):
    """
    Immutable word-to-word substitution table.

    Keys are stored lowercased and accent-stripped so that lookups on
    normalized text hit regardless of how the script spelled them.
    Values are kept exactly as written.

    Example:
        table = ReflectionTable({"i": "you", "my": "your"})
        table.reflect("My car")  # -> "your car"
    """

    def __init__(self, mapping: Mapping[str, str] = None):
        entries: Dict[str, str] = {}
        for word, substitute in (mapping or {}).items():
            entries[strip_accents(str(word)).lower()] = str(substitute)
        self._entries = MappingProxyType(entries)

    def __getitem__(self, word: str) -> str:
        return self._entries[word]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"ReflectionTable({len(self)} entries)"

    def reflect(self, text: str) -> str:
        """
        Reflect each whitespace-separated token of text.

        Tokens found in the table are replaced by their substitute;
        other tokens pass through unchanged. Tokens are rejoined with
        single spaces.

        Args:
            text: Captured text

        Returns:
            Reflected text
        """
        words = []
        for token in text.split():
            key = strip_accents(token).lower()
            words.append(self._entries.get(key, token))
        return " ".join(words)
