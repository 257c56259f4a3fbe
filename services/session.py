"""
Session State - Per-conversation mutable state
==============================================

Everything that changes while a conversation runs lives here rather
than on the loaded script:
- The insult counter that drives the parity error
- The memory queue filled by memory directives
- The round-robin cursor of every decomposition unit
"""

from collections import deque
from typing import Iterator, List, Optional, Sequence

from rules.models import INSULT_THRESHOLD, Rule


class MemoryQueue:
    """
    Unbounded FIFO of deferred responses.

    Entries are stored by memory directives and recalled, oldest
    first, on turns where no rule replies directly.
    """

    def __init__(self):
        self._entries = deque()

    def store(self, entry: str) -> None:
        self._entries.append(entry)

    def recall(self) -> Optional[str]:
        """Pop the oldest entry, or None when empty."""
        if not self._entries:
            return None
        return self._entries.popleft()

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __repr__(self) -> str:
        return f"MemoryQueue({list(self._entries)!r})"


class CursorState:
    """
    Round-robin positions for one conversation.

    Holds an array of indices parallel to the rule set:
    ``positions[rule_index][unit_index]`` is the next reassembly to
    use for that unit. Invariant: 0 <= position < len(reassemblies).
    """

    def __init__(self, rules: Sequence[Rule]):
        self._rules = rules
        self.positions: List[List[int]] = [[0] * len(rule.units) for rule in rules]

    def next_reassembly(self, rule_index: int, unit_index: int) -> str:
        """
        Return the unit's current reassembly and advance its cursor.

        Args:
            rule_index: Index of the rule in the rule set
            unit_index: Index of the unit within the rule

        Returns:
            The selected raw template
        """
        reassemblies = self._rules[rule_index].units[unit_index].reassemblies
        position = self.positions[rule_index][unit_index]
        self.positions[rule_index][unit_index] = (position + 1) % len(reassemblies)
        return reassemblies[position]

    def reset(self) -> None:
        for row in self.positions:
            for i in range(len(row)):
                row[i] = 0


class SessionState:
    """
    State of a single conversation.

    The session moves from Normal to Terminated once `insult_count`
    reaches the threshold and never moves back, short of `reset()`
    which starts a fresh conversation.

    Attributes:
        insult_count (int): Insult-flagged replies produced so far
        memory (MemoryQueue): Deferred responses
        cursors (CursorState): Round-robin positions
        threshold (int): Insults that terminate the session
    """

    def __init__(self, rules: Sequence[Rule], threshold: int = INSULT_THRESHOLD):
        self.insult_count = 0
        self.memory = MemoryQueue()
        self.cursors = CursorState(rules)
        self.threshold = threshold

    @property
    def terminated(self) -> bool:
        return self.insult_count >= self.threshold

    def record_insult(self) -> bool:
        """
        Count one insult-flagged reply.

        Returns:
            True if this insult terminated the session
        """
        if self.terminated:
            return False
        self.insult_count += 1
        return self.terminated

    def reset(self) -> None:
        self.insult_count = 0
        self.memory.clear()
        self.cursors.reset()
