"""
Response Engine - Keyword selection and decomposition/reassembly
================================================================

This module implements the core of ELIZA: it picks the rules whose
keyword occurs in the input, tries them by descending priority, and
turns the first decomposition pattern that matches into a reply.

The engine itself holds only immutable, shareable data (the rule set
and the reflection table). Everything a turn mutates is passed in as
the session.
"""

from typing import TYPE_CHECKING, Optional

from core.logging import get_logger
from .models import ApplyOutcome, ApplyResult, PARITY_ERROR, RuleSet
from .preprocess import normalize
from .reflection import ReflectionTable
from .templates import Template

if TYPE_CHECKING:
    from services.session import SessionState

logger = get_logger("rules.engine")

DEFAULT_REPLY = "Please go on."


class ElizaEngine:
    """
    Rule-driven response generator.

    Example:
        engine = ElizaEngine(rule_set, reflections)
        session = SessionState(rule_set)

        engine.select_response("I am tired", session)
        # -> "How long have you been tired?"
    """

    def __init__(
        self,
        rule_set: RuleSet,
        reflections: Optional[ReflectionTable] = None,
        default_reply: str = DEFAULT_REPLY
    ):
        """
        Initialize the engine.

        Args:
            rule_set: Loaded script rules
            reflections: Pronoun reflection table
            default_reply: Reply used when the script has no fallback rule
        """
        self.rule_set = rule_set
        self.reflections = reflections if reflections is not None else ReflectionTable()
        self.default_reply = default_reply

    def select_response(self, text: str, session: "SessionState") -> str:
        """
        Produce the reply for one turn.

        Candidate rules are tried by descending priority (script order
        among equals). A rule that only stores a memory does not end
        the search. If no rule replies, the oldest memory is recalled,
        unless one was stored during this very turn; failing that the
        fallback rule answers.

        Args:
            text: Raw user input
            session: Conversation state, mutated in place

        Returns:
            Reply text
        """
        normalized = normalize(text)
        stored_memory = False

        for rule_index, rule in self.rule_set.candidates(normalized):
            result = self.apply(rule_index, normalized, session)

            if result.outcome is ApplyOutcome.MEMORY_STORED:
                stored_memory = True
                logger.debug(f"Rule '{rule.keyword}' stored a memory, continuing")
                continue

            if result.outcome is ApplyOutcome.NO_MATCH:
                continue

            logger.debug(
                f"Rule '{rule.keyword}' (priority {rule.priority}) "
                f"replied with pattern #{result.unit_index}"
            )

            if rule.insult and session.record_insult():
                logger.warning(
                    f"Parity error after {session.insult_count} insults "
                    f"(last keyword '{rule.keyword}')"
                )
                return PARITY_ERROR

            return result.text

        if not stored_memory:
            recalled = session.memory.recall()
            if recalled is not None:
                logger.debug("No rule replied, recalling memory")
                return recalled

        return self._fallback(normalized, session)

    def apply(self, rule_index: int, text: str, session: "SessionState") -> ApplyResult:
        """
        Try one rule's decomposition units against normalized text.

        Units are tried in script order; the first whose pattern is
        found anywhere in the text is used, and its cursor advances.

        Args:
            rule_index: Index of the rule in the rule set
            text: Normalized input
            session: Conversation state (cursors and memory)

        Returns:
            ApplyResult with REPLY, MEMORY_STORED or NO_MATCH
        """
        rule = self.rule_set[rule_index]

        for unit_index, unit in enumerate(rule.units):
            match = unit.regex.search(text)
            if match is None:
                continue

            template = Template.parse(session.cursors.next_reassembly(rule_index, unit_index))
            filled = template.render(match, self.reflections.reflect)

            if template.memory:
                session.memory.store(filled)
                return ApplyResult.memory_stored(filled, unit_index)

            return ApplyResult.reply(filled, unit_index)

        return ApplyResult.no_match()

    def _fallback(self, text: str, session: "SessionState") -> str:
        """Reply from the fallback rule's first unit, round-robin."""
        rule_index = self.rule_set.fallback_index
        if rule_index is None:
            return self.default_reply

        unit = self.rule_set[rule_index].units[0]
        template = Template.parse(session.cursors.next_reassembly(rule_index, 0))
        return template.render(unit.regex.search(text), self.reflections.reflect)
