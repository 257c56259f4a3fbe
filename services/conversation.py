"""
Conversation - One ELIZA session over a loaded script
=====================================================

Binds the shared, read-only engine to a session of its own. This is
the object the shells talk to: one `respond()` call per user turn,
`has_parity_error()` to know when to stop.
"""

import random
from typing import Optional

from core.logging import get_logger
from rules.engine import ElizaEngine, DEFAULT_REPLY
from rules.loader import Script, load_script
from rules.models import PARITY_ERROR
from rules.preprocess import normalize
from .session import SessionState

logger = get_logger("services.conversation")


class Conversation:
    """
    A single conversation with ELIZA.

    Example:
        conversation = create_conversation("us")
        print(conversation.greet())

        reply = conversation.respond("I am tired")
        if conversation.has_parity_error():
            ...  # stop the conversation
    """

    def __init__(
        self,
        script: Script,
        default_reply: str = DEFAULT_REPLY,
        rng: Optional[random.Random] = None
    ):
        """
        Initialize a conversation.

        Args:
            script: Loaded language script
            default_reply: Reply used when a turn cannot be answered
            rng: Random source for greetings (seedable for tests)
        """
        self.script = script
        self.engine = ElizaEngine(script.rules, script.reflections, default_reply)
        self.session = SessionState(script.rules)
        self._rng = rng or random.Random()

    @property
    def language(self) -> str:
        return self.script.language

    @property
    def messages(self):
        return self.script.messages

    def greet(self) -> str:
        """Pick a random opening line."""
        return self._rng.choice(self.script.messages.greetings)

    def is_quit(self, text: str) -> bool:
        """Whether the input is one of the script's quit words."""
        cleaned = normalize(text)
        return any(cleaned == normalize(word) for word in self.script.messages.quit_words)

    def respond(self, text: str) -> str:
        """
        Process one turn.

        Never raises: a failure inside the engine is logged and
        answered with the default reply. Once the session has hit the
        parity error, every further call returns PARITY_ERROR without
        touching the rules.

        Args:
            text: Raw user input

        Returns:
            ELIZA's reply
        """
        if self.session.terminated:
            return PARITY_ERROR

        try:
            return self.engine.select_response(text, self.session)
        except Exception as e:
            logger.error(f"Failed to process turn: {e}", exc_info=True)
            return self.engine.default_reply

    def has_parity_error(self) -> bool:
        return self.session.terminated

    def reset(self) -> None:
        """Start over: clear memory, insults and round-robin positions."""
        self.session.reset()
        logger.info("Conversation reset")


def create_conversation(
    language: str = "us",
    data_dir: Optional[str] = None,
    default_reply: str = DEFAULT_REPLY,
    rng: Optional[random.Random] = None
) -> Conversation:
    """
    Create a conversation for a language.

    Raises:
        RuleSetError: If the language's script cannot be loaded
    """
    return Conversation(load_script(language, data_dir), default_reply, rng)
