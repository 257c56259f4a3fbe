"""
Chat Service - Many concurrent conversations
============================================

Keeps one Conversation per chat session for the web and terminal
shells. Each session has its own memory, insult counter and
round-robin cursors; the loaded scripts are shared read-only.
"""

import random
import threading
import time
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from core.config import Config
from core.exceptions import ConfigError, SessionNotFoundError, SessionTerminatedError
from core.logging import get_logger, log_context
from rules.loader import available_languages
from .conversation import Conversation, create_conversation

logger = get_logger("services.chat")


@dataclass
class ChatSession:
    """
    A conversation tracked by the chat service.

    Attributes:
        session_id (str): Opaque session identifier
        conversation (Conversation): The engine session
        greeting (str): Opening line shown to the user
        ended (bool): The user typed a quit word
        turns (int): Number of user turns processed
    """
    session_id: str
    conversation: Conversation
    greeting: str
    ended: bool = False
    turns: int = 0
    created_at: datetime = field(default_factory=datetime.now)
    last_active: datetime = field(default_factory=datetime.now)

    @property
    def language(self) -> str:
        return self.conversation.language

    @property
    def terminated(self) -> bool:
        return self.conversation.has_parity_error()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "language": self.language,
            "greeting": self.greeting,
            "ended": self.ended,
            "terminated": self.terminated,
            "turns": self.turns,
            "created_at": self.created_at.isoformat(),
            "last_active": self.last_active.isoformat(),
        }


@dataclass
class ChatReply:
    """
    Result of one chat turn.

    Attributes:
        session_id (str): Session the turn belongs to
        reply (str): ELIZA's answer
        terminated (bool): The turn caused a parity error
        ended (bool): The user quit; no further turns are accepted
        latency_ms (int): Processing time
    """
    session_id: str
    reply: str
    terminated: bool = False
    ended: bool = False
    latency_ms: int = 0


class ChatService:
    """
    Session registry and turn dispatcher.

    Sessions are kept in least-recently-used order; when more than
    `max_sessions` exist, the least recently used one is dropped.

    Example:
        service = ChatService(config)
        session = service.start_session("fr")
        result = service.send(session.session_id, "Je suis triste")
    """

    def __init__(self, config: Config, rng: Optional[random.Random] = None):
        """
        Initialize the chat service.

        Args:
            config: Application configuration
            rng: Random source for greetings
        """
        self.config = config
        self._rng = rng or random.Random()
        self._sessions: "OrderedDict[str, ChatSession]" = OrderedDict()
        self._lock = threading.Lock()

    @property
    def session_count(self) -> int:
        return len(self._sessions)

    def languages(self) -> List[str]:
        return available_languages(self.config.engine.data_dir or None)

    def start_session(self, language: Optional[str] = None) -> ChatSession:
        """
        Open a new conversation.

        Args:
            language: Script language; defaults to the configured one

        Returns:
            The new ChatSession, including its greeting

        Raises:
            ConfigError: If the language has no script
        """
        language = language or self.config.engine.language
        if language not in self.languages():
            raise ConfigError(f"Unsupported language: {language}",
                              {"supported": self.languages()})

        conversation = create_conversation(
            language,
            data_dir=self.config.engine.data_dir or None,
            default_reply=self.config.engine.default_reply,
            rng=self._rng,
        )
        session = ChatSession(
            session_id=uuid.uuid4().hex,
            conversation=conversation,
            greeting=conversation.greet(),
        )

        with self._lock:
            self._sessions[session.session_id] = session
            while len(self._sessions) > self.config.ui.max_sessions:
                evicted, _ = self._sessions.popitem(last=False)
                logger.info(f"Evicted idle session {evicted}")

        logger.info(f"Started session {session.session_id} ({language})")
        return session

    def get(self, session_id: str) -> ChatSession:
        """
        Look up a session.

        Raises:
            SessionNotFoundError: If the id is unknown
        """
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                raise SessionNotFoundError(session_id)
            self._sessions.move_to_end(session_id)
            return session

    def send(self, session_id: str, text: str) -> ChatReply:
        """
        Process one user turn.

        Args:
            session_id: Target session
            text: User input

        Returns:
            ChatReply

        Raises:
            SessionNotFoundError: If the id is unknown
            SessionTerminatedError: If the conversation already ended
        """
        session = self.get(session_id)

        if session.terminated:
            raise SessionTerminatedError(session_id, "parity_error")
        if session.ended:
            raise SessionTerminatedError(session_id, "quit")

        start_time = time.perf_counter()

        with log_context(session=session_id, language=session.language):
            session.turns += 1
            session.last_active = datetime.now()

            if session.conversation.is_quit(text):
                session.ended = True
                logger.info("User quit")
                return ChatReply(
                    session_id=session_id,
                    reply=session.conversation.messages.goodbye,
                    ended=True,
                    latency_ms=int((time.perf_counter() - start_time) * 1000),
                )

            reply = session.conversation.respond(text)
            terminated = session.terminated
            if terminated:
                logger.warning("Session terminated by parity error")

        return ChatReply(
            session_id=session_id,
            reply=reply,
            terminated=terminated,
            ended=terminated,
            latency_ms=int((time.perf_counter() - start_time) * 1000),
        )

    def reset(self, session_id: str) -> ChatSession:
        """
        Restart a conversation in place with a fresh greeting.

        Raises:
            SessionNotFoundError: If the id is unknown
        """
        session = self.get(session_id)
        with log_context(session=session_id, language=session.language):
            session.conversation.reset()
        session.ended = False
        session.turns = 0
        session.greeting = session.conversation.greet()
        session.last_active = datetime.now()
        return session

    def end(self, session_id: str) -> None:
        """
        Forget a session.

        Raises:
            SessionNotFoundError: If the id is unknown
        """
        with self._lock:
            if self._sessions.pop(session_id, None) is None:
                raise SessionNotFoundError(session_id)
        logger.info(f"Ended session {session_id}")
