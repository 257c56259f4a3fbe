"""
Services Module - Conversation services for ELIZA
=================================================

This module provides the main services:
- Session State: per-conversation memory, insults and cursors
- Conversation: one session bound to a loaded script
- Chat Service: many concurrent conversations for the UIs
"""

from .session import SessionState, MemoryQueue, CursorState
from .conversation import Conversation, create_conversation
from .chat import ChatService, ChatSession, ChatReply

__all__ = [
    "SessionState",
    "MemoryQueue",
    "CursorState",
    "Conversation",
    "create_conversation",
    "ChatService",
    "ChatSession",
    "ChatReply",
]
