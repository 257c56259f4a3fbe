"""
ELIZA - A Rogerian Psychotherapist Simulation
=============================================

A rule-driven conversational responder modeled on Joseph Weizenbaum's
1966 ELIZA program, with three front ends:
1. Console conversation
2. Textual terminal UI
3. FastAPI web UI

License: MIT
Version: 1.0.0
"""

__version__ = "1.0.0"
__license__ = "MIT"
