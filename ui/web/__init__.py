"""
Web UI Module - Browser chat with ELIZA
=======================================

FastAPI application serving the chat page and a small JSON API;
one server-side session per browser tab.
"""

from .app import create_app, run_app
from .routes import router

__all__ = [
    "create_app",
    "run_app",
    "router",
]
