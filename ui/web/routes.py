"""
Web Routes - API endpoints and page routes
=========================================

This module defines all web routes for the ELIZA chat interface.
Every browser tab gets its own session, so memory, insults and
round-robin positions are never shared between visitors.
"""

from typing import List, Optional

from fastapi import APIRouter, Request, Response
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, Field

from core.logging import get_logger

logger = get_logger("web.routes")

router = APIRouter()


# === Request / response models ===

class StartSessionRequest(BaseModel):
    """Body of POST /api/sessions."""
    language: Optional[str] = Field(None, max_length=16)


class MessageRequest(BaseModel):
    """Body of POST /api/sessions/{id}/messages."""
    text: str = Field(..., max_length=1000)


class SessionResponse(BaseModel):
    session_id: str
    language: str
    greeting: str
    intro: str
    prompt: str
    ended: bool = False
    terminated: bool = False
    turns: int = 0


class MessageResponse(BaseModel):
    reply: str
    terminated: bool
    ended: bool
    latency_ms: int
    crash: List[str] = []


def _session_response(session) -> SessionResponse:
    messages = session.conversation.messages
    return SessionResponse(
        session_id=session.session_id,
        language=session.language,
        greeting=session.greeting,
        intro=messages.intro,
        prompt=messages.prompt,
        ended=session.ended,
        terminated=session.terminated,
        turns=session.turns,
    )


# === Page Routes ===

@router.get("/", response_class=HTMLResponse)
async def chat_page(request: Request):
    """Render the chat page."""
    templates = request.app.state.templates
    chat = request.app.state.chat
    config = request.app.state.config

    return templates.TemplateResponse(
        request=request,
        name="chat.html",
        context={
            "app_name": config.app_name,
            "languages": chat.languages(),
            "default_language": config.engine.language,
        },
    )


# === API Routes ===

@router.get("/api/health")
def health(request: Request):
    """Liveness check."""
    return {"status": "ok", "sessions": request.app.state.chat.session_count}


@router.get("/api/languages")
def languages(request: Request):
    """List the languages a session can be started in."""
    config = request.app.state.config
    return {
        "languages": request.app.state.chat.languages(),
        "default": config.engine.language,
    }


@router.post("/api/sessions", response_model=SessionResponse, status_code=201)
def start_session(request: Request, body: Optional[StartSessionRequest] = None):
    """Start a conversation and return its greeting."""
    language = body.language if body else None
    session = request.app.state.chat.start_session(language)
    client = request.client.host if request.client else "-"
    logger.debug(f"Web session {session.session_id} opened from {client}")
    return _session_response(session)


@router.get("/api/sessions/{session_id}", response_model=SessionResponse)
def get_session(request: Request, session_id: str):
    """Return a session's current state."""
    return _session_response(request.app.state.chat.get(session_id))


@router.post("/api/sessions/{session_id}/messages", response_model=MessageResponse)
def send_message(request: Request, session_id: str, body: MessageRequest):
    """Send one user turn and return ELIZA's reply."""
    chat = request.app.state.chat
    result = chat.send(session_id, body.text)

    crash: List[str] = []
    if result.terminated:
        crash = list(chat.get(session_id).conversation.messages.crash)
        logger.debug(f"Sending crash screen to session {session_id}")

    return MessageResponse(
        reply=result.reply,
        terminated=result.terminated,
        ended=result.ended,
        latency_ms=result.latency_ms,
        crash=crash,
    )


@router.post("/api/sessions/{session_id}/reset", response_model=SessionResponse)
def reset_session(request: Request, session_id: str):
    """Reboot a conversation after a crash or a goodbye."""
    return _session_response(request.app.state.chat.reset(session_id))


@router.delete("/api/sessions/{session_id}", status_code=204)
def end_session(request: Request, session_id: str):
    """Forget a conversation."""
    request.app.state.chat.end(session_id)
    return Response(status_code=204)
