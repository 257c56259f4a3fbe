"""
Web Application - FastAPI factory for the ELIZA chat
====================================================

create_app() wires the chat service, the Jinja2 chat page and the
JSON API together and maps ELIZA errors to HTTP status codes:

    SessionNotFoundError    404
    SessionTerminatedError  409
    ConfigError             400
    other ElizaError        500
"""

from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.templating import Jinja2Templates
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from core.config import Config, load_config
from core.exceptions import (
    ConfigError,
    ElizaError,
    SessionNotFoundError,
    SessionTerminatedError,
)
from core.logging import setup_logging, get_logger
from services.chat import ChatService

logger = get_logger("web.app")


def create_app(
    config: Optional[Config] = None,
    chat_service: Optional[ChatService] = None,
    debug: bool = False
) -> FastAPI:
    """
    Build the ELIZA web application.

    Args:
        config: Settings; loaded from disk if omitted
        chat_service: Session registry; a fresh one is created if omitted
        debug: Verbose logging and error details in 500 responses

    Returns:
        FastAPI app with the chat page and /api routes
    """
    if config is None:
        config = load_config()

    setup_logging(
        log_dir=config.logging.log_dir or None,
        log_level="DEBUG" if debug else config.logging.log_level,
        json_format=config.logging.json_format,
        console_output=True
    )

    if chat_service is None:
        chat_service = ChatService(config)

    app = FastAPI(
        title="ELIZA",
        description="Web interface for the ELIZA responder",
        version=config.version,
        debug=debug or config.debug,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    templates_dir = Path(__file__).parent / "templates"
    templates = Jinja2Templates(directory=str(templates_dir))

    app.state.config = config
    app.state.chat = chat_service
    app.state.templates = templates

    from .routes import router as main_router
    app.include_router(main_router, prefix="")

    @app.exception_handler(SessionNotFoundError)
    async def session_not_found_handler(request: Request, exc: SessionNotFoundError):
        return JSONResponse(status_code=404, content={"error": "session_not_found",
                                                      "detail": exc.message})

    @app.exception_handler(SessionTerminatedError)
    async def session_terminated_handler(request: Request, exc: SessionTerminatedError):
        return JSONResponse(status_code=409, content={"error": "session_terminated",
                                                      "reason": exc.reason,
                                                      "detail": exc.message})

    @app.exception_handler(ConfigError)
    async def config_error_handler(request: Request, exc: ConfigError):
        logger.warning(f"Rejected request: {exc}")
        return JSONResponse(status_code=400, content={"error": "invalid_request",
                                                      "detail": str(exc)})

    @app.exception_handler(ElizaError)
    async def eliza_error_handler(request: Request, exc: ElizaError):
        logger.error(f"Unhandled application error: {exc}", exc_info=True)
        return JSONResponse(status_code=500, content={"error": "internal_error",
                                                      "detail": str(exc) if debug else "An error occurred"})

    logger.info("Web application created")

    return app


def run_app(
    host: str = "127.0.0.1",
    port: int = 8080,
    debug: bool = False,
    config: Optional[Config] = None
) -> None:
    """
    Serve the web UI with uvicorn until interrupted.

    Args:
        host: Interface to bind
        port: TCP port
        debug: Verbose logging and error details
        config: Settings; loaded from disk if omitted
    """
    if config is None:
        config = load_config()

    app = create_app(config=config, debug=debug)

    logger.info(f"Starting web server on {host}:{port}")

    import uvicorn
    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level="debug" if debug else "info"
    )
