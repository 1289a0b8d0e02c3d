"""FastAPI application entry point.

This module creates and configures the FastAPI application instance with:
- Application metadata and OpenAPI documentation
- Middleware (CORS, RequestID, Timing)
- Exception handlers (every error body is ``{"error": "<message>"}``)
- Routers (/, /embed, /chat, /health, /ready)
- Startup/shutdown lifecycle management (provider clients)
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from rag_chatbot import __version__
from rag_chatbot.api import router as api_router
from rag_chatbot.config import Settings, get_settings
from rag_chatbot.middleware import RequestIDMiddleware, TimingMiddleware
from rag_chatbot.services.container import ServiceContainer
from rag_chatbot.utils.errors import ChatbotException
from rag_chatbot.utils.logging import get_logger, log_error, setup_logging
from rag_chatbot.validation import CHAT_INPUT_ERROR, EMBED_INPUT_ERROR

logger = get_logger("main")

_BODY_ERRORS = {
    "/embed": EMBED_INPUT_ERROR,
    "/chat": CHAT_INPUT_ERROR,
}


def _build_lifespan(services: Optional[ServiceContainer]):
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Manage application lifespan events.

        Builds the provider clients once per process unless a container was
        handed to ``create_app``; only clients built here are closed here.
        """
        settings: Settings = app.state.settings
        owned = services is None
        logger.info("Starting chatbot service...")

        app.state.services = ServiceContainer.from_settings(settings) if owned else services
        logger.info(
            f"Services ready: collection={settings.qdrant.collection_name}, "
            f"embedding_model={settings.openai.embedding_model}, chat_model={settings.openai.chat_model}"
        )

        try:
            yield
        finally:
            logger.info("Shutting down chatbot service...")
            if owned:
                await app.state.services.close()
            logger.info("Chatbot service shut down")

    return lifespan


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ChatbotException)
    async def chatbot_exception_handler(request: Request, exc: ChatbotException):
        """Handle ChatbotException (invalid input and upstream failures)."""
        if exc.status_code >= 500:
            log_error(exc, path=request.url.path, method=request.method)
        else:
            logger.info(f"{exc.code}: {exc.message} (path={request.url.path})")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Missing or non-JSON bodies are malformed input, not 422s."""
        logger.info(f"Request body rejected: path={request.url.path}, errors={len(exc.errors())}")
        message = _BODY_ERRORS.get(request.url.path, "Invalid request body")
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": message})

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Handle HTTP exceptions."""
        if exc.status_code >= 500:
            log_error(exc, path=request.url.path, method=request.method)
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle all other exceptions."""
        log_error(exc, path=request.url.path, method=request.method)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": str(exc) or "An error occurred while processing your request"},
        )


def create_app(
    settings: Optional[Settings] = None,
    services: Optional[ServiceContainer] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Settings to use; defaults to the environment-loaded instance
        services: Pre-built provider clients (tests pass fakes here)

    Returns:
        FastAPI: Configured application instance
    """
    settings = settings or get_settings()
    setup_logging(settings)

    app = FastAPI(
        title="RAG Chatbot",
        description="Retrieval-augmented chatbot backend: embed knowledge, answer questions from it",
        version=__version__,
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        openapi_url="/openapi.json" if not settings.is_production else None,
        lifespan=_build_lifespan(services),
    )
    app.state.settings = settings
    if services is not None:
        # Available even when the lifespan is not run (plain TestClient usage)
        app.state.services = services

    # Last added is outermost
    app.add_middleware(TimingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=3600,
    )

    _register_exception_handlers(app)
    app.include_router(api_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "rag_chatbot.main:app",
        host=settings.server.host,
        port=settings.server.port,
        reload=settings.server.reload and settings.is_development,
        log_level=settings.log_level.lower(),
    )
