"""Health check endpoints."""

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse, PlainTextResponse

from rag_chatbot.config import Settings
from rag_chatbot.dependencies import get_app_settings, get_services
from rag_chatbot.services.container import ServiceContainer
from rag_chatbot.utils.logging import get_logger

logger = get_logger("health")

router = APIRouter(tags=["health"])


@router.get("/", response_class=PlainTextResponse)
async def root() -> str:
    """Root greeting."""
    return "Hello, World!"


@router.get("/health", status_code=status.HTTP_200_OK)
async def health_check(settings: Settings = Depends(get_app_settings)):
    """
    Health check endpoint.

    Does not check external dependencies; healthy whenever the process serves requests.
    """
    logger.debug("Health check requested")
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "environment": settings.environment.value,
    }


@router.get("/ready", status_code=status.HTTP_200_OK)
async def readiness_check(
    settings: Settings = Depends(get_app_settings),
    services: ServiceContainer = Depends(get_services),
):
    """
    Readiness check endpoint.

    Checks:
    - Qdrant is reachable
    - An OpenAI API key is configured (no provider call is made)

    Returns 503 if any check fails.
    """
    checks = {
        "vector_index": await services.vector_index.ping(),
        "openai": settings.openai.is_configured,
    }

    if not all(checks.values()):
        logger.warning(f"Readiness check failed: {checks}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", "checks": checks},
        )

    return {"status": "ready", "checks": checks}
