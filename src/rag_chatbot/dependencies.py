"""FastAPI dependencies for the chatbot service."""

from fastapi import Depends, HTTPException, Request, status

from rag_chatbot.config import Settings
from rag_chatbot.services.chat_service import ChatService
from rag_chatbot.services.container import ServiceContainer
from rag_chatbot.services.ingestion_service import IngestionService
from rag_chatbot.utils.logging import get_logger

logger = get_logger("dependencies")


def get_app_settings(request: Request) -> Settings:
    """Settings the application was created with."""
    return request.app.state.settings


def get_services(request: Request) -> ServiceContainer:
    """
    Get the provider client container from app state.

    The container is stored in app.state.services during startup.

    Raises:
        HTTPException: If the container was never initialized.
    """
    services = getattr(request.app.state, "services", None)
    if services is None:
        logger.error("Service container not available in app state")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Services are not initialized",
        )
    return services


def get_ingestion_service(
    services: ServiceContainer = Depends(get_services),
    settings: Settings = Depends(get_app_settings),
) -> IngestionService:
    return IngestionService(services.embedding, services.vector_index, settings)


def get_chat_service(
    services: ServiceContainer = Depends(get_services),
    settings: Settings = Depends(get_app_settings),
) -> ChatService:
    return ChatService(services.embedding, services.vector_index, services.completion, settings)
