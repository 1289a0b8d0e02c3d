"""API router aggregation."""

from fastapi import APIRouter

from rag_chatbot.api import chat, embed, health

router = APIRouter()

router.include_router(health.router)
router.include_router(embed.router)
router.include_router(chat.router)
