"""
Health Routes
=============

FastAPI routes for health check endpoints.
"""

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

router = APIRouter(tags=["Health"])


@router.get("/health", response_class=PlainTextResponse)
async def health_check() -> str:
    """Liveness probe; open even when the bearer gate is enabled."""
    return "OK"
