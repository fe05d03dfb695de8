"""Health check endpoint."""

from typing import Any

from fastapi import APIRouter, Response

from claude_web_proxy import __version__


router = APIRouter()


@router.get("/health")
async def health(response: Response) -> dict[str, Any]:
    """Liveness check; the backend is not contacted."""
    response.headers["Cache-Control"] = "no-cache, no-store, must-revalidate"
    return {"status": "pass", "version": __version__}
