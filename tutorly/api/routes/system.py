"""System routes."""

from fastapi import APIRouter

router = APIRouter()

HEALTH_PATH = "/health"


@router.get(HEALTH_PATH)
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}
