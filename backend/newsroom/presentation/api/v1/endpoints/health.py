"""Health check endpoint — no dependencies, always available."""

from fastapi import APIRouter, Request

from newsroom.config import get_settings

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check(request: Request) -> dict:
    """Returns the application health status and the state of its background jobs."""
    settings = get_settings()
    scheduler = getattr(request.app.state, "scheduler", None)
    digest = getattr(request.app.state, "digest", None)
    return {
        "status": "healthy",
        "version": settings.app_version,
        "environment": settings.app_env,
        "scheduler": bool(scheduler and scheduler.is_running),
        "digest": bool(digest and digest.is_running),
    }
