"""Health check, cache management, user info, and prayer quota endpoints."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException

from dimensional_chat.services import Services

from .deps import get_services, get_session
from .models import SessionInfo

router = APIRouter()


@router.get("/health")
async def health(
    services: Services = Depends(get_services),
    session: SessionInfo = Depends(get_session),
):
    """Health check with cache statistics."""
    return {
        "status": "OK",
        "message": "服务器运行正常",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": services.settings.environment,
        "cacheStats": services.cache.stats(),
    }


@router.get("/cache-stats")
async def cache_stats(
    services: Services = Depends(get_services),
    session: SessionInfo = Depends(get_session),
):
    """Response cache statistics."""
    return services.cache.stats()


@router.delete("/cache")
async def flush_cache(
    services: Services = Depends(get_services),
    session: SessionInfo = Depends(get_session),
):
    """Drop every cached single-character reply."""
    services.cache.flush()
    return {"message": "缓存已清空", "timestamp": datetime.now(timezone.utc).isoformat()}


@router.get("/prayer-count")
async def prayer_count(
    services: Services = Depends(get_services),
    session: SessionInfo = Depends(get_session),
):
    """Prayers left today for this session."""
    return {"remaining": services.sessions.remaining_prayers(session.session_id)}


@router.post("/prayer")
async def pray(
    services: Services = Depends(get_services),
    session: SessionInfo = Depends(get_session),
):
    """Consume one prayer from today's quota."""
    remaining = services.sessions.record_prayer(session.session_id)
    if remaining is None:
        raise HTTPException(403, "今日祈祷次数已用完")
    return {"remaining": remaining}


@router.get("/user-info")
async def user_info(session: SessionInfo = Depends(get_session)):
    """Identifiers of the current session."""
    return {
        "userId": session.user_id,
        "sessionId": session.session_id,
        "userHash": session.user_id[:8],
    }
