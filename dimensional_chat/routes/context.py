"""Conversation context endpoints: inspect or reset continuity state for a group."""

from fastapi import APIRouter, Depends

from dimensional_chat.services import Services

from .deps import get_services, get_session
from .models import SessionInfo

router = APIRouter()


@router.get("/conversation-context/{character}")
async def get_context(
    character: str,
    services: Services = Depends(get_services),
    session: SessionInfo = Depends(get_session),
):
    """Current continuity state (speaker, topic, counts, recent speakers)."""
    return services.contexts.snapshot(session.user_id, character)


@router.delete("/conversation-context/{character}")
async def reset_context(
    character: str,
    services: Services = Depends(get_services),
    session: SessionInfo = Depends(get_session),
):
    """Forget continuity state so the next message starts fresh."""
    async with services.contexts.lock(session.user_id, character):
        services.contexts.reset(session.user_id, character)
    return {"message": f"已重置 {character} 的对话上下文"}
