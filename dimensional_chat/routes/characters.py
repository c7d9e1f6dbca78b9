"""Chat roster endpoints: list threads, save and clear messages."""

from fastapi import APIRouter, Depends, HTTPException

from dimensional_chat.services import Services

from .deps import get_services, get_session
from .models import SaveChatBody, SessionInfo

router = APIRouter()


@router.get("/characters")
async def list_characters(
    services: Services = Depends(get_services),
    session: SessionInfo = Depends(get_session),
):
    """All chat threads for the current user."""
    threads = services.chat_data.threads(session.user_id)
    return {name: thread.model_dump() for name, thread in threads.items()}


@router.get("/characters/{name}")
async def get_character(
    name: str,
    services: Services = Depends(get_services),
    session: SessionInfo = Depends(get_session),
):
    """A single chat thread."""
    thread = services.chat_data.thread(session.user_id, name)
    if thread is None:
        raise HTTPException(404, "角色不存在")
    return thread.model_dump()


@router.post("/save-chat")
async def save_chat(
    body: SaveChatBody,
    services: Services = Depends(get_services),
    session: SessionInfo = Depends(get_session),
):
    """Append a message to a thread (created if new)."""
    if not body.character or body.message is None:
        raise HTTPException(400, "Missing character or message")
    services.chat_data.add_message(session.user_id, body.character, body.message)
    return {"success": True, "message": "聊天记录已保存"}


@router.delete("/clear-chat/{character}")
async def clear_chat(
    character: str,
    services: Services = Depends(get_services),
    session: SessionInfo = Depends(get_session),
):
    """Remove every message from a thread."""
    if not services.chat_data.clear(session.user_id, character):
        raise HTTPException(404, "角色不存在")
    return {"success": True, "message": f"已清空 {character} 的聊天记录"}
