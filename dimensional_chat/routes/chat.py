"""Chat endpoint: dispatches to the group or single-character pipeline."""

import logging

from fastapi import APIRouter, Depends, HTTPException

from dimensional_chat.personas import is_group
from dimensional_chat.pipeline import process_group_message, process_single_message
from dimensional_chat.services import Services

from .deps import get_services, get_session
from .models import ChatBody, SessionInfo

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/chat")
async def chat(
    body: ChatBody,
    services: Services = Depends(get_services),
    session: SessionInfo = Depends(get_session),
):
    """Send one user message; group chats also report which persona replied."""
    if not body.character or not body.message:
        raise HTTPException(400, "Missing character or message")

    logger.info(f"Chat request user={session.user_id} character={body.character}")

    if is_group(body.character):
        result = await process_group_message(
            user_id=session.user_id,
            group_id=body.character,
            message=body.message,
            history=body.conversationHistory,
            contexts=services.contexts,
            completion=services.completion,
        )
        payload = {"reply": result.reply, "speaker": result.speaker}
    else:
        result = await process_single_message(
            character=body.character,
            message=body.message,
            history=body.conversationHistory,
            completion=services.completion,
            cache=services.cache,
        )
        payload = {"reply": result.reply}
        if result.cached:
            payload["cached"] = True

    if result.usage is not None:
        payload["usage"] = result.usage
    if result.used_fallback:
        payload["fallback"] = True
        payload["error"] = result.error
    return payload
