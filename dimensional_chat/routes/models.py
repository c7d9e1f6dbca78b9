"""Pydantic request/response models for API endpoints."""

from pydantic import BaseModel, Field

from dimensional_chat.chat_data import ChatMessage
from dimensional_chat.models import HistoryEntry


class ChatBody(BaseModel):
    character: str = ""
    message: str = ""
    conversationHistory: list[HistoryEntry] = Field(default_factory=list)


class SaveChatBody(BaseModel):
    character: str = ""
    message: ChatMessage | None = None


class SessionInfo(BaseModel):
    session_id: str
    user_id: str
