"""Core domain models.

The pipeline, stores, and routes all operate on these types.
Pydantic is used for validation and serialisation at every data boundary.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

HISTORY_LIMIT = 10


class HistoryEntry(BaseModel):
    """One message of the caller-supplied conversation history.

    Accepts the frontend wire format too: {"type": "user"|"bot", "name": ..., "text": ...}.
    """

    model_config = ConfigDict(populate_by_name=True)

    role: Literal["user", "persona"] = Field(validation_alias=AliasChoices("role", "type"))
    speaker: str | None = Field(default=None, validation_alias=AliasChoices("speaker", "name"))
    text: str
    time: str | None = None

    @field_validator("role", mode="before")
    @classmethod
    def _bot_is_persona(cls, value: Any) -> Any:
        if value == "bot":
            return "persona"
        return value

    @property
    def is_user(self) -> bool:
        return self.role == "user"


class SpeakerTurn(BaseModel):
    speaker: str
    timestamp: datetime
    message: str


class ConversationContext(BaseModel):
    """Rolling continuity state for one (user, group) pair."""

    current_speaker: str | None = None
    topic: str | None = None
    last_user_message: str = ""
    message_count: int = 0
    speaker_history: list[SpeakerTurn] = Field(default_factory=list)


class GroupMember(BaseModel):
    model_config = ConfigDict(frozen=True)

    prompt: str
    max_tokens: int


class GroupDefinition(BaseModel):
    """A group chat: ordered member list plus per-member prompt and token limit."""

    model_config = ConfigDict(frozen=True)

    name: str
    members: tuple[str, ...]
    details: dict[str, GroupMember]

    @model_validator(mode="after")
    def _check_members(self) -> GroupDefinition:
        if not self.members:
            raise ValueError(f"Group {self.name!r} has no members")
        missing = [m for m in self.members if m not in self.details]
        if missing:
            raise ValueError(f"Group {self.name!r} has no details for {missing}")
        return self


class ScoredCandidate(BaseModel):
    persona: str
    score: int


class GroupReply(BaseModel):
    """Outcome of one group turn."""

    speaker: str
    reply: str
    used_fallback: bool = False
    continued: bool = False
    error: str | None = None
    usage: dict[str, Any] | None = None


class SingleReply(BaseModel):
    """Outcome of one single-character turn."""

    reply: str
    cached: bool = False
    used_fallback: bool = False
    error: str | None = None
    usage: dict[str, Any] | None = None
