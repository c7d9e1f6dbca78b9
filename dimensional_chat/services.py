"""Process-wide service container shared by the API routes."""

import logging
from dataclasses import dataclass, field

from dimensional_chat.cache import ResponseCache
from dimensional_chat.chat_data import ChatDataStore
from dimensional_chat.config import Settings
from dimensional_chat.context import ContextStore
from dimensional_chat.llm import Completion, EchoCompletion, HttpCompletion
from dimensional_chat.sessions import SessionManager

logger = logging.getLogger(__name__)


@dataclass
class Services:
    settings: Settings
    completion: Completion
    cache: ResponseCache
    sessions: SessionManager
    contexts: ContextStore = field(default_factory=ContextStore)
    chat_data: ChatDataStore = field(default_factory=ChatDataStore)


def build_completion(settings: Settings) -> Completion:
    if settings.completion_backend == "echo":
        logger.info("Using EchoCompletion backend (no network calls)")
        return EchoCompletion()
    if not settings.api_key:
        logger.warning("DEEPSEEK_API_KEY is not set; completions will fail and use fallback replies")
    return HttpCompletion(
        api_url=settings.api_url,
        api_key=settings.api_key,
        model=settings.model,
        temperature=settings.temperature,
        timeout=settings.llm_timeout,
    )


def build_services(settings: Settings, completion: Completion | None = None) -> Services:
    return Services(
        settings=settings,
        completion=completion or build_completion(settings),
        cache=ResponseCache(ttl=settings.cache_ttl),
        sessions=SessionManager(timeout=settings.session_timeout, prayer_limit=settings.prayer_limit),
    )


def purge_expired_sessions(services: Services) -> list[str]:
    """Expire idle sessions and free the contexts and chat rosters of their users."""
    user_ids = services.sessions.cleanup_expired()
    for user_id in user_ids:
        services.contexts.forget_user(user_id)
        services.chat_data.forget_user(user_id)
    if user_ids:
        logger.info(f"Purged state for {len(user_ids)} expired users")
    return user_ids
