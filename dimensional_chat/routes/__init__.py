"""FastAPI API endpoints under /api.

Endpoint groups: system (health, cache, user info, prayers), characters
(chat roster + saved messages), chat (group and single turns), and
conversation context (inspect/reset continuity state per group).

The session middleware in app.py reads X-Session-ID (header) or sessionId
(query) and echoes the live id back on every response. Endpoints get it
through the get_session dependency in deps.py.
"""

from fastapi import APIRouter

from .characters import router as characters_router
from .chat import router as chat_router
from .context import router as context_router
from .system import router as system_router

router = APIRouter()
router.include_router(system_router)
router.include_router(characters_router)
router.include_router(chat_router)
router.include_router(context_router)
