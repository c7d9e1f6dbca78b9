import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles

from dimensional_chat.config import Settings, load_settings
from dimensional_chat.llm import Completion
from dimensional_chat.routes import router
from dimensional_chat.routes.models import SessionInfo
from dimensional_chat.services import Services, build_services, purge_expired_sessions

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).parent / "static"
SESSION_CLEANUP_INTERVAL = 30 * 60


async def _cleanup_sessions_forever(services: Services) -> None:
    while True:
        await asyncio.sleep(SESSION_CLEANUP_INTERVAL)
        purge_expired_sessions(services)


def create_app(settings: Settings | None = None, completion: Completion | None = None) -> FastAPI:
    resolved = settings or load_settings()
    services = build_services(resolved, completion)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        task = asyncio.create_task(_cleanup_sessions_forever(services))
        logger.info(f"Dimensional Chat started (environment={resolved.environment})")
        yield
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    app = FastAPI(title="Dimensional Chat", lifespan=lifespan)
    app.state.services = services

    @app.middleware("http")
    async def session_middleware(request: Request, call_next):
        # Every response, errors included, carries X-Session-ID
        requested = request.headers.get("X-Session-ID") or request.query_params.get("sessionId")
        sid, session = services.sessions.resolve(requested)
        request.state.session = SessionInfo(session_id=sid, user_id=session.user_id)
        response = await call_next(request)
        response.headers["X-Session-ID"] = sid
        return response

    app.include_router(router, prefix="/api")

    if STATIC_DIR.exists():
        app.mount("/image", StaticFiles(directory=STATIC_DIR / "image", check_dir=False), name="image")

        # SPA fallback: all non-API routes serve index.html
        @app.get("/{path:path}", include_in_schema=False)
        async def spa_fallback(path: str):
            if path.startswith("api/"):
                raise HTTPException(404, "API endpoint not found")
            return FileResponse(STATIC_DIR / "index.html")

    return app


# Default app instance for uvicorn (reads settings from env / .env)
app = create_app()
