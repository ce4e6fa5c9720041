"""
Narrative State Engine: Session API Server
==========================================

HTTP surface over one in-process StorySession.

Endpoints:
- GET  /health
- GET  /api/v1/state            -> live variables and cursor position
- GET  /api/v1/history          -> history entries
- GET  /api/v1/storylets        -> available storylets (?limit=N)
- POST /api/v1/navigate         -> show a passage {"passage": name}
- POST /api/v1/undo, /api/v1/redo

Usage:
    NSE_STORY_PATH=story.html uvicorn narrative_engine.api.server:app --reload
"""
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from ..contracts.base import ErrorCode, UsageError
from ..engine import EngineConfig, StorySession
from ..storage import StorageConfig
from ..story.loader import load_story
from .mapper import map_history, map_navigation, map_state


class NavigateRequest(BaseModel):
    passage: str


def session_from_environment() -> StorySession:
    """Build a session from NSE_STORY_PATH (and optional NSE_SAVE_PATH)."""
    story_path = os.environ.get("NSE_STORY_PATH")
    if not story_path:
        raise RuntimeError("NSE_STORY_PATH is not set")

    save_path = os.environ.get("NSE_SAVE_PATH")
    storage = (
        StorageConfig(backend_type="file", storage_path=save_path)
        if save_path else StorageConfig()
    )
    return StorySession(load_story(story_path), EngineConfig(storage=storage))


def _raise_http(error: UsageError):
    status = 404 if error.code == ErrorCode.UNKNOWN_CONTENT else 400
    raise HTTPException(
        status_code=status,
        detail={"code": error.code.name, "message": str(error)},
    )


def create_app(session: Optional[StorySession] = None) -> FastAPI:
    """
    Build the API app.

    With no session, one is created from the environment at startup and
    resumed from its save if one exists.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if session is None:
            print("[*] Initializing story session from environment")
            created = session_from_environment()
            if not created.load():
                created.start()
            app.state.session = created
            print(f"[*] Session ready: {created.story.name}")

        yield

        if session is None:
            print("[*] Shutting down story session.")
            app.state.session = None

    app = FastAPI(
        title="Narrative State Engine API",
        version="0.1.0",
        description="State, history and storylets for one story session",
        lifespan=lifespan
    )
    app.state.session = session

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    def current_session(request: Request) -> StorySession:
        active = getattr(request.app.state, "session", None)
        if active is None:
            raise HTTPException(status_code=503, detail="Session not initialized")
        return active

    @app.get("/health")
    async def health_check(request: Request):
        current_session(request)
        return {"status": "online"}

    @app.get("/api/v1/state")
    async def get_state(request: Request):
        return map_state(current_session(request))

    @app.get("/api/v1/history")
    async def get_history(request: Request):
        return map_history(current_session(request).history)

    @app.get("/api/v1/storylets")
    async def get_storylets(request: Request, limit: int = 0):
        return {"available": current_session(request).get_available(limit)}

    @app.post("/api/v1/navigate")
    async def navigate(body: NavigateRequest, request: Request):
        active = current_session(request)
        try:
            text = active.show(body.passage)
        except UsageError as e:
            _raise_http(e)
        return map_navigation(active, body.passage, text)

    @app.post("/api/v1/undo")
    async def undo(request: Request):
        active = current_session(request)
        content_id = active.undo()
        return map_navigation(active, content_id)

    @app.post("/api/v1/redo")
    async def redo(request: Request):
        active = current_session(request)
        content_id = active.redo()
        return map_navigation(active, content_id)

    return app


app = create_app()
