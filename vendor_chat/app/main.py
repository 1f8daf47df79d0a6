#!/usr/bin/env python3
"""
Main FastAPI application for the vendor chat assistant.
"""

import uuid
from contextlib import asynccontextmanager
from functools import lru_cache

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse

from .config import Config
from .controller import ChatRouter
from .session import SessionStore
from .stream import STREAM_HEADERS, encode_sse
from ..data.database import create_tables
from ..render.message_wall import MessageWall, WallRender
from ..schemas.io_models import (
    ChatRequest,
    RenderRequest,
    SessionCreateRequest,
    SessionRecord,
    SessionUpdateRequest,
)
from ..utils.errors import CreateError, SessionNotFoundError, UpdateError
from ..utils.logger import get_logger

logger = get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Refuse to start with missing credentials or index paths
    Config.validate()
    create_tables()
    logger.info(f"[STARTUP] model={Config.GEMINI_MODEL} embedding={Config.EMBEDDING_MODEL} index={Config.VENDOR_INDEX_PATH}")
    yield


# Initialize FastAPI app
app = FastAPI(
    title="Vendor Chat API",
    description="Chat assistant for discovering wedding and event vendors in Mumbai",
    version="1.0.0",
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, specify the chat UI origin
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Singletons, overridable through app.dependency_overrides
@lru_cache(maxsize=1)
def get_chat_router() -> ChatRouter:
    return ChatRouter()


@lru_cache(maxsize=1)
def get_session_store() -> SessionStore:
    return SessionStore()


def get_message_wall() -> MessageWall:
    return MessageWall()


@app.post("/api/chat")
def chat(request: ChatRequest, router: ChatRouter = Depends(get_chat_router)):
    """Stream the assistant's reply for the latest turn as server-sent events."""
    events = router.route(request.messages)
    return StreamingResponse(encode_sse(events), media_type="text/event-stream", headers=STREAM_HEADERS)


@app.post("/session", response_model=SessionRecord)
def create_session(request: SessionCreateRequest, store: SessionStore = Depends(get_session_store)):
    """
    Create a new conversation session.

    Args:
        request: Session creation request; a key is generated when absent

    Returns:
        The stored session
    """
    session_key = request.session_key or str(uuid.uuid4())
    try:
        return store.create(session_key, request.state)
    except CreateError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.get("/session/{session_key}", response_model=SessionRecord)
def read_session(session_key: str, store: SessionStore = Depends(get_session_store)):
    lookup = store.lookup(session_key)
    if lookup.status == "error":
        raise HTTPException(status_code=503, detail="Session store unavailable")
    if not lookup.found:
        raise HTTPException(status_code=404, detail="Session not found")
    return lookup.record


@app.put("/session/{session_key}", response_model=SessionRecord)
def update_session(session_key: str, request: SessionUpdateRequest,
                   store: SessionStore = Depends(get_session_store)):
    try:
        return store.update(session_key, request.state)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")
    except UpdateError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.post("/render", response_model=WallRender)
def render_messages(request: RenderRequest, wall: MessageWall = Depends(get_message_wall)):
    """Render list for the chat UI: visible text, cards and scroll hint per message."""
    return wall.render(request.messages, request.status, request.previous_count)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
