# forum/app.py
from __future__ import annotations
from typing import Optional
import logging
import os

from fastapi import Depends, FastAPI, Header, Request, status
from fastapi.responses import JSONResponse

from forum.auth import AuthContext
from forum.db import init_db
from forum.errors import (
    ForumError,
    AuthenticationError,
    NoAuthorizationError,
    TopicRemovedError,
    CategoryRemovedError,
    CategoryArchivedError,
    MessageRemovedError,
    TaskRemovedError,
)
from forum.schemas import (
    ChatOut,
    ResultOut,
    TaskOut,
    TopicCreate,
    TopicDetailOut,
    TopicOut,
    TopicUpdate,
)
from forum.services import (
    list_topics,
    create_topic,
    get_topic,
    get_topic_chats,
    update_topic,
    delete_topic,
    archive_topic,
    unarchive_topic,
    get_topic_tasks,
    get_user,
)

logging.basicConfig(level=os.getenv("FORUM_LOG_LEVEL", "INFO").upper())
logger = logging.getLogger(__name__)

# --- bootstrap DB ---
init_db()

app = FastAPI(title="Forum Topics API")

_STATUS = {
    AuthenticationError: status.HTTP_401_UNAUTHORIZED,
    NoAuthorizationError: status.HTTP_403_FORBIDDEN,
    TopicRemovedError: status.HTTP_404_NOT_FOUND,
    CategoryRemovedError: status.HTTP_404_NOT_FOUND,
    CategoryArchivedError: status.HTTP_409_CONFLICT,
    MessageRemovedError: status.HTTP_404_NOT_FOUND,
    TaskRemovedError: status.HTTP_404_NOT_FOUND,
}

@app.exception_handler(ForumError)
async def forum_exception_handler(request: Request, exc: ForumError):
    status_code = _STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST)
    logger.warning("%s %s: %s: %s", request.method, request.url.path, type(exc).__name__, exc)
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "type": type(exc).__name__},
    )

# ---------- Caller ----------
def caller_context(x_user_id: Optional[str] = Header(None)) -> AuthContext:
    """Resolve the X-User-Id header; missing, malformed or unknown users are anonymous."""
    if x_user_id is None or not x_user_id.strip().isdigit():
        return AuthContext.anonymous()
    user = get_user(int(x_user_id))
    if user is None:
        return AuthContext.anonymous()
    return AuthContext.for_user(user)

# ---------- API ----------
@app.get("/api/topics", response_model=list[TopicOut])
def api_list_topics():
    return list_topics()

@app.post("/api/topics", response_model=TopicOut, status_code=201)
def api_create_topic(payload: TopicCreate, caller: AuthContext = Depends(caller_context)):
    return create_topic(
        caller,
        name=payload.name,
        parent_category_id=payload.parent_category,
        description=payload.description,
        tag_string=payload.tag_string,
    )

@app.get("/api/topics/{topic_id}", response_model=TopicDetailOut)
def api_get_topic(topic_id: int):
    return get_topic(topic_id)

@app.put("/api/topics/{topic_id}", response_model=TopicOut)
def api_update_topic(topic_id: int, payload: TopicUpdate, caller: AuthContext = Depends(caller_context)):
    return update_topic(
        caller,
        topic_id,
        name=payload.name,
        description=payload.description,
        tag_string=payload.tag_string,
    )

@app.delete("/api/topics/{topic_id}", response_model=ResultOut)
def api_delete_topic(topic_id: int, caller: AuthContext = Depends(caller_context)):
    return delete_topic(caller, topic_id)

@app.post("/api/topics/{topic_id}/archive", response_model=ResultOut)
def api_archive(topic_id: int, caller: AuthContext = Depends(caller_context)):
    return archive_topic(caller, topic_id)

@app.post("/api/topics/{topic_id}/unarchive", response_model=ResultOut)
def api_unarchive(topic_id: int, caller: AuthContext = Depends(caller_context)):
    return unarchive_topic(caller, topic_id)

@app.get("/api/topics/{topic_id}/chats", response_model=list[ChatOut])
def api_topic_chats(topic_id: int):
    return get_topic_chats(topic_id)

@app.get("/api/topics/{topic_id}/tasks", response_model=list[TaskOut])
def api_topic_tasks(topic_id: int):
    return get_topic_tasks(topic_id)
