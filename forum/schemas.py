"""
Request models and the lean response views returned by the services.
"""
from __future__ import annotations
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


# ---------- Inputs ----------
class TopicCreate(BaseModel):
    name: str
    description: str = ""
    tag_string: Optional[str] = None
    parent_category: int

class TopicUpdate(BaseModel):
    name: str
    description: str = ""
    tag_string: Optional[str] = None


# ---------- Views ----------
class UserBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str

class TagOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str

class TopicOut(BaseModel):
    id: int
    name: str
    description: str
    tag_string: Optional[str] = None
    parent_category_id: Optional[int] = None
    created_by: Optional[UserBrief] = None
    tags: list[TagOut] = []
    is_archived: bool
    is_self_archived: bool
    created_at: datetime

class MessageOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    parent_topic_id: Optional[int] = None
    user_id: Optional[int] = None
    description: str
    is_pinned: bool
    created_at: datetime

class ChatOut(MessageOut):
    user: Optional[UserBrief] = None

class AnnouncementOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    topic_id: Optional[int] = None
    description: str
    created_at: datetime

class TopicDetailOut(BaseModel):
    topic: TopicOut
    pinned_messages: list[MessageOut]
    announcements: list[AnnouncementOut]

class TaskOut(BaseModel):
    id: int
    description: str
    is_completed: bool
    parent_topic_id: Optional[int] = None
    attached_message_id: Optional[int] = None

class ResultOut(BaseModel):
    result: str
