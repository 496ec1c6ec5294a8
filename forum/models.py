from datetime import datetime, UTC
from typing import List, Optional
from sqlmodel import Field, Relationship, SQLModel


class TopicTagLink(SQLModel, table=True):
    # the only place a topic<->tag edge is stored; Topic.tags and Tag.topics both read it
    topic_id: Optional[int] = Field(default=None, foreign_key="topic.id", primary_key=True)
    tag_id: Optional[int] = Field(default=None, foreign_key="tag.id", primary_key=True)


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    is_blocked: bool = Field(default=False)
    is_removed: bool = Field(default=False)
    is_moderator: bool = Field(default=False)

    topics_created: List["Topic"] = Relationship(back_populates="created_by")


class Category(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    is_archived: bool = Field(default=False, index=True)

    topics: List["Topic"] = Relationship(back_populates="parent_category")


class Tag(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(unique=True, index=True)

    topics: List["Topic"] = Relationship(back_populates="tags", link_model=TopicTagLink)


class Topic(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    description: str = ""
    tag_string: Optional[str] = None
    parent_category_id: Optional[int] = Field(default=None, foreign_key="category.id", index=True)
    created_by_id: Optional[int] = Field(default=None, foreign_key="user.id", index=True)

    # moderator-level and owner-level archive flags are independent
    is_archived: bool = Field(default=False, index=True)
    is_self_archived: bool = Field(default=False, index=True)

    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    parent_category: Optional[Category] = Relationship(back_populates="topics")
    created_by: Optional[User] = Relationship(back_populates="topics_created")
    tags: List[Tag] = Relationship(back_populates="topics", link_model=TopicTagLink)
    chats: List["Message"] = Relationship(back_populates="parent_topic")
    tasks: List["Task"] = Relationship(back_populates="topic")
    announcements: List["Announcement"] = Relationship(back_populates="topic")

    @property
    def pinned_messages(self) -> list["Message"]:
        return [m for m in self.chats if m.is_pinned]


class Message(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    parent_topic_id: Optional[int] = Field(default=None, foreign_key="topic.id", index=True)
    user_id: Optional[int] = Field(default=None, foreign_key="user.id")
    description: str = ""
    is_pinned: bool = Field(default=False)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    parent_topic: Optional[Topic] = Relationship(back_populates="chats")
    user: Optional[User] = Relationship()


class Task(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    topic_id: Optional[int] = Field(default=None, foreign_key="topic.id", index=True)
    description: str = ""
    is_completed: bool = Field(default=False, index=True)
    attached_message_id: Optional[int] = Field(default=None, foreign_key="message.id")

    topic: Optional[Topic] = Relationship(back_populates="tasks")


class Announcement(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    topic_id: Optional[int] = Field(default=None, foreign_key="topic.id", index=True)
    description: str = ""
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    topic: Optional[Topic] = Relationship(back_populates="announcements")
