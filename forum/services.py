from __future__ import annotations
from typing import Optional
from sqlmodel import select
import logging

from .auth import AuthContext, require_active, require_manager
from .db import session_scope
from .errors import (
    CategoryArchivedError,
    CategoryRemovedError,
    TopicRemovedError,
    NoAuthorizationError,
    MessageRemovedError,
    TaskRemovedError,
    TOPIC_DELETE_RESULT,
    TOPIC_ARCHIVE_RESULT,
    TOPIC_UNARCHIVE_RESULT,
)
from .models import Announcement, Category, Message, Tag, Task, Topic, User
from .schemas import (
    AnnouncementOut,
    ChatOut,
    MessageOut,
    ResultOut,
    TagOut,
    TaskOut,
    TopicDetailOut,
    TopicOut,
    UserBrief,
)
from .tags import find_unique_tags


logger = logging.getLogger(__name__)


# ---------- helpers ----------
def _get_topic(s, topic_id: int) -> Topic:
    topic = s.get(Topic, topic_id)
    if not topic:
        raise TopicRemovedError()
    return topic

def _find_tag(s, name: str) -> Optional[Tag]:
    return s.exec(select(Tag).where(Tag.name == name)).first()

def _link_tag(s, topic: Topic, name: str) -> Tag:
    """Attach the tag called `name` to the topic, creating the tag if needed."""
    tag = _find_tag(s, name)
    if tag is None:
        tag = Tag(name=name)
        s.add(tag)
        logger.info("Created tag %r", name)
    if not any(t is tag for t in topic.tags):
        topic.tags.append(tag)
    return tag

def _unlink_tag(s, topic: Topic, tag: Tag) -> None:
    """Detach the tag from the topic; a tag left without topics is deleted."""
    if topic in tag.topics:
        tag.topics.remove(topic)
    if not tag.topics:
        s.delete(tag)
        logger.info("Deleted orphaned tag %r", tag.name)

def _topic_out(topic: Topic) -> TopicOut:
    # tags follow the order they are written in the tag string
    order = find_unique_tags(topic.tag_string)
    tags = sorted(
        topic.tags,
        key=lambda t: order.index(t.name) if t.name in order else len(order),
    )
    creator = topic.created_by
    return TopicOut(
        id=topic.id,
        name=topic.name,
        description=topic.description,
        tag_string=topic.tag_string,
        parent_category_id=topic.parent_category_id,
        created_by=UserBrief.model_validate(creator) if creator else None,
        tags=[TagOut.model_validate(t) for t in tags],
        is_archived=topic.is_archived,
        is_self_archived=topic.is_self_archived,
        created_at=topic.created_at,
    )


# ---------- queries ----------
def list_topics() -> list[TopicOut]:
    """All topics with creator and tags expanded."""
    with session_scope() as s:
        topics = s.exec(select(Topic).order_by(Topic.id)).all()
        return [_topic_out(t) for t in topics]


def get_topic(topic_id: int) -> TopicDetailOut:
    """A topic plus its pinned messages and announcements as sibling fields."""
    with session_scope() as s:
        topic = _get_topic(s, topic_id)
        pinned = sorted(topic.pinned_messages, key=lambda m: m.id)
        announcements = sorted(topic.announcements, key=lambda a: a.id)
        return TopicDetailOut(
            topic=_topic_out(topic),
            pinned_messages=[MessageOut.model_validate(m) for m in pinned],
            announcements=[AnnouncementOut.model_validate(a) for a in announcements],
        )


def get_topic_chats(topic_id: int) -> list[ChatOut]:
    """Messages of a topic, each with a brief view of its author."""
    with session_scope() as s:
        topic = _get_topic(s, topic_id)
        return [ChatOut.model_validate(m) for m in sorted(topic.chats, key=lambda m: m.id)]


def get_topic_tasks(topic_id: int) -> list[TaskOut]:
    """
    Open tasks of a topic. A task attached to a message shows that
    message's description and parent topic instead of its own.
    """
    with session_scope() as s:
        topic = _get_topic(s, topic_id)
        out: list[TaskOut] = []
        for task in sorted(topic.tasks, key=lambda t: t.id):
            if task.is_completed:
                continue
            view = TaskOut(
                id=task.id,
                description=task.description,
                is_completed=task.is_completed,
                parent_topic_id=task.topic_id,
                attached_message_id=task.attached_message_id,
            )
            if task.attached_message_id is not None:
                message = s.get(Message, task.attached_message_id)
                if message is not None:
                    view.description = message.description
                    view.parent_topic_id = message.parent_topic_id
            out.append(view)
        return out


# ---------- mutations ----------
def create_topic(
    caller: AuthContext,
    name: str,
    parent_category_id: int,
    description: str = "",
    tag_string: Optional[str] = None,
) -> TopicOut:
    user = require_active(caller)
    with session_scope() as s:
        category = s.get(Category, parent_category_id)
        if not category:
            raise CategoryRemovedError()
        if category.is_archived:
            raise CategoryArchivedError()

        topic = Topic(
            name=name,
            description=description,
            tag_string=tag_string,
            parent_category_id=category.id,
            created_by_id=user.id,
        )
        s.add(topic)
        for tag_name in find_unique_tags(tag_string):
            _link_tag(s, topic, tag_name)

        s.flush()  # get the ID assigned
        s.refresh(topic)
        logger.info("User #%s created topic #%s in category #%s", user.id, topic.id, category.id)
        return _topic_out(topic)


def update_topic(
    caller: AuthContext,
    topic_id: int,
    *,
    name: str,
    description: str = "",
    tag_string: Optional[str] = None,
) -> TopicOut:
    """
    Replace name, description and tag string. Only the tag delta is
    touched: tags dropped from the string are unlinked (and deleted when
    no topic uses them any more), new ones are linked, the rest stay.
    """
    user = require_active(caller)
    with session_scope() as s:
        topic = _get_topic(s, topic_id)
        require_manager(user, topic.created_by_id)

        old_tags = find_unique_tags(topic.tag_string)
        new_tags = find_unique_tags(tag_string)
        removable = [t for t in old_tags if t not in new_tags]
        addable = [t for t in new_tags if t not in old_tags]

        for tag_name in removable:
            tag = _find_tag(s, tag_name)
            if tag is not None:
                _unlink_tag(s, topic, tag)
        for tag_name in addable:
            _link_tag(s, topic, tag_name)

        topic.name = name
        topic.description = description
        topic.tag_string = tag_string
        s.add(topic)
        s.flush()
        s.refresh(topic)
        logger.info(
            "User #%s updated topic #%s (tags -%s +%s)",
            user.id, topic.id, removable, addable,
        )
        return _topic_out(topic)


def delete_topic(caller: AuthContext, topic_id: int) -> ResultOut:
    """Delete a topic with its messages, tasks and announcements; orphaned tags go too."""
    user = require_active(caller)
    with session_scope() as s:
        topic = _get_topic(s, topic_id)
        require_manager(user, topic.created_by_id)
        category = None
        if topic.parent_category_id is not None:
            category = s.get(Category, topic.parent_category_id)
        if category is None:
            raise CategoryRemovedError()

        for tag in list(topic.tags):
            _unlink_tag(s, topic, tag)
        for task in list(topic.tasks):
            s.delete(task)
        for announcement in list(topic.announcements):
            s.delete(announcement)
        for message in list(topic.chats):
            s.delete(message)
        s.delete(topic)
        logger.info("User #%s deleted topic #%s", user.id, topic_id)
        return ResultOut(result=TOPIC_DELETE_RESULT)


def _set_self_archived(caller: AuthContext, topic_id: int, value: bool) -> None:
    user = require_active(caller)
    with session_scope() as s:
        topic = _get_topic(s, topic_id)
        require_manager(user, topic.created_by_id)
        if topic.is_archived:
            # a moderator archive locks the self-archive flag
            raise NoAuthorizationError()
        topic.is_self_archived = value
        s.add(topic)
        logger.info("User #%s set self-archived=%s on topic #%s", user.id, value, topic_id)

def archive_topic(caller: AuthContext, topic_id: int) -> ResultOut:
    _set_self_archived(caller, topic_id, True)
    return ResultOut(result=TOPIC_ARCHIVE_RESULT)

def unarchive_topic(caller: AuthContext, topic_id: int) -> ResultOut:
    _set_self_archived(caller, topic_id, False)
    return ResultOut(result=TOPIC_UNARCHIVE_RESULT)


# ---------- users, categories, topic content ----------
def create_user(name: str, is_moderator: bool = False) -> User:
    with session_scope() as s:
        user = User(name=name, is_moderator=is_moderator)
        s.add(user)
        s.flush()
        s.refresh(user)
        return user

def get_user(user_id: int) -> Optional[User]:
    with session_scope() as s:
        return s.get(User, user_id)

def create_category(name: str) -> Category:
    with session_scope() as s:
        category = Category(name=name)
        s.add(category)
        s.flush()
        s.refresh(category)
        return category

def post_message(
    caller: AuthContext,
    topic_id: int,
    description: str,
    pinned: bool = False,
) -> MessageOut:
    """Any active user may post; pinning needs the topic owner or a moderator."""
    user = require_active(caller)
    with session_scope() as s:
        topic = _get_topic(s, topic_id)
        if pinned:
            require_manager(user, topic.created_by_id)
        message = Message(
            parent_topic_id=topic.id, user_id=user.id,
            description=description, is_pinned=pinned,
        )
        s.add(message)
        s.flush()
        s.refresh(message)
        return MessageOut.model_validate(message)

def add_task(
    caller: AuthContext,
    topic_id: int,
    description: str = "",
    attached_message_id: Optional[int] = None,
) -> TaskOut:
    require_active(caller)
    with session_scope() as s:
        topic = _get_topic(s, topic_id)
        if attached_message_id is not None and s.get(Message, attached_message_id) is None:
            raise MessageRemovedError()
        task = Task(topic_id=topic.id, description=description, attached_message_id=attached_message_id)
        s.add(task)
        s.flush()
        s.refresh(task)
        return TaskOut(
            id=task.id, description=task.description, is_completed=task.is_completed,
            parent_topic_id=task.topic_id, attached_message_id=task.attached_message_id,
        )

def complete_task(caller: AuthContext, task_id: int) -> None:
    """Only the owner of the task's topic or a moderator may close a task."""
    user = require_active(caller)
    with session_scope() as s:
        task = s.get(Task, task_id)
        if task is None:
            raise TaskRemovedError()
        topic = s.get(Topic, task.topic_id) if task.topic_id is not None else None
        require_manager(user, topic.created_by_id if topic else None)
        task.is_completed = True
        s.add(task)

def add_announcement(caller: AuthContext, topic_id: int, description: str) -> AnnouncementOut:
    user = require_active(caller)
    with session_scope() as s:
        topic = _get_topic(s, topic_id)
        require_manager(user, topic.created_by_id)
        announcement = Announcement(topic_id=topic.id, description=description)
        s.add(announcement)
        s.flush()
        s.refresh(announcement)
        return AnnouncementOut.model_validate(announcement)
