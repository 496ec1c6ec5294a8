import pytest

from forum.auth import AuthContext
from forum.db import session_scope
from forum.errors import (
    AuthenticationError, MessageRemovedError, NoAuthorizationError, TaskRemovedError, TopicRemovedError,
)
from forum.models import User
from forum.services import (
    add_announcement, add_task, complete_task, create_topic, get_topic,
    get_topic_chats, get_topic_tasks, list_topics, post_message,
)


def test_list_topics_expands_creator_and_tags(alice, bob, category):
    t1 = create_topic(AuthContext.for_user(alice), "one", category.id, tag_string="z, a")
    t2 = create_topic(AuthContext.for_user(bob), "two", category.id)

    topics = list_topics()
    assert [t.id for t in topics] == [t1.id, t2.id]
    assert [t.created_by.name for t in topics] == ["alice", "bob"]
    # tag order follows the tag string
    assert [tag.name for tag in topics[0].tags] == ["z", "a"]
    assert topics[1].tags == []


def test_get_topic_splits_out_pinned_and_announcements(alice, bob, category):
    caller = AuthContext.for_user(alice)
    topic = create_topic(caller, "t", category.id, "desc", "news")
    post_message(AuthContext.for_user(bob), topic.id, "plain")
    pinned = post_message(caller, topic.id, "read me first", pinned=True)
    ann = add_announcement(caller, topic.id, "meeting at 5")

    detail = get_topic(topic.id)
    assert detail.topic.id == topic.id
    assert detail.topic.description == "desc"
    assert [m.id for m in detail.pinned_messages] == [pinned.id]
    assert [a.id for a in detail.announcements] == [ann.id]
    dumped = detail.topic.model_dump()
    assert "pinned_messages" not in dumped
    assert "announcements" not in dumped


def test_only_owner_or_moderator_pins_and_announces(alice, bob, category):
    topic = create_topic(AuthContext.for_user(alice), "t", category.id)
    with pytest.raises(NoAuthorizationError):
        post_message(AuthContext.for_user(bob), topic.id, "pin me", pinned=True)
    with pytest.raises(NoAuthorizationError):
        add_announcement(AuthContext.for_user(bob), topic.id, "hear ye")


def test_get_topic_missing(db):
    with pytest.raises(TopicRemovedError):
        get_topic(123)


def test_chats_carry_a_brief_user(alice, bob, category):
    topic = create_topic(AuthContext.for_user(alice), "t", category.id)
    post_message(AuthContext.for_user(alice), topic.id, "hello")
    post_message(AuthContext.for_user(bob), topic.id, "hi alice")

    chats = get_topic_chats(topic.id)
    assert [c.description for c in chats] == ["hello", "hi alice"]
    assert [(c.user.id, c.user.name) for c in chats] == [(alice.id, "alice"), (bob.id, "bob")]


def test_chat_of_deleted_user_has_no_user(alice, bob, category):
    topic = create_topic(AuthContext.for_user(alice), "t", category.id)
    post_message(AuthContext.for_user(bob), topic.id, "bye")
    with session_scope() as s:
        s.delete(s.get(User, bob.id))

    chats = get_topic_chats(topic.id)
    assert len(chats) == 1
    assert chats[0].user is None


def test_chats_of_missing_topic(db):
    with pytest.raises(TopicRemovedError):
        get_topic_chats(5)


def test_tasks_hide_completed_and_borrow_from_messages(alice, category):
    caller = AuthContext.for_user(alice)
    topic = create_topic(caller, "t", category.id)
    other = create_topic(caller, "other", category.id)
    msg = post_message(caller, other.id, "from the other topic")

    open_task = add_task(caller, topic.id, "write docs")
    attached = add_task(caller, topic.id, "ignored", attached_message_id=msg.id)
    done = add_task(caller, topic.id, "already done")
    complete_task(caller, done.id)

    tasks = get_topic_tasks(topic.id)
    assert [t.id for t in tasks] == [open_task.id, attached.id]
    assert all(not t.is_completed for t in tasks)
    assert tasks[0].description == "write docs"
    assert tasks[0].parent_topic_id == topic.id
    assert tasks[1].description == "from the other topic"
    assert tasks[1].parent_topic_id == other.id


def test_tasks_of_missing_topic(db):
    with pytest.raises(TopicRemovedError):
        get_topic_tasks(5)


def test_task_cannot_attach_unknown_message(alice, category):
    caller = AuthContext.for_user(alice)
    topic = create_topic(caller, "t", category.id)
    with pytest.raises(MessageRemovedError):
        add_task(caller, topic.id, "dangling", attached_message_id=999)
    assert get_topic_tasks(topic.id) == []


def test_only_owner_or_moderator_completes_tasks(alice, bob, moderator, category):
    topic = create_topic(AuthContext.for_user(alice), "t", category.id)
    first = add_task(AuthContext.for_user(bob), topic.id, "first")
    second = add_task(AuthContext.for_user(bob), topic.id, "second")

    with pytest.raises(NoAuthorizationError):
        complete_task(AuthContext.for_user(bob), first.id)
    with pytest.raises(AuthenticationError):
        complete_task(AuthContext.anonymous(), first.id)
    assert [t.id for t in get_topic_tasks(topic.id)] == [first.id, second.id]

    complete_task(AuthContext.for_user(alice), first.id)
    complete_task(AuthContext.for_user(moderator), second.id)
    assert get_topic_tasks(topic.id) == []


def test_complete_missing_task(alice, db):
    with pytest.raises(TaskRemovedError):
        complete_task(AuthContext.for_user(alice), 404)
