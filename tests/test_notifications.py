"""
Tests for mention notifications.
"""

import logging

import pytest
from django.contrib.auth import get_user_model

from discussions.backends.mysql.api import MySQLBackend as backend
from discussions.backends.mysql.models import Comment, CommentThread, Notification
from discussions.notifications import notify_mentioned_users

pytestmark = pytest.mark.django_db
User = get_user_model()


def create_thread(author_id: str, anonymous: bool = False) -> CommentThread:
    thread_id = backend.create_thread(
        {
            "title": "Sunday study group",
            "body": "Who is coming?",
            "course_id": "course1",
            "commentable_id": "general",
            "author_id": author_id,
            "anonymous": anonymous,
        }
    )
    return CommentThread.objects.get(pk=thread_id)


@pytest.fixture(name="users")
def fixture_users() -> dict[str, str]:
    return {
        username: str(backend.find_or_create_user(user_id, username=username).pk)
        for user_id, username in [("1", "author"), ("2", "bob"), ("3", "carol")]
    }


def test_notify_mentioned_users(users: dict[str, str]) -> None:
    thread = create_thread(users["author"])

    notification = notify_mentioned_users(
        thread, "thread", {users["bob"], users["carol"]}
    )

    assert notification is not None
    assert notification.notification_type == "at_user"
    assert notification.info == {
        "content_id": str(thread.pk),
        "content_type": "thread",
        "thread_title": "Sunday study group",
        "actor_username": "author",
    }
    assert notification.actor.username == "author"
    assert notification.target == thread
    assert sorted(user.username for user in notification.receivers.all()) == [
        "bob",
        "carol",
    ]


def test_author_is_not_notified(users: dict[str, str]) -> None:
    thread = create_thread(users["author"])

    notification = notify_mentioned_users(
        thread, "thread", {users["author"], users["bob"]}
    )

    assert notification is not None
    assert [user.username for user in notification.receivers.all()] == ["bob"]


def test_self_mention_only_creates_nothing(users: dict[str, str]) -> None:
    thread = create_thread(users["author"])

    assert notify_mentioned_users(thread, "thread", {users["author"]}) is None
    assert Notification.objects.count() == 0


def test_anonymous_content_hides_actor(users: dict[str, str]) -> None:
    thread = create_thread(users["author"], anonymous=True)

    notification = notify_mentioned_users(thread, "thread", {users["bob"]})

    assert notification is not None
    assert notification.actor is None
    assert "actor_username" not in notification.info
    assert notification.to_dict()["actor_id"] is None


def test_comment_notification_uses_thread_title(users: dict[str, str]) -> None:
    thread = create_thread(users["author"])
    comment_id = backend.create_comment(
        {"body": "count me in", "comment_thread_id": str(thread.pk), "author_id": "2"}
    )
    comment = Comment.objects.get(pk=comment_id)

    notification = notify_mentioned_users(comment, "comment", {users["carol"]})

    assert notification is not None
    assert notification.info["content_type"] == "comment"
    assert notification.info["content_id"] == str(comment.pk)
    assert notification.info["thread_title"] == "Sunday study group"
    assert notification.info["actor_username"] == "bob"
    assert notification.target == comment


def test_missing_users_are_skipped(
    users: dict[str, str], caplog: pytest.LogCaptureFixture
) -> None:
    thread = create_thread(users["author"])

    with caplog.at_level(logging.WARNING, logger="discussions.notifications"):
        notification = notify_mentioned_users(
            thread, "thread", {users["bob"], "9999"}
        )

    assert notification is not None
    assert [user.username for user in notification.receivers.all()] == ["bob"]
    assert "9999" in caplog.text
