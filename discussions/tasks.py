"""
Background tasks of the discussions app.
"""

import hashlib
import logging
from typing import Optional

from celery import shared_task
from django.contrib.auth.models import User  # pylint: disable=E5142
from django.db import transaction

from discussions.backends.mysql.models import Comment, CommentThread, Content
from discussions.mentions import resolve_mentions
from discussions.notifications import notify_mentioned_users

log = logging.getLogger(__name__)

CONTENT_MODELS: dict[str, type[Content]] = {
    "thread": CommentThread,
    "comment": Comment,
}


class StaleMentionScanError(Exception):
    """
    The content changed after the scan was requested.

    The scan requested by the newer edit is responsible for the diff.
    """


def get_text_digest(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def find_user_by_username(username: str) -> Optional[User]:
    return User.objects.filter(username=username).first()


def enqueue_at_notifications(content: Content, content_type: str) -> None:
    """
    Schedule the mention scan of a thread or comment once the current transaction commits.
    """
    content_id = str(content.pk)
    text_digest = get_text_digest(content.get_mention_text())
    transaction.on_commit(
        lambda: process_at_notifications.delay(content_type, content_id, text_digest)
    )


def scan_content_mentions(
    content_type: str, content_id: str, text_digest: Optional[str] = None
) -> tuple[Optional[Content], set[str]]:
    """
    Recompute the stored mentions of a content and return the newly mentioned user ids.

    The content row stays locked while the mentions are diffed and
    replaced, so that scans of the same content run one at a time.

    Raises:
        StaleMentionScanError: if the text no longer matches text_digest.
    """
    model = CONTENT_MODELS[content_type]
    with transaction.atomic():
        content = model.objects.select_for_update().filter(pk=content_id).first()
        if content is None:
            log.info(f"{content_type} {content_id} was deleted before its mention scan")
            return None, set()

        text = content.get_mention_text()
        if text_digest is not None and get_text_digest(text) != text_digest:
            raise StaleMentionScanError(
                f"{content_type} {content_id} was edited after the mention scan was requested"
            )

        scan = resolve_mentions(text, content.at_position_list, find_user_by_username)
        content.at_position_list = scan.at_position_list
        content.save(update_fields=["at_position_list"])
    return content, scan.new_user_ids


@shared_task
def process_at_notifications(
    content_type: str, content_id: str, text_digest: Optional[str] = None
) -> None:
    """
    Update the mentions of a thread or comment and notify newly mentioned users.

    Failures are logged and not retried: the content stays saved and the
    notification is not sent.
    """
    try:
        content, new_user_ids = scan_content_mentions(
            content_type, content_id, text_digest
        )
        if content is not None and new_user_ids:
            notify_mentioned_users(content, content_type, new_user_ids)
    except StaleMentionScanError as error:
        log.info(f"Skipping mention notifications: {error}")
    except Exception:
        log.exception(
            f"Mention notifications failed for {content_type} {content_id}"
        )
        raise
