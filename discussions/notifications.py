"""
Notify users mentioned in threads and comments.
"""

import logging
from typing import Iterable, Optional

from django.contrib.auth.models import User  # pylint: disable=E5142
from django.db import transaction

from discussions.backends.mysql.models import Content, Notification
from discussions.constants import AT_NOTIFICATION_TYPE
from discussions.utils import get_int_value

log = logging.getLogger(__name__)


def build_at_notification_info(content: Content, content_type: str) -> dict[str, str]:
    """
    Build the payload of a mention notification.

    The actor username is left out for anonymous content.
    """
    info = {
        "content_id": str(content.pk),
        "content_type": content_type,
        "thread_title": content.get_thread().title,
    }
    if not content.anonymous:
        info["actor_username"] = content.author.username
    return info


def notify_mentioned_users(
    content: Content, content_type: str, user_ids: Iterable[str]
) -> Optional[Notification]:
    """
    Create one notification for the users newly mentioned in a thread or comment.

    Args:
        content: The thread or comment containing the mentions.
        content_type: "thread" or "comment".
        user_ids: IDs of the newly mentioned users.

    Returns:
        The notification, or None when no one but the author is left to notify.
    """
    requested_ids = {
        user_id for user_id in map(get_int_value, user_ids) if user_id is not None
    }
    users = list(User.objects.filter(pk__in=requested_ids))
    if missing_ids := requested_ids - {user.pk for user in users}:
        log.warning(
            f"Skipping unknown mentioned users {sorted(missing_ids)} "
            f"in {content_type} {content.pk}"
        )

    receivers = [user for user in users if user.pk != content.author_id]
    if not receivers:
        return None

    with transaction.atomic():
        notification = Notification.objects.create(
            notification_type=AT_NOTIFICATION_TYPE,
            info=build_at_notification_info(content, content_type),
            actor=None if content.anonymous else content.author,
            target_content_type=content.content_type,
            target_object_id=content.pk,
        )
        notification.receivers.set(receivers)

    log.info(
        f"Created {AT_NOTIFICATION_TYPE} notification {notification.pk} "
        f"for {content_type} {content.pk} with {len(receivers)} receiver(s)"
    )
    return notification
