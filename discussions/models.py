"""
Discussions models.
"""

from discussions.backends.mysql.models import (  # noqa: F401
    AbuseFlagger,
    Comment,
    CommentThread,
    LastReadTime,
    Notification,
    ReadState,
    UserVote,
)
