"""Discussions constants."""

FORUM_DEFAULT_PAGE = 1
FORUM_DEFAULT_PER_PAGE = 20

# Upper bound of index hits fetched for a single text query.
FORUM_MAX_DEEP_SEARCH_COMMENT_COUNT = 200

# Number of top-ranked documents inspected to build a spelling suggestion.
FORUM_MAX_SUGGESTION_DOCUMENTS = 10

DEFAULT_CONTEXT = "course"
CONTEXT_CHOICES = ("course", "standalone")

# Sort key -> annotated/stored thread field holding the primary metric.
# The default (no key) ranks like "activity".
SEARCH_SORT_FIELDS = {
    "date": "created_at",
    "activity": "last_activity_at",
    "votes": "votes_point",
    "comments": "comment_count",
}
DEFAULT_SORT_KEY = "activity"

AT_NOTIFICATION_TYPE = "at_user"

THREAD_INDEX_NAME = "comment_threads"
COMMENT_INDEX_NAME = "comments"
