"""Production settings for the discussions app."""

from typing import Any

from discussions.constants import (
    FORUM_MAX_DEEP_SEARCH_COMMENT_COUNT,
    FORUM_MAX_SUGGESTION_DOCUMENTS,
)


def plugin_settings(settings: Any) -> None:
    """
    Apply the discussions default settings in-place.
    """
    settings.FORUM_SEARCH_BACKEND = getattr(
        settings,
        "FORUM_SEARCH_BACKEND",
        "discussions.search.typesense.TypesenseBackend",
    )
    settings.TYPESENSE_API_KEY = getattr(settings, "TYPESENSE_API_KEY", "")
    settings.TYPESENSE_URLS = getattr(
        settings,
        "TYPESENSE_URLS",
        [{"host": "localhost", "port": "8108", "protocol": "http"}],
    )
    settings.TYPESENSE_COLLECTION_PREFIX = getattr(
        settings, "TYPESENSE_COLLECTION_PREFIX", ""
    )
    settings.FORUM_SEARCH_MAX_HITS = getattr(
        settings, "FORUM_SEARCH_MAX_HITS", FORUM_MAX_DEEP_SEARCH_COMMENT_COUNT
    )
    settings.FORUM_SUGGESTION_MAX_DOCUMENTS = getattr(
        settings, "FORUM_SUGGESTION_MAX_DOCUMENTS", FORUM_MAX_SUGGESTION_DOCUMENTS
    )
