"""
Resolve the configured search backend.
"""

from django.conf import settings
from django.utils.module_loading import import_string

from discussions.search.base import (
    BaseDocumentSearchBackend,
    BaseSearchBackend,
    BaseThreadSearchBackend,
)


def get_search_backend() -> type[BaseSearchBackend]:
    """
    Return the search backend class named by the FORUM_SEARCH_BACKEND setting.
    """
    return import_string(settings.FORUM_SEARCH_BACKEND)


def get_document_search_backend() -> BaseDocumentSearchBackend:
    return get_search_backend().get_document_search_backend()


def get_thread_search_backend() -> BaseThreadSearchBackend:
    return get_search_backend().get_thread_search_backend()
