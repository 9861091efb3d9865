"""
Base classes for search backends.

A search backend is the external full-text index kept eventually consistent
with the content store. The discussions app only relies on the narrow
capability defined here: matching thread ids for a text query, and single
term spelling suggestions.
"""

from typing import Any, Optional


class BaseDocumentSearchBackend:
    """
    Keep index documents in sync with threads and comments.
    """

    def index_document(
        self, index_name: str, doc_id: str | int, document: dict[str, Any]
    ) -> None:
        """
        Add or replace a document in the index.
        """
        raise NotImplementedError

    def update_document(
        self, index_name: str, doc_id: str | int, update_data: dict[str, Any]
    ) -> None:
        """
        Update a document in the index.
        """
        raise NotImplementedError

    def delete_document(self, index_name: str, doc_id: str | int) -> None:
        """
        Remove a document from the index.
        """
        raise NotImplementedError


class BaseIndexSearchBackend:
    """
    Manage the indices of a search backend.
    """

    def initialize_indices(self, force_new_index: bool = False) -> None:
        """
        Create the indices, dropping them first if force_new_index is True.
        """
        raise NotImplementedError

    def rebuild_indices(
        self, batch_size: int = 500, extra_catchup_minutes: int = 5
    ) -> None:
        """
        Recreate the indices and reindex all content.
        """
        raise NotImplementedError

    def validate_indices(self) -> None:
        """
        Raise an exception if the indices are missing or invalid.
        """
        raise NotImplementedError

    def refresh_indices(self) -> None:
        """
        Make recent writes visible to searches.
        """
        raise NotImplementedError

    def delete_unused_indices(self) -> int:
        """
        Delete stale indices and return how many were deleted.
        """
        raise NotImplementedError


class BaseThreadSearchBackend:
    """
    Query the index for threads.
    """

    def get_thread_ids(
        self,
        context: str,
        group_ids: list[int],
        search_text: str,
        sort_criteria: Optional[list[dict[str, str]]] = None,
        commentable_ids: Optional[list[str]] = None,
        course_id: Optional[str] = None,
    ) -> list[str]:
        """
        Return the ids of threads whose text, or one of whose comments' text,
        matches every term of search_text.
        """
        raise NotImplementedError

    def get_suggested_text(self, search_text: str) -> Optional[str]:
        """
        Return the best alternate spelling of a single term.

        Terms that already match a document get no suggestion: None is
        returned for them, as well as when nothing close enough exists.
        """
        raise NotImplementedError


class BaseSearchBackend:
    """
    Bundle of the document, index and thread search classes of a backend.
    """

    DOCUMENT_SEARCH_CLASS: type[BaseDocumentSearchBackend] = BaseDocumentSearchBackend
    INDEX_SEARCH_CLASS: type[BaseIndexSearchBackend] = BaseIndexSearchBackend
    THREAD_SEARCH_CLASS: type[BaseThreadSearchBackend] = BaseThreadSearchBackend

    @classmethod
    def get_document_search_backend(cls) -> BaseDocumentSearchBackend:
        return cls.DOCUMENT_SEARCH_CLASS()

    @classmethod
    def get_index_search_backend(cls) -> BaseIndexSearchBackend:
        return cls.INDEX_SEARCH_CLASS()

    @classmethod
    def get_thread_search_backend(cls) -> BaseThreadSearchBackend:
        return cls.THREAD_SEARCH_CLASS()
