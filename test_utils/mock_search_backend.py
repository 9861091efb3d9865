"""
In-memory search backend for tests.

Documents are kept in a module-level dict; a document matches a query when
it contains every query term. Suggestions are the closest indexed word of
a term that is not indexed itself.
"""

import difflib
import re
from typing import Any, Optional

from discussions.constants import COMMENT_INDEX_NAME, THREAD_INDEX_NAME
from discussions.search.base import (
    BaseDocumentSearchBackend,
    BaseIndexSearchBackend,
    BaseSearchBackend,
    BaseThreadSearchBackend,
)

DOCUMENTS: dict[tuple[str, str], dict[str, Any]] = {}

WORD_REGEX = re.compile(r"\w+")


def tokenize(text: Optional[str]) -> set[str]:
    return set(WORD_REGEX.findall((text or "").lower()))


def document_tokens(document: dict[str, Any]) -> set[str]:
    return tokenize(document.get("title")) | tokenize(document.get("body"))


def document_thread_id(index_name: str, doc_id: str, document: dict[str, Any]) -> str:
    if index_name == COMMENT_INDEX_NAME:
        return str(document["comment_thread_id"])
    return doc_id


def clear_documents() -> None:
    DOCUMENTS.clear()


class MockDocumentBackend(BaseDocumentSearchBackend):
    """Store documents in memory."""

    def index_document(
        self, index_name: str, doc_id: str | int, document: dict[str, Any]
    ) -> None:
        if index_name not in (COMMENT_INDEX_NAME, THREAD_INDEX_NAME):
            raise NotImplementedError(f"unknown index name: {index_name}")
        DOCUMENTS[(index_name, str(doc_id))] = dict(document)

    def update_document(
        self, index_name: str, doc_id: str | int, update_data: dict[str, Any]
    ) -> None:
        self.index_document(index_name, doc_id, update_data)

    def delete_document(self, index_name: str, doc_id: str | int) -> None:
        DOCUMENTS.pop((index_name, str(doc_id)), None)


class MockIndexBackend(BaseIndexSearchBackend):
    """Noop index management."""

    def initialize_indices(self, force_new_index: bool = False) -> None:
        if force_new_index:
            clear_documents()

    def refresh_indices(self) -> None:
        return None

    def delete_unused_indices(self) -> int:
        return 0


class MockThreadSearchBackend(BaseThreadSearchBackend):
    """Search the in-memory documents."""

    def get_thread_ids(
        self,
        context: str,
        group_ids: list[int],
        search_text: str,
        sort_criteria: Optional[list[dict[str, str]]] = None,
        commentable_ids: Optional[list[str]] = None,
        course_id: Optional[str] = None,
    ) -> list[str]:
        terms = tokenize(search_text)
        thread_ids = set()
        for (index_name, doc_id), document in DOCUMENTS.items():
            if not terms or not terms <= document_tokens(document):
                continue
            if context and document.get("context") != context:
                continue
            if course_id and document.get("course_id") != course_id:
                continue
            if commentable_ids and document.get("commentable_id") not in commentable_ids:
                continue
            thread_ids.add(document_thread_id(index_name, doc_id, document))
        return list(thread_ids)

    def get_suggested_text(self, search_text: str) -> Optional[str]:
        term = search_text.strip().lower()
        vocabulary: set[str] = set()
        for document in DOCUMENTS.values():
            vocabulary |= document_tokens(document)
        if term in vocabulary:
            return None
        matches = difflib.get_close_matches(term, sorted(vocabulary), n=1, cutoff=0.7)
        return matches[0] if matches else None


class MockSearchBackend(BaseSearchBackend):
    """In-memory search backend."""

    DOCUMENT_SEARCH_CLASS = MockDocumentBackend
    INDEX_SEARCH_CLASS = MockIndexBackend
    THREAD_SEARCH_CLASS = MockThreadSearchBackend
