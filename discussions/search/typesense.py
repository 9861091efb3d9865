"""
Typesense backend for searching comments and threads.
"""

import logging
from collections import Counter
from typing import Any, Optional, cast

from bs4 import BeautifulSoup
from django.conf import settings
from django.core.paginator import Paginator

from typesense.client import Client
from typesense.types.collection import CollectionCreateSchema
from typesense.types.document import DocumentSchema, SearchParameters
from typesense.exceptions import ObjectNotFound

from discussions.backends.mysql.models import Comment, CommentThread
from discussions.constants import COMMENT_INDEX_NAME, THREAD_INDEX_NAME
from discussions.search.base import (
    BaseDocumentSearchBackend,
    BaseIndexSearchBackend,
    BaseSearchBackend,
    BaseThreadSearchBackend,
)

log = logging.getLogger(__name__)

_TYPESENSE_CLIENT: Client | None = None

INDEXED_FIELDS = ("thread_id", "course_id", "commentable_id", "context", "text")


def get_typesense_client() -> Client:
    """
    Return a singleton Typesense client instance.
    """
    global _TYPESENSE_CLIENT
    if _TYPESENSE_CLIENT is None:
        _TYPESENSE_CLIENT = Client(
            {
                "api_key": settings.TYPESENSE_API_KEY,
                "nodes": settings.TYPESENSE_URLS,
            }
        )
    return _TYPESENSE_CLIENT


def quote_filter_value(value: str) -> str:
    """
    Sanitize and safely quote a value for use in a Typesense filter.

    https://typesense.org/docs/guide/tips-for-filtering.html#escaping-special-characters
    """
    return "`" + value.replace("`", "") + "`"


def collection_name() -> str:
    """
    Generate the collection name to use in Typesense.
    """
    return settings.TYPESENSE_COLLECTION_PREFIX + "discussions"


def collection_schema() -> CollectionCreateSchema:
    """
    The schema to use for creating the collection.
    """
    return {
        "name": collection_name(),
        # NOTE: there's always an implicit "id" field
        "fields": [{"name": name, "type": "string"} for name in INDEXED_FIELDS],
    }


def expected_full_collection_schema() -> dict[str, Any]:
    """
    What is expected to be the full collection schema, as returned by the server.

    Typesense may add new keys to the schema; only the keys listed here are validated.
    """
    field_defaults = {
        "facet": False,
        "index": True,
        "infix": False,
        "locale": "",
        "optional": False,
        "sort": False,
        "stem": False,
        "store": True,
        "type": "string",
    }
    return {
        "default_sorting_field": "",
        "enable_nested_fields": False,
        "fields": [{**field_defaults, "name": name} for name in INDEXED_FIELDS],
        "name": collection_name(),
        "symbols_to_index": [],
        "token_separators": [],
    }


def html_to_text(body: Optional[str]) -> str:
    """
    Strip markup from a body before indexing.
    """
    if not body:
        return ""
    return BeautifulSoup(body, features="html.parser").get_text()


def document_from_thread(doc_id: str | int, data: dict[str, Any]) -> DocumentSchema:
    """
    Build a Typesense document from a thread's data.
    """
    return {
        "id": f"thread-{doc_id}",
        "thread_id": str(doc_id),
        "course_id": str(data.get("course_id", "")),
        "commentable_id": str(data.get("commentable_id") or ""),
        "context": str(data.get("context", "")),
        "text": "{}\n{}".format(str(data.get("title", "")), html_to_text(data.get("body"))),
    }


def document_from_comment(doc_id: str | int, data: dict[str, Any]) -> DocumentSchema:
    """
    Build a Typesense document from a comment's data.

    Comments are indexed with the commentable_id and context of their thread,
    so that a match in a comment passes the same filters as its thread.
    """
    return {
        "id": f"comment-{doc_id}",
        "thread_id": str(data.get("comment_thread_id", "")),
        "course_id": str(data.get("course_id", "")),
        "commentable_id": str(data.get("commentable_id") or ""),
        "context": str(data.get("context", "")),
        "text": html_to_text(data.get("body")),
    }


def typesense_document_id(index_name: str, doc_id: str | int) -> str:
    """
    Map an index name and content id to the id of its Typesense document.
    """
    if index_name == COMMENT_INDEX_NAME:
        return f"comment-{doc_id}"
    if index_name == THREAD_INDEX_NAME:
        return f"thread-{doc_id}"
    raise NotImplementedError(f"unknown index name: {index_name}")


def build_search_parameters(
    *,
    search_text: str,
    course_id: str | None,
    context: str,
    commentable_ids: list[str] | None,
) -> SearchParameters:
    """
    Build Typesense search parameters for searching the index.
    """
    # `context` is always a single word,
    # so we can gain performance without losing accuracy by using the faster `:` (non-exact) operator.
    filters = [f"context:{quote_filter_value(context)}"]

    if commentable_ids:
        safe_ids = ", ".join(quote_filter_value(value) for value in commentable_ids)
        filters.append(f"commentable_id:[{safe_ids}]")

    if course_id:
        filters.append(f"course_id:={quote_filter_value(course_id)}")

    return {
        "q": search_text,
        "query_by": "text",
        "filter_by": " && ".join(filters),
        "per_page": settings.FORUM_SEARCH_MAX_HITS,
        # Every term must match; partial matches are handled by suggestions.
        "drop_tokens_threshold": 0,
        "num_typos": 0,
    }


class TypesenseDocumentBackend(BaseDocumentSearchBackend):
    """
    Document backend implementation for Typesense.
    """

    def index_document(
        self, index_name: str, doc_id: str | int, document: dict[str, Any]
    ) -> None:
        """
        Index a document in Typesense.
        """
        if index_name == COMMENT_INDEX_NAME:
            typesense_document = document_from_comment(doc_id, document)
        elif index_name == THREAD_INDEX_NAME:
            typesense_document = document_from_thread(doc_id, document)
        else:
            raise NotImplementedError(f"unknown index name: {index_name}")

        client = get_typesense_client()
        client.collections[collection_name()].documents.upsert(typesense_document)

    def update_document(
        self, index_name: str, doc_id: str | int, update_data: dict[str, Any]
    ) -> None:
        """
        Same operation as index_document, because upsert is used.
        """
        return self.index_document(index_name, doc_id, update_data)

    def delete_document(self, index_name: str, doc_id: str | int) -> None:
        """
        Delete a document from Typesense.
        """
        typesense_doc_id = typesense_document_id(index_name, doc_id)
        client = get_typesense_client()
        client.collections[collection_name()].documents[typesense_doc_id].delete(
            delete_parameters={"ignore_not_found": True},
        )


class TypesenseIndexBackend(BaseIndexSearchBackend):
    """
    Manage indexes for the Typesense backend.

    Typesense calls these "collections". https://typesense.org/docs/29.0/api/collections.html
    """

    def initialize_indices(self, force_new_index: bool = False) -> None:
        """
        Initialize the indices in Typesense.

        If force_new_index is True, the indexes will be dropped before being recreated.
        """
        client = get_typesense_client()
        name = collection_name()
        exists: bool = True
        try:
            client.collections[name].retrieve()
        except ObjectNotFound:
            exists = False

        if force_new_index and exists:
            client.collections[name].delete()

        if force_new_index or not exists:
            client.collections.create(collection_schema())

    def rebuild_indices(
        self, batch_size: int = 500, extra_catchup_minutes: int = 5
    ) -> None:
        """
        Drop and recreate the collection, then reindex every thread and comment.

        Note that the `extra_catchup_minutes` argument is ignored.
        """
        client = get_typesense_client()
        self.initialize_indices(force_new_index=True)

        for queryset, document_builder in [
            (CommentThread.objects.order_by("pk"), document_from_thread),
            (
                Comment.objects.select_related("comment_thread").order_by("pk"),
                document_from_comment,
            ),
        ]:
            paginator = Paginator(queryset, per_page=batch_size)
            for page_number in paginator.page_range:
                documents = [
                    document_builder(obj.pk, obj.doc_to_hash())
                    for obj in paginator.get_page(page_number).object_list
                ]
                if not documents:
                    continue
                response = client.collections[collection_name()].documents.import_(
                    documents, {"action": "upsert"}
                )
                if not all(result["success"] for result in response):
                    raise ValueError(
                        f"Errors while importing documents to Typesense collection: {response}"
                    )

    def validate_indices(self) -> None:
        """
        Raise an AssertionError if the collection schema differs from the expected one.

        Keys that Typesense adds and that we don't know about are ignored.
        """
        client = get_typesense_client()
        name = collection_name()
        actual_schema = cast(dict[str, Any], client.collections[name].retrieve())
        expected_schema = expected_full_collection_schema()
        errors: list[str] = []

        actual_fields = {field["name"]: field for field in actual_schema["fields"]}
        expected_fields = {field["name"]: field for field in expected_schema["fields"]}

        if missing := expected_fields.keys() - actual_fields.keys():
            errors.append(f"'{name}' collection is missing field(s): {sorted(missing)}.")
        if extra := actual_fields.keys() - expected_fields.keys():
            errors.append(f"'{name}' collection has unexpected field(s): {sorted(extra)}.")

        for field_name in expected_fields.keys() & actual_fields.keys():
            for key, expected_value in expected_fields[field_name].items():
                actual_value = actual_fields[field_name].get(key)
                if actual_value != expected_value:
                    errors.append(
                        f"'{name}' field '{field_name}' key '{key}': "
                        f"expected '{expected_value}', got '{actual_value}'."
                    )

        for key, expected_value in expected_schema.items():
            if key != "fields" and actual_schema.get(key) != expected_value:
                errors.append(
                    f"'{name}' key '{key}': expected '{expected_value}', "
                    f"got '{actual_schema.get(key)}'."
                )

        if errors:
            for error in errors:
                log.error(error)
            raise AssertionError("\n".join(errors))

    def refresh_indices(self) -> None:
        """
        Noop on Typesense, as all write API operations are synchronous.
        """
        return None

    def delete_unused_indices(self) -> int:
        """
        Noop for this implementation.
        """
        return 0


class TypesenseThreadSearchBackend(BaseThreadSearchBackend):
    """
    Thread search backend implementation for Typesense.
    """

    def get_thread_ids(
        self,
        context: str,
        # Group filtering is applied on the database query instead.
        group_ids: list[int],
        search_text: str,
        # Ranking is applied on the database query instead.
        sort_criteria: Optional[list[dict[str, str]]] = None,
        commentable_ids: Optional[list[str]] = None,
        course_id: Optional[str] = None,
    ) -> list[str]:
        """
        Retrieve thread IDs based on search criteria.
        """
        client = get_typesense_client()

        params = build_search_parameters(
            search_text=search_text,
            course_id=course_id,
            context=context,
            commentable_ids=commentable_ids,
        )

        results = client.collections[collection_name()].documents.search(params)
        thread_ids: set[str] = {
            hit["document"]["thread_id"] for hit in results.get("hits", [])  # type: ignore
        }
        return list(thread_ids)

    def get_suggested_text(self, search_text: str) -> Optional[str]:
        """
        Suggest a spelling for a term that matches no document.

        The typo-tolerant search ranks documents by closeness; the token
        matched most often in the top documents is the suggestion.
        """
        documents = get_typesense_client().collections[collection_name()].documents
        term = search_text.strip().lower()
        exact = documents.search(
            {"q": term, "query_by": "text", "num_typos": 0, "prefix": False, "per_page": 1}
        )
        if exact.get("found", 0):
            return None

        results = documents.search(
            {
                "q": term,
                "query_by": "text",
                "num_typos": 2,
                "prefix": False,
                "per_page": settings.FORUM_SUGGESTION_MAX_DOCUMENTS,
            }
        )
        candidates: Counter[str] = Counter()
        for hit in results.get("hits", []):
            for highlight in hit.get("highlights", []):  # type: ignore
                for token in highlight.get("matched_tokens", []):
                    candidates[str(token).lower()] += 1
        candidates.pop(term, None)
        if not candidates:
            return None
        return candidates.most_common(1)[0][0]


class TypesenseBackend(BaseSearchBackend):
    """
    Typesense-powered search backend.
    """

    DOCUMENT_SEARCH_CLASS = TypesenseDocumentBackend
    INDEX_SEARCH_CLASS = TypesenseIndexBackend
    THREAD_SEARCH_CLASS = TypesenseThreadSearchBackend
