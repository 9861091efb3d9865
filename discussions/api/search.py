"""
Native Python thread search API.
"""

import logging
from typing import Any, Optional

from discussions.backends.mysql.api import MySQLBackend as backend
from discussions.search.backend import get_thread_search_backend
from discussions.search.base import BaseThreadSearchBackend
from discussions.serializers.search import (
    SearchThreadsParamsSerializer,
    ThreadSummarySerializer,
)

log = logging.getLogger(__name__)


def empty_search_result() -> dict[str, Any]:
    return {"collection": [], "total_results": 0, "num_pages": 0, "page": 1}


def get_corrected_text(
    search_text: str, thread_search: BaseThreadSearchBackend
) -> Optional[str]:
    """
    Replace every term of search_text that matches nothing by its suggested spelling.

    Returns:
        The corrected text, or None when no term has a suggestion.
    """
    terms = search_text.split()
    corrected_terms = []
    for term in terms:
        suggestion = thread_search.get_suggested_text(term)
        corrected_terms.append(suggestion or term)
    if corrected_terms == terms:
        return None
    return " ".join(corrected_terms)


def _search(
    thread_search: BaseThreadSearchBackend,
    search_text: str,
    params: dict[str, Any],
) -> dict[str, Any]:
    thread_ids = thread_search.get_thread_ids(
        context=params["context"],
        group_ids=params["group_ids"],
        search_text=search_text,
        commentable_ids=params["commentable_ids"],
        course_id=params.get("course_id"),
    )
    return backend.get_thread_search_page(
        thread_ids,
        sort_key=params["sort_key"],
        page=params["page"],
        per_page=params["per_page"],
        course_id=params.get("course_id"),
        context=params["context"],
        commentable_ids=params["commentable_ids"],
        group_ids=params["group_ids"],
        filter_flagged=params["flagged"],
        filter_unanswered=params["unanswered"],
        filter_unread=params["unread"],
        user_id=params.get("user_id"),
    )


def search_threads(**kwargs: Any) -> dict[str, Any]:
    """
    Search threads by text, with filters, sorting, pagination and spelling correction.

    Parameters:
        text: The free-text query. Required for a non-empty result.
        course_id, commentable_id, commentable_ids, group_id, group_ids,
        context, flagged, unanswered, unread, user_id: Filters, combined with AND.
        sort_key: "date", "activity", "votes" or "comments"; activity by default.
        page: 1-indexed page number.
        per_page: Number of threads per page, 20 by default.
    Response:
        {
            "collection": [thread summaries],
            "total_results": int,
            "num_pages": int,
            "page": int,
            "corrected_text": str, only when the results are those of a corrected query
        }

    Invalid parameters do not raise: the result is then empty. When the
    text matches nothing, each term matching no document is replaced by
    its suggested spelling and the search is run again with the same
    filters; the correction is kept only if it finds threads.
    """
    serializer = SearchThreadsParamsSerializer(data=kwargs)
    if not serializer.is_valid():
        log.info(f"Invalid thread search parameters: {serializer.errors}")
        return empty_search_result()
    params = serializer.validated_data

    search_text = params["text"]
    if not search_text:
        return empty_search_result()

    thread_search = get_thread_search_backend()
    result = _search(thread_search, search_text, params)
    corrected_text = None

    if not result["total_results"]:
        corrected_text = get_corrected_text(search_text, thread_search)
        if corrected_text:
            corrected_result = _search(thread_search, corrected_text, params)
            if corrected_result["total_results"]:
                result = corrected_result
            else:
                log.info(
                    f"Discarding correction '{corrected_text}' of '{search_text}': "
                    "no thread matches it"
                )
                corrected_text = None

    response = {
        "collection": ThreadSummarySerializer(result["threads"], many=True).data,
        "total_results": result["total_results"],
        "num_pages": result["num_pages"],
        "page": params["page"],
    }
    if corrected_text:
        response["corrected_text"] = corrected_text
    return response
