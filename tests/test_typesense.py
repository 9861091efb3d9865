"""
Unit tests for the typesense search backend.
"""

from unittest.mock import MagicMock, Mock, patch

import pytest
from typesense.exceptions import ObjectNotFound

from discussions.backends.mysql.api import MySQLBackend
from discussions.search import typesense

COLLECTION = "forum_unittest_prefix_discussions"
COURSE_ID = "course-v1:OpenedX+DemoX+DemoCourse"


def test_quote_filter() -> None:
    """Backticks are stripped from filter values before quoting."""
    assert typesense.quote_filter_value("foo || true") == "`foo || true`"
    assert typesense.quote_filter_value("foo` || true") == "`foo || true`"
    assert typesense.quote_filter_value("mal`formed word[,]") == "`malformed word[,]`"


def test_build_collection_name() -> None:
    assert typesense.collection_name() == COLLECTION


def test_schemas() -> None:
    schema = typesense.collection_schema()
    assert schema["name"] == COLLECTION
    assert [field["name"] for field in schema["fields"]] == list(
        typesense.INDEXED_FIELDS
    )
    full_schema = typesense.expected_full_collection_schema()
    assert [field["name"] for field in full_schema["fields"]] == list(
        typesense.INDEXED_FIELDS
    )


def test_document_from_thread() -> None:
    data = {
        "course_id": COURSE_ID,
        "commentable_id": 4,
        "context": "course",
        "title": "My Thoughts!",
        "body": "<p><b>Thought one</b>: I like this course.</p>",
    }

    assert typesense.document_from_thread("MY_ID", data) == {
        "id": "thread-MY_ID",
        "thread_id": "MY_ID",
        "course_id": COURSE_ID,
        "commentable_id": "4",
        "context": "course",
        "text": "My Thoughts!\nThought one: I like this course.",
    }


def test_document_from_comment() -> None:
    """Comment documents carry the commentable and context of their thread."""
    data = {
        "course_id": COURSE_ID,
        "comment_thread_id": 6,
        "commentable_id": "week-1",
        "context": "standalone",
        "body": "<p><b>Another thought</b>: I also like this course.</p>",
    }

    assert typesense.document_from_comment("MY_ID", data) == {
        "id": "comment-MY_ID",
        "thread_id": "6",
        "course_id": COURSE_ID,
        "commentable_id": "week-1",
        "context": "standalone",
        "text": "Another thought: I also like this course.",
    }


def test_typesense_document_id() -> None:
    assert typesense.typesense_document_id("comments", 3) == "comment-3"
    assert typesense.typesense_document_id("comment_threads", 3) == "thread-3"
    with pytest.raises(NotImplementedError):
        typesense.typesense_document_id("users", 3)


@patch("discussions.search.typesense.get_typesense_client")
def test_search_threads(mock_get_client: Mock) -> None:
    mock_client = MagicMock()
    mock_get_client.return_value = mock_client
    mock_search = mock_client.collections[COLLECTION].documents.search
    mock_search.return_value = {
        "hits": [
            {"document": {"thread_id": "ONE"}},
            {"document": {"thread_id": "TWO"}},
            {"document": {"thread_id": "ONE"}},
        ]
    }

    backend = typesense.TypesenseThreadSearchBackend()
    assert sorted(
        backend.get_thread_ids(
            context="course",
            group_ids=[],
            search_text="thoughts",
            commentable_ids=["4", "7[`||"],
            course_id=COURSE_ID,
        )
    ) == ["ONE", "TWO"]

    mock_search.assert_called_once_with(
        {
            "q": "thoughts",
            "query_by": "text",
            "filter_by": "context:`course` && commentable_id:[`4`, `7[||`] "
            f"&& course_id:=`{COURSE_ID}`",
            "per_page": 200,
            "drop_tokens_threshold": 0,
            "num_typos": 0,
        }
    )


@patch("discussions.search.typesense.get_typesense_client")
def test_suggested_text_direct_match(mock_get_client: Mock) -> None:
    """A term that matches a document needs no suggestion."""
    mock_client = MagicMock()
    mock_get_client.return_value = mock_client
    mock_search = mock_client.collections[COLLECTION].documents.search
    mock_search.return_value = {"found": 3, "hits": []}

    backend = typesense.TypesenseThreadSearchBackend()
    assert backend.get_suggested_text("Green") is None
    mock_search.assert_called_once()
    assert mock_search.call_args.args[0]["q"] == "green"
    assert mock_search.call_args.args[0]["num_typos"] == 0


@patch("discussions.search.typesense.get_typesense_client")
def test_suggested_text_most_matched_token(mock_get_client: Mock) -> None:
    mock_client = MagicMock()
    mock_get_client.return_value = mock_client
    mock_search = mock_client.collections[COLLECTION].documents.search
    mock_search.side_effect = [
        {"found": 0, "hits": []},
        {
            "found": 3,
            "hits": [
                {"highlights": [{"field": "text", "matched_tokens": ["Pineapples"]}]},
                {"highlights": [{"field": "text", "matched_tokens": ["pineapples"]}]},
                {"highlights": [{"field": "text", "matched_tokens": ["pimples"]}]},
            ],
        },
    ]

    backend = typesense.TypesenseThreadSearchBackend()
    assert backend.get_suggested_text("pinapples") == "pineapples"
    typo_search = mock_search.call_args_list[1].args[0]
    assert typo_search["num_typos"] == 2
    assert typo_search["per_page"] == 10


@patch("discussions.search.typesense.get_typesense_client")
def test_suggested_text_nothing_close(mock_get_client: Mock) -> None:
    mock_client = MagicMock()
    mock_get_client.return_value = mock_client
    mock_client.collections[COLLECTION].documents.search.return_value = {
        "found": 0,
        "hits": [],
    }

    backend = typesense.TypesenseThreadSearchBackend()
    assert backend.get_suggested_text("zzzzqx") is None


@patch("discussions.search.typesense.get_typesense_client")
def test_index_comment_document(mock_get_client: Mock) -> None:
    mock_client = MagicMock()
    mock_get_client.return_value = mock_client
    mock_index = mock_client.collections[COLLECTION].documents.upsert

    data = {
        "course_id": COURSE_ID,
        "comment_thread_id": 6,
        "context": "course",
        "body": "<p><b>Another thought</b>: I also like this course.</p>",
    }

    backend = typesense.TypesenseDocumentBackend()
    backend.index_document("comments", "MY_ID", data)
    mock_index.assert_called_once_with(
        {
            "id": "comment-MY_ID",
            "thread_id": "6",
            "course_id": COURSE_ID,
            "commentable_id": "",
            "context": "course",
            "text": "Another thought: I also like this course.",
        }
    )


@patch("discussions.search.typesense.get_typesense_client")
def test_index_thread_document(mock_get_client: Mock) -> None:
    mock_client = MagicMock()
    mock_get_client.return_value = mock_client
    mock_index = mock_client.collections[COLLECTION].documents.upsert

    data = {
        "course_id": COURSE_ID,
        "commentable_id": 4,
        "context": "course",
        "title": "My Thoughts!",
        "body": "<p><b>Thought one</b>: I like this course.</p>",
    }

    backend = typesense.TypesenseDocumentBackend()
    backend.update_document("comment_threads", "MY_ID", data)
    mock_index.assert_called_once_with(
        typesense.document_from_thread("MY_ID", data)
    )


@patch("discussions.search.typesense.get_typesense_client", MagicMock())
def test_index_invalid_type() -> None:
    backend = typesense.TypesenseDocumentBackend()
    with pytest.raises(NotImplementedError):
        backend.index_document("foo", "DOCID", {})


@patch("discussions.search.typesense.get_typesense_client")
def test_delete_document(mock_get_client: Mock) -> None:
    mock_client = MagicMock()
    mock_get_client.return_value = mock_client
    mock_delete = (
        mock_client.collections[COLLECTION].documents["comment-MYCOMMENTID"].delete
    )

    backend = typesense.TypesenseDocumentBackend()
    backend.delete_document("comments", "MYCOMMENTID")
    mock_delete.assert_called_once_with(delete_parameters={"ignore_not_found": True})


@patch("discussions.search.typesense.get_typesense_client")
def test_init_indexes_already_exist(mock_get_client: Mock) -> None:
    mock_client = MagicMock()
    mock_get_client.return_value = mock_client
    mock_collection = mock_client.collections[COLLECTION]
    mock_collection.retrieve.return_value = {"data": "irrelevant but index exists"}

    backend = typesense.TypesenseIndexBackend()
    backend.initialize_indices()

    mock_collection.delete.assert_not_called()
    mock_client.collections.create.assert_not_called()


@patch("discussions.search.typesense.get_typesense_client")
def test_init_indexes_already_exist_force(mock_get_client: Mock) -> None:
    mock_client = MagicMock()
    mock_get_client.return_value = mock_client
    mock_collection = mock_client.collections[COLLECTION]
    mock_collection.retrieve.return_value = {"data": "irrelevant but index exists"}

    backend = typesense.TypesenseIndexBackend()
    backend.initialize_indices(force_new_index=True)

    mock_collection.delete.assert_called_once()
    mock_client.collections.create.assert_called_once_with(
        typesense.collection_schema()
    )


@patch("discussions.search.typesense.get_typesense_client")
def test_init_indexes_does_not_exist(mock_get_client: Mock) -> None:
    mock_client = MagicMock()
    mock_get_client.return_value = mock_client
    mock_collection = mock_client.collections[COLLECTION]
    mock_collection.retrieve.side_effect = ObjectNotFound

    backend = typesense.TypesenseIndexBackend()
    backend.initialize_indices()

    mock_collection.delete.assert_not_called()
    mock_client.collections.create.assert_called_once()


@patch("discussions.search.typesense.get_typesense_client")
def test_validate_indices(mock_get_client: Mock) -> None:
    mock_client = MagicMock()
    mock_get_client.return_value = mock_client
    mock_collection = mock_client.collections[COLLECTION]
    mock_collection.retrieve.return_value = {
        **typesense.expected_full_collection_schema(),
        "created_at": 1234,
        "num_documents": 0,
    }

    typesense.TypesenseIndexBackend().validate_indices()


@patch("discussions.search.typesense.get_typesense_client")
def test_validate_indices_missing_field(mock_get_client: Mock) -> None:
    mock_client = MagicMock()
    mock_get_client.return_value = mock_client
    schema = typesense.expected_full_collection_schema()
    schema["fields"] = [
        field for field in schema["fields"] if field["name"] != "commentable_id"
    ]
    mock_client.collections[COLLECTION].retrieve.return_value = schema

    with pytest.raises(AssertionError, match="commentable_id"):
        typesense.TypesenseIndexBackend().validate_indices()


def test_index_noops() -> None:
    """
    These methods should have no effect and require no mocks.
    """
    backend = typesense.TypesenseIndexBackend()
    backend.refresh_indices()
    assert backend.delete_unused_indices() == 0


def test_get_client() -> None:
    client1 = typesense.get_typesense_client()
    client2 = typesense.get_typesense_client()

    assert client1 is client2
    assert client1.config.api_key == "example-typesense-api-key"


@pytest.mark.django_db
@patch("discussions.search.typesense.get_typesense_client")
def test_rebuild_indices(mock_get_client: Mock) -> None:
    mock_client = MagicMock()
    mock_get_client.return_value = mock_client
    mock_import = mock_client.collections[COLLECTION].documents.import_
    mock_import.return_value = [{"success": True}]
    MySQLBackend.find_or_create_user("1", username="author")
    thread_id = MySQLBackend.create_thread(
        {"title": "Title", "body": "Body", "course_id": COURSE_ID, "author_id": "1"}
    )
    comment_id = MySQLBackend.create_comment(
        {"body": "Reply", "comment_thread_id": thread_id, "author_id": "1"}
    )

    typesense.TypesenseIndexBackend().rebuild_indices(batch_size=10)

    mock_client.collections.create.assert_called_once()
    assert mock_import.call_count == 2
    thread_documents = mock_import.call_args_list[0].args[0]
    comment_documents = mock_import.call_args_list[1].args[0]
    assert [document["id"] for document in thread_documents] == [f"thread-{thread_id}"]
    assert [document["id"] for document in comment_documents] == [
        f"comment-{comment_id}"
    ]
    assert comment_documents[0]["thread_id"] == thread_id


@pytest.mark.django_db
@patch("discussions.search.typesense.get_typesense_client")
def test_rebuild_indices_import_errors(mock_get_client: Mock) -> None:
    mock_client = MagicMock()
    mock_get_client.return_value = mock_client
    mock_client.collections[COLLECTION].documents.import_.return_value = [
        {"success": False, "error": "bad document"}
    ]
    MySQLBackend.find_or_create_user("1", username="author")
    MySQLBackend.create_thread(
        {"title": "Title", "body": "Body", "course_id": COURSE_ID, "author_id": "1"}
    )

    with pytest.raises(ValueError):
        typesense.TypesenseIndexBackend().rebuild_indices()
