"""
Native Python API of the MySQL content store.
"""

import math
from typing import Any, Optional

from django.contrib.auth.models import User  # pylint: disable=E5142
from django.core.exceptions import ObjectDoesNotExist
from django.db import transaction
from django.db.models import Case, F, Value, When
from django.utils import timezone

from discussions.backends.mysql.models import (
    AbuseFlagger,
    Comment,
    CommentThread,
    Content,
    LastReadTime,
    ReadState,
    UserVote,
)
from discussions.search.backend import get_document_search_backend
from discussions.tasks import enqueue_at_notifications


class MySQLBackend:
    """
    Read and write threads and comments, keeping the search index in sync.
    """

    @staticmethod
    def find_or_create_user(user_id: str, username: Optional[str] = None) -> User:
        """Find or create a user."""
        username = username or user_id
        try:
            return User.objects.get(pk=int(user_id))
        except User.DoesNotExist:
            pass
        if User.objects.filter(username=username).exists():
            raise ValueError(f"User with username {username} already exists")
        return User.objects.create(pk=int(user_id), username=username)

    @staticmethod
    def get_user_by_username(username: str) -> Optional[User]:
        """Return the user with the given username, if any."""
        return User.objects.filter(username=username).first()

    @staticmethod
    def get_thread(thread_id: str) -> Optional[CommentThread]:
        return CommentThread.objects.filter(pk=thread_id).first()

    @staticmethod
    def get_comment(comment_id: str) -> Optional[Comment]:
        return Comment.objects.filter(pk=comment_id).first()

    @staticmethod
    def index_content(content: Content) -> None:
        """Add or replace a thread or comment in the search index."""
        get_document_search_backend().index_document(
            content.index_name, content.pk, content.doc_to_hash()
        )

    @staticmethod
    def create_thread(data: dict[str, Any]) -> str:
        """
        Create a thread, index it and schedule its mention scan.

        Returns:
            The ID of the created thread.
        """
        with transaction.atomic():
            thread = CommentThread.create_from_data(data)
            enqueue_at_notifications(thread, "thread")
        MySQLBackend.index_content(thread)
        return str(thread.pk)

    @staticmethod
    def update_thread(thread_id: str, **kwargs: Any) -> int:
        """
        Update a thread by its ID with the provided data.

        Returns:
            1 if the thread was successfully updated, 0 if the thread doesn't exist.
        """
        try:
            thread = CommentThread.objects.get(pk=thread_id)
        except ObjectDoesNotExist:
            return 0

        previous_text = thread.get_mention_text()
        changed_fields = ["updated_at"]
        for field in (
            "title",
            "body",
            "thread_type",
            "context",
            "commentable_id",
            "group_id",
            "anonymous",
            "anonymous_to_peers",
        ):
            if field in kwargs:
                setattr(thread, field, kwargs[field])
                changed_fields.append(field)

        with transaction.atomic():
            # at_position_list is only written by the mention scan.
            thread.save(update_fields=changed_fields)
            if thread.get_mention_text() != previous_text:
                enqueue_at_notifications(thread, "thread")
        MySQLBackend.index_content(thread)
        if "context" in kwargs or "commentable_id" in kwargs:
            # Comment documents carry the context and commentable_id of their thread.
            for comment in Comment.objects.filter(comment_thread=thread):
                MySQLBackend.index_content(comment)
        return 1

    @staticmethod
    def delete_thread(thread_id: str) -> int:
        """
        Delete a thread and its comments, and remove them from the search index.

        Returns:
            1 if the thread was deleted, 0 if it doesn't exist.
        """
        thread = CommentThread.objects.filter(pk=thread_id).first()
        if thread is None:
            return 0
        comment_ids = list(
            Comment.objects.filter(comment_thread=thread).values_list("pk", flat=True)
        )
        thread.delete()

        document_backend = get_document_search_backend()
        for comment_id in comment_ids:
            document_backend.delete_document(Comment.index_name, comment_id)
        document_backend.delete_document(CommentThread.index_name, thread_id)
        return 1

    @staticmethod
    def create_comment(data: dict[str, Any]) -> str:
        """
        Create a comment, bump its thread's activity, index it and schedule its mention scan.

        Returns:
            The ID of the created comment.
        """
        with transaction.atomic():
            comment = Comment.create_comment(data)
            CommentThread.objects.filter(pk=comment.comment_thread_id).update(
                comment_count=F("comment_count") + 1,
                last_activity_at=timezone.now(),
            )
            enqueue_at_notifications(comment, "comment")
        MySQLBackend.index_content(comment)
        return str(comment.pk)

    @staticmethod
    def update_comment(
        comment_id: str,
        body: Optional[str] = None,
        anonymous: Optional[bool] = None,
        endorsed: Optional[bool] = None,
        endorsement_user_id: Optional[str] = None,
    ) -> int:
        """
        Update a comment's body, anonymity or endorsement.

        Returns:
            1 if the comment was updated, 0 if it doesn't exist.
        """
        try:
            comment = Comment.objects.get(pk=comment_id)
        except ObjectDoesNotExist:
            return 0

        changed_fields = ["updated_at"]
        body_changed = body is not None and body != comment.body
        if body_changed:
            comment.body = body
            changed_fields.append("body")
        if anonymous is not None:
            comment.anonymous = anonymous
            changed_fields.append("anonymous")
        if endorsed is not None:
            comment.endorsed = endorsed
            changed_fields += ["endorsed", "endorsement"]
            comment.endorsement = (
                {"user_id": endorsement_user_id, "time": str(timezone.now())}
                if endorsed and endorsement_user_id
                else {}
            )

        with transaction.atomic():
            # at_position_list is only written by the mention scan.
            comment.save(update_fields=changed_fields)
            if body_changed:
                enqueue_at_notifications(comment, "comment")
        MySQLBackend.index_content(comment)
        return 1

    @staticmethod
    def delete_comment(comment_id: str) -> int:
        """
        Delete a comment with its replies and remove them from the search index.

        Returns:
            1 if the comment was deleted, 0 if it doesn't exist.
        """
        comment = Comment.objects.filter(pk=comment_id).first()
        if comment is None:
            return 0
        with transaction.atomic():
            deleted_ids = [comment.pk]
            parent_ids = [comment.pk]
            while parent_ids:
                parent_ids = list(
                    Comment.objects.filter(parent_id__in=parent_ids).values_list(
                        "pk", flat=True
                    )
                )
                deleted_ids += parent_ids
            removed = len(deleted_ids)
            CommentThread.objects.filter(pk=comment.comment_thread_id).update(
                comment_count=Case(
                    When(comment_count__gt=removed, then=F("comment_count") - removed),
                    default=Value(0),
                )
            )
            # Replies are removed by the cascade.
            comment.delete()

        document_backend = get_document_search_backend()
        for deleted_id in deleted_ids:
            document_backend.delete_document(Comment.index_name, deleted_id)
        return 1

    @staticmethod
    def flag_abuse(user_id: str, content: Content) -> bool:
        """Flag a thread or comment as abusive on behalf of a user."""
        return AbuseFlagger.flag_content(content, User.objects.get(pk=int(user_id)))

    @staticmethod
    def vote(user_id: str, content: Content, vote_type: str) -> bool:
        """Record an 'up' or 'down' vote of a user on a thread or comment."""
        return UserVote.update_vote(
            content, User.objects.get(pk=int(user_id)), vote_type=vote_type
        )

    @staticmethod
    def mark_as_read(user_id: str, thread_id: str) -> None:
        """Record that a user has read a thread now."""
        user = User.objects.get(pk=int(user_id))
        thread = CommentThread.objects.get(pk=thread_id)
        read_state, _ = ReadState.objects.get_or_create(
            user=user, course_id=thread.course_id
        )
        LastReadTime.objects.update_or_create(
            read_state=read_state,
            comment_thread=thread,
            defaults={"timestamp": timezone.now()},
        )

    @staticmethod
    def get_thread_search_page(
        thread_ids: list[str],
        sort_key: Optional[str],
        page: int,
        per_page: int,
        **filters: Any,
    ) -> dict[str, Any]:
        """
        Filter, rank and paginate the threads matched by the search index.

        Args:
            thread_ids: Thread IDs returned by the search index.
            sort_key: One of the search sort keys, or None for the default ranking.
            page: 1-indexed page number. Pages past the end are empty.
            per_page: Number of threads per page.
            filters: Keyword arguments of CommentThread.build_search_query.

        Returns:
            {"threads": list of threads, "total_results": int, "num_pages": int}
        """
        query = CommentThread.build_search_query(thread_ids, **filters).select_related(
            "author"
        )
        total_results = query.count()
        start = (page - 1) * per_page
        threads = list(
            query.order_by(*CommentThread.get_search_ordering(sort_key))[
                start : start + per_page
            ]
        )
        return {
            "threads": threads,
            "total_results": total_results,
            "num_pages": math.ceil(total_results / per_page),
        }
