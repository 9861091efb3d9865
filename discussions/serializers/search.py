"""
Serializers for thread search requests and results.
"""

from typing import Any, Optional

from rest_framework import serializers

from discussions.backends.mysql.models import CommentThread
from discussions.constants import (
    CONTEXT_CHOICES,
    DEFAULT_CONTEXT,
    FORUM_DEFAULT_PAGE,
    FORUM_DEFAULT_PER_PAGE,
    SEARCH_SORT_FIELDS,
)
from discussions.utils import split_comma_separated


class SearchThreadsParamsSerializer(serializers.Serializer[dict[str, Any]]):
    """
    Serializer for the query parameters of a thread search.

    Attributes:
        text (str): The free-text query.
        course_id (str): Only search threads of this course.
        commentable_id (str): Only search threads of this commentable.
        commentable_ids (str): Comma-separated commentable IDs; any of them matches.
        group_id (int): Only search threads visible to this group.
        group_ids (str): Comma-separated group IDs; any of them matches.
        context (str): "course" or "standalone".
        flagged (bool): Only threads flagged for abuse.
        unanswered (bool): Only question threads without an endorsed response.
        unread (bool): Only threads with activity since user_id last read them.
        user_id (str): The user making the request.
        sort_key (str): "date", "activity", "votes" or "comments".
        page (int): 1-indexed page number.
        per_page (int): Number of threads per page.
    """

    text = serializers.CharField(required=False, allow_blank=True, default="")
    course_id = serializers.CharField(required=False, allow_blank=True)
    commentable_id = serializers.CharField(required=False, allow_blank=True)
    commentable_ids = serializers.CharField(required=False, allow_blank=True)
    group_id = serializers.IntegerField(required=False, min_value=0)
    group_ids = serializers.CharField(required=False, allow_blank=True)
    context = serializers.ChoiceField(
        choices=CONTEXT_CHOICES, required=False, default=DEFAULT_CONTEXT
    )
    flagged = serializers.BooleanField(required=False, default=False)
    unanswered = serializers.BooleanField(required=False, default=False)
    unread = serializers.BooleanField(required=False, default=False)
    user_id = serializers.CharField(required=False, allow_blank=True)
    sort_key = serializers.ChoiceField(
        choices=list(SEARCH_SORT_FIELDS), required=False, allow_blank=True
    )
    page = serializers.IntegerField(
        required=False, min_value=1, default=FORUM_DEFAULT_PAGE
    )
    per_page = serializers.IntegerField(
        required=False, min_value=1, default=FORUM_DEFAULT_PER_PAGE
    )

    def validate_group_ids(self, value: str) -> list[int]:
        """Parse the comma-separated group IDs."""
        try:
            return [int(group_id) for group_id in split_comma_separated(value)]
        except ValueError as exc:
            raise serializers.ValidationError("group_ids must be integers") from exc

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:
        """Merge the single and list variants of the commentable and group filters."""
        commentable_ids = split_comma_separated(attrs.pop("commentable_ids", ""))
        if commentable_id := attrs.pop("commentable_id", ""):
            commentable_ids.append(commentable_id)
        attrs["commentable_ids"] = commentable_ids

        group_ids = attrs.pop("group_ids", [])
        if (group_id := attrs.pop("group_id", None)) is not None:
            group_ids.append(group_id)
        attrs["group_ids"] = group_ids

        attrs["sort_key"] = attrs.get("sort_key") or None
        attrs["text"] = attrs["text"].strip()
        return attrs

    def create(self, validated_data: dict[str, Any]) -> Any:
        """Raise NotImplementedError"""
        raise NotImplementedError

    def update(self, instance: Any, validated_data: dict[str, Any]) -> Any:
        """Raise NotImplementedError"""
        raise NotImplementedError


class ThreadSummarySerializer(serializers.Serializer[CommentThread]):
    """
    Serializer for a thread returned by a search.

    The author is hidden for anonymous threads.
    """

    id = serializers.CharField(source="pk")
    title = serializers.CharField()
    body = serializers.CharField()
    course_id = serializers.CharField()
    commentable_id = serializers.CharField(allow_null=True)
    group_id = serializers.IntegerField(allow_null=True)
    context = serializers.CharField()
    thread_type = serializers.CharField()
    endorsed = serializers.BooleanField()
    anonymous = serializers.BooleanField()
    user_id = serializers.SerializerMethodField()
    username = serializers.SerializerMethodField()
    comment_count = serializers.IntegerField()
    votes_point = serializers.IntegerField()
    at_position_list = serializers.ListField()
    created_at = serializers.DateTimeField()
    last_activity_at = serializers.DateTimeField(allow_null=True)

    def get_user_id(self, obj: CommentThread) -> Optional[str]:
        return None if obj.anonymous else str(obj.author_id)

    def get_username(self, obj: CommentThread) -> Optional[str]:
        return None if obj.anonymous else obj.author.username

    def create(self, validated_data: dict[str, Any]) -> Any:
        """Raise NotImplementedError"""
        raise NotImplementedError

    def update(self, instance: Any, validated_data: dict[str, Any]) -> Any:
        """Raise NotImplementedError"""
        raise NotImplementedError
