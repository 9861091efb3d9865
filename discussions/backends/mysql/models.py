"""MySQL models for the discussions app."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from django.contrib.auth.models import User  # pylint: disable=E5142
from django.contrib.contenttypes.fields import GenericForeignKey, GenericRelation
from django.contrib.contenttypes.models import ContentType
from django.db import models
from django.db.models import (
    Exists,
    F,
    IntegerField,
    OuterRef,
    Q,
    QuerySet,
    Subquery,
    Sum,
    Value,
)
from django.db.models.functions import Coalesce
from django.utils import timezone

from discussions.constants import (
    COMMENT_INDEX_NAME,
    DEFAULT_SORT_KEY,
    SEARCH_SORT_FIELDS,
    THREAD_INDEX_NAME,
)
from discussions.utils import get_int_value, validate_upvote_or_downvote


class Content(models.Model):
    """Content model."""

    index_name = ""

    author: models.ForeignKey[User, User] = models.ForeignKey(
        User, on_delete=models.CASCADE
    )
    course_id: models.CharField[str, str] = models.CharField(max_length=255)
    body: models.TextField[str, str] = models.TextField()
    endorsed: models.BooleanField[bool, bool] = models.BooleanField(default=False)
    anonymous: models.BooleanField[bool, bool] = models.BooleanField(default=False)
    anonymous_to_peers: models.BooleanField[bool, bool] = models.BooleanField(
        default=False
    )
    group_id: models.PositiveIntegerField[int, int] = models.PositiveIntegerField(
        null=True
    )
    # Ordered list of {"position": int, "username": str, "user_id": str}.
    at_position_list: models.JSONField[list[dict[str, Any]], list[dict[str, Any]]] = (
        models.JSONField(default=list, blank=True)
    )
    created_at: models.DateTimeField[datetime, datetime] = models.DateTimeField(
        auto_now_add=True
    )
    updated_at: models.DateTimeField[datetime, datetime] = models.DateTimeField(
        auto_now=True
    )
    uservote = GenericRelation(
        "UserVote",
        object_id_field="content_object_id",
        content_type_field="content_type",
    )

    @property
    def type(self) -> str:
        """Return the type of content as str."""
        return self._meta.object_name or ""

    @property
    def content_type(self) -> ContentType:
        """Return the type of content."""
        return ContentType.objects.get_for_model(self)

    @property
    def abuse_flaggers(self) -> list[int]:
        """Return a list of users who have flagged the content for abuse."""
        return list(
            AbuseFlagger.objects.filter(
                content_object_id=self.pk, content_type=self.content_type
            ).values_list("user_id", flat=True)
        )

    @property
    def votes(self) -> models.QuerySet[UserVote]:
        """Get all user vote query for content."""
        return UserVote.objects.filter(
            content_object_id=self.pk,
            content_type=self.content_type,
        )

    def get_votes_point(self) -> int:
        """Return the sum of up (+1) and down (-1) votes."""
        return self.votes.aggregate(point=Sum("vote"))["point"] or 0

    def get_thread(self) -> CommentThread:
        """Return the thread owning this content."""
        raise NotImplementedError

    def get_mention_text(self) -> str:
        """Return the raw text scanned for @mentions."""
        raise NotImplementedError

    def doc_to_hash(self) -> dict[str, Any]:
        """Return a dictionary representation of the content for the search index."""
        raise NotImplementedError

    class Meta:
        app_label = "discussions"
        abstract = True


class CommentThread(Content):
    """Comment thread model."""

    index_name = THREAD_INDEX_NAME

    THREAD_TYPE_CHOICES = [
        ("question", "Question"),
        ("discussion", "Discussion"),
    ]

    CONTEXT_CHOICES = [
        ("course", "Course"),
        ("standalone", "Standalone"),
    ]

    title: models.CharField[str, str] = models.CharField(max_length=1024)
    thread_type: models.CharField[str, str] = models.CharField(
        max_length=50, choices=THREAD_TYPE_CHOICES, default="discussion"
    )
    context: models.CharField[str, str] = models.CharField(
        max_length=50, choices=CONTEXT_CHOICES, default="course"
    )
    last_activity_at: models.DateTimeField[Optional[datetime], datetime] = (
        models.DateTimeField(null=True, blank=True)
    )
    commentable_id: models.CharField[str, str] = models.CharField(
        max_length=255,
        default=None,
        blank=True,
        null=True,
    )
    comment_count: models.PositiveIntegerField[int, int] = (
        models.PositiveIntegerField(default=0)
    )

    def get_thread(self) -> CommentThread:
        return self

    def get_mention_text(self) -> str:
        """Title and body, separated by a blank line."""
        return f"{self.title}\n\n{self.body}"

    @classmethod
    def create_from_data(cls, data: dict[str, Any]) -> CommentThread:
        """
        Create a new thread from the provided data.

        Args:
            data: Dictionary containing thread data.

        Returns:
            The created thread.
        """
        optional_args = {}
        if group_id := data.get("group_id"):
            optional_args["group_id"] = group_id

        return cls.objects.create(
            title=data["title"],
            body=data["body"],
            course_id=data["course_id"],
            anonymous=data.get("anonymous", False),
            anonymous_to_peers=data.get("anonymous_to_peers", False),
            author=User.objects.get(pk=int(data["author_id"])),
            commentable_id=data.get("commentable_id", "course"),
            thread_type=data.get("thread_type", "discussion"),
            context=data.get("context", "course"),
            last_activity_at=timezone.now(),
            **optional_args,
        )

    @classmethod
    def build_search_query(
        cls,
        thread_ids: list[str],
        course_id: Optional[str] = None,
        context: Optional[str] = None,
        commentable_ids: Optional[list[str]] = None,
        group_ids: Optional[list[int]] = None,
        filter_flagged: bool = False,
        filter_unanswered: bool = False,
        filter_unread: bool = False,
        user_id: Optional[str] = None,
    ) -> QuerySet[CommentThread]:
        """
        Build the query for threads matched by the search index.

        Every given filter narrows the result (AND); list filters match any
        of their values (OR).

        Args:
            thread_ids: Thread IDs returned by the search index.
            course_id: The course ID to filter by.
            context: The context to filter by ("course" or "standalone").
            commentable_ids: Commentable IDs; a thread matches any of them.
            group_ids: Group IDs; a thread matches if it has no group or its
                group is one of them.
            filter_flagged: Only threads flagged for abuse, directly or
                through one of their comments.
            filter_unanswered: Only question threads without an endorsed comment.
            filter_unread: Only threads with activity after the user last
                read them. Ignored without a user_id.
            user_id: The user making the request.

        Returns:
            Django QuerySet annotated with ``votes_point``.
        """
        mysql_thread_ids = []
        for tid in thread_ids:
            thread_id = get_int_value(tid)
            if thread_id is not None:
                mysql_thread_ids.append(thread_id)

        base_query = cls.objects.filter(pk__in=mysql_thread_ids)

        if course_id:
            base_query = base_query.filter(course_id=course_id)

        if context:
            base_query = base_query.filter(context=context)

        if commentable_ids:
            base_query = base_query.filter(commentable_id__in=commentable_ids)

        if group_ids:
            base_query = base_query.filter(
                Q(group_id__in=group_ids) | Q(group_id__isnull=True)
            )

        if filter_flagged:
            flagged_threads = AbuseFlagger.objects.filter(
                content_type=ContentType.objects.get_for_model(cls),
            ).values("content_object_id")
            flagged_comments = AbuseFlagger.objects.filter(
                content_type=ContentType.objects.get_for_model(Comment),
            ).values("content_object_id")
            threads_with_flagged_comments = Comment.objects.filter(
                pk__in=flagged_comments
            ).values("comment_thread_id")
            base_query = base_query.filter(
                Q(pk__in=flagged_threads) | Q(pk__in=threads_with_flagged_comments)
            )

        if filter_unanswered:
            endorsed_threads = Comment.objects.filter(endorsed=True).values(
                "comment_thread_id"
            )
            base_query = base_query.filter(thread_type="question").exclude(
                pk__in=endorsed_threads
            )

        reader_id = get_int_value(user_id)
        if filter_unread and reader_id is not None:
            read_since_last_activity = LastReadTime.objects.filter(
                read_state__user__pk=reader_id,
                comment_thread=OuterRef("pk"),
                timestamp__gte=OuterRef("last_activity_at"),
            )
            base_query = base_query.annotate(
                is_read=Exists(read_since_last_activity)
            ).filter(is_read=False)

        votes = (
            UserVote.objects.filter(
                content_type=ContentType.objects.get_for_model(cls),
                content_object_id=OuterRef("pk"),
            )
            .values("content_object_id")
            .annotate(total=Sum("vote"))
            .values("total")
        )
        return base_query.annotate(
            votes_point=Coalesce(
                Subquery(votes, output_field=IntegerField()), Value(0)
            ),
        )

    @staticmethod
    def get_search_ordering(sort_key: Optional[str]) -> list[Any]:
        """
        Return the ordering for a search sort key.

        Descending by the key's metric, ties broken by the most recently
        created thread first.
        """
        field = SEARCH_SORT_FIELDS[sort_key or DEFAULT_SORT_KEY]
        return [
            F(field).desc(nulls_last=True),
            F("created_at").desc(),
            F("pk").desc(),
        ]

    def doc_to_hash(self) -> dict[str, Any]:
        """
        Converts the CommentThread model instance to a dictionary representation for the search index.
        """
        return {
            "id": str(self.pk),
            "title": self.title,
            "body": self.body,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "last_activity_at": (
                self.last_activity_at.isoformat() if self.last_activity_at else None
            ),
            "comment_count": self.comment_count,
            "context": self.context,
            "course_id": self.course_id,
            "commentable_id": self.commentable_id,
            "author_id": str(self.author.pk),
            "group_id": self.group_id,
            "thread_id": str(self.pk),
        }

    class Meta:
        app_label = "discussions"
        indexes = [
            models.Index(fields=["context"], name="disc_thread_context_idx"),
            models.Index(fields=["author"], name="disc_thread_author_idx"),
            models.Index(
                fields=["author", "course_id"], name="disc_thread_author_course_idx"
            ),
            models.Index(
                fields=["course_id", "commentable_id"], name="disc_thread_course_cmt_idx"
            ),
            models.Index(
                fields=["course_id", "anonymous", "anonymous_to_peers"],
                name="disc_thread_course_anon_idx",
            ),
        ]


class Comment(Content):
    """Comment model class"""

    index_name = COMMENT_INDEX_NAME

    endorsement: models.JSONField[dict[str, Any], dict[str, Any]] = models.JSONField(
        default=dict
    )
    comment_thread: models.ForeignKey[CommentThread, CommentThread] = models.ForeignKey(
        CommentThread, on_delete=models.CASCADE
    )
    parent: models.ForeignKey[Comment, Comment] = models.ForeignKey(
        "self", on_delete=models.CASCADE, null=True, blank=True
    )
    depth: models.PositiveIntegerField[int, int] = models.PositiveIntegerField(
        default=0
    )

    def get_thread(self) -> CommentThread:
        return self.comment_thread

    def get_mention_text(self) -> str:
        return self.body

    @classmethod
    def create_comment(cls, data: dict[str, Any]) -> Comment:
        """
        Create and return a new Comment.

        The comment takes its course and group from the thread it belongs to.
        """
        comment_thread = CommentThread.objects.get(pk=int(data["comment_thread_id"]))
        parent = None
        depth = 0
        if parent_id := data.get("parent_id"):
            parent = cls.objects.get(pk=int(parent_id))
            depth = parent.depth + 1
        return cls.objects.create(
            body=data["body"],
            course_id=comment_thread.course_id,
            group_id=comment_thread.group_id,
            anonymous=data.get("anonymous", False),
            anonymous_to_peers=data.get("anonymous_to_peers", False),
            author=User.objects.get(pk=int(data["author_id"])),
            comment_thread=comment_thread,
            parent=parent,
            depth=depth,
        )

    def doc_to_hash(self) -> dict[str, Any]:
        """
        Converts the Comment model instance to a dictionary representation for the search index.
        """
        thread = self.comment_thread
        return {
            "body": self.body,
            "course_id": self.course_id,
            "comment_thread_id": thread.pk,
            "commentable_id": thread.commentable_id,
            "group_id": self.group_id,
            "context": thread.context,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "title": None,
        }

    class Meta:
        app_label = "discussions"
        indexes = [
            models.Index(
                fields=["author", "course_id"], name="disc_comment_author_course_idx"
            ),
            models.Index(
                fields=["comment_thread", "author", "created_at"],
                name="disc_comment_thread_author_idx",
            ),
            models.Index(
                fields=["comment_thread", "endorsed"], name="disc_comment_endorsed_idx"
            ),
        ]


class AbuseFlagger(models.Model):
    """Abuse flagger model class"""

    user: models.ForeignKey[User, User] = models.ForeignKey(
        User, on_delete=models.CASCADE
    )
    content_type: models.ForeignKey[ContentType] = models.ForeignKey(
        ContentType, on_delete=models.CASCADE
    )
    content_object_id: models.PositiveIntegerField[int, int] = (
        models.PositiveIntegerField()
    )
    content: GenericForeignKey = GenericForeignKey("content_type", "content_object_id")
    flagged_at: models.DateTimeField[datetime, datetime] = models.DateTimeField(
        default=timezone.now
    )

    @staticmethod
    def flag_content(content: Content, user: User) -> bool:
        """
        Flag content as abusive.

        Returns:
            True if a new flag was recorded, False if the user had already flagged it.
        """
        _, created = AbuseFlagger.objects.get_or_create(
            user=user,
            content_type=content.content_type,
            content_object_id=content.pk,
        )
        return created

    class Meta:
        app_label = "discussions"
        unique_together = ("user", "content_type", "content_object_id")
        indexes = [
            models.Index(
                fields=["content_type", "content_object_id"], name="disc_flag_content_idx"
            ),
        ]


class ReadState(models.Model):
    """Read state model."""

    course_id: models.CharField[str, str] = models.CharField(max_length=255)
    user: models.ForeignKey[User, User] = models.ForeignKey(
        User, related_name="read_states", on_delete=models.CASCADE
    )
    last_read_times: models.QuerySet[LastReadTime]

    def to_dict(self) -> dict[str, Any]:
        """Return a dictionary representation of the model."""
        last_read_times = {}
        for last_read_time in self.last_read_times.all():
            last_read_times[str(last_read_time.comment_thread.pk)] = (
                last_read_time.timestamp
            )
        return {
            "_id": str(self.pk),
            "last_read_times": last_read_times,
            "course_id": self.course_id,
        }

    class Meta:
        app_label = "discussions"
        unique_together = ("course_id", "user")
        indexes = [
            models.Index(
                fields=["user", "course_id"], name="disc_readstate_user_course_idx"
            ),
        ]


class LastReadTime(models.Model):
    """Last read time model."""

    read_state: models.ForeignKey[ReadState] = models.ForeignKey(
        ReadState, related_name="last_read_times", on_delete=models.CASCADE
    )
    comment_thread: models.ForeignKey[CommentThread, CommentThread] = models.ForeignKey(
        CommentThread, on_delete=models.CASCADE
    )
    timestamp: models.DateTimeField[datetime, datetime] = models.DateTimeField()

    class Meta:
        app_label = "discussions"
        unique_together = ("read_state", "comment_thread")
        indexes = [
            models.Index(
                fields=["read_state", "timestamp"], name="disc_lastread_state_time_idx"
            ),
        ]


class UserVote(models.Model):
    """User votes model class"""

    user: models.ForeignKey[User, User] = models.ForeignKey(
        User, on_delete=models.CASCADE
    )
    content_type: models.ForeignKey[ContentType] = models.ForeignKey(
        ContentType, on_delete=models.CASCADE
    )
    content_object_id: models.PositiveIntegerField[int, int] = (
        models.PositiveIntegerField()
    )
    content: GenericForeignKey = GenericForeignKey("content_type", "content_object_id")
    vote: models.IntegerField[int, int] = models.IntegerField(
        validators=[validate_upvote_or_downvote]
    )

    @staticmethod
    def update_vote(content: Content, user: User, vote_type: str = "") -> bool:
        """
        Record an upvote or downvote of a user on a thread or comment.

        :param content: The content instance (thread or comment).
        :param user: The user instance.
        :param vote_type: String indicating the type of vote ('up' or 'down').
        :return: True if the vote was recorded.
        """
        if vote_type not in ["up", "down"]:
            raise ValueError("Invalid vote_type, use ('up' or 'down')")
        UserVote.objects.update_or_create(
            user=user,
            content_type=content.content_type,
            content_object_id=content.pk,
            defaults={"vote": 1 if vote_type == "up" else -1},
        )
        return True

    class Meta:
        app_label = "discussions"
        unique_together = ("user", "content_type", "content_object_id")
        indexes = [
            models.Index(
                fields=["content_type", "content_object_id"], name="disc_vote_content_idx"
            ),
        ]


class Notification(models.Model):
    """
    Notification sent to users mentioned in a thread or comment.

    Notifications are append-only: created once per triggering event and
    never updated.
    """

    notification_type: models.CharField[str, str] = models.CharField(max_length=50)
    info: models.JSONField[dict[str, Any], dict[str, Any]] = models.JSONField(
        default=dict
    )
    actor: models.ForeignKey[Optional[User], Optional[User]] = models.ForeignKey(
        User,
        related_name="acted_notifications",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
    )
    target_content_type: models.ForeignKey[ContentType] = models.ForeignKey(
        ContentType, on_delete=models.CASCADE
    )
    target_object_id: models.PositiveIntegerField[int, int] = (
        models.PositiveIntegerField()
    )
    target: GenericForeignKey = GenericForeignKey(
        "target_content_type", "target_object_id"
    )
    receivers: models.ManyToManyField[User, Any] = models.ManyToManyField(
        User, related_name="notifications"
    )
    created_at: models.DateTimeField[datetime, datetime] = models.DateTimeField(
        auto_now_add=True
    )

    def to_dict(self) -> dict[str, Any]:
        """Return a dictionary representation of the model."""
        return {
            "_id": str(self.pk),
            "notification_type": self.notification_type,
            "info": self.info,
            "actor_id": str(self.actor.pk) if self.actor else None,
            "target_type": self.target_content_type.model,
            "target_id": str(self.target_object_id),
            "receiver_ids": sorted(str(user.pk) for user in self.receivers.all()),
            "created_at": self.created_at,
        }

    class Meta:
        app_label = "discussions"
        indexes = [
            models.Index(
                fields=["target_content_type", "target_object_id"],
                name="disc_notif_target_idx",
            ),
        ]
