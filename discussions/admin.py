"""Admin module for discussions."""

from typing import Any

from django.contrib import admin
from django.db.models import QuerySet
from django.http import HttpRequest

from discussions.models import (
    AbuseFlagger,
    Comment,
    CommentThread,
    LastReadTime,
    Notification,
    ReadState,
    UserVote,
)


@admin.register(CommentThread)
class CommentThreadAdmin(admin.ModelAdmin):  # type: ignore
    """Admin interface for CommentThread model."""

    list_display = (
        "title",
        "author",
        "course_id",
        "commentable_id",
        "thread_type",
        "context",
        "comment_count",
        "last_activity_at",
        "created_at",
    )
    search_fields = ("title", "body", "author__username", "course_id")
    list_filter = ("thread_type", "context")
    readonly_fields = ("at_position_list",)


@admin.register(Comment)
class CommentAdmin(admin.ModelAdmin):  # type: ignore
    """Admin interface for Comment model."""

    list_display = (
        "comment_thread",
        "author",
        "body",
        "created_at",
        "endorsed",
        "anonymous",
    )
    search_fields = ("body", "author__username", "comment_thread__title")
    list_filter = ("endorsed", "anonymous")
    readonly_fields = ("at_position_list",)


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):  # type: ignore
    """Admin interface for the append-only Notification model."""

    list_display = (
        "notification_type",
        "actor",
        "target_content_type",
        "target_object_id",
        "created_at",
    )
    list_filter = ("notification_type", "target_content_type")
    search_fields = ("actor__username", "receivers__username")
    readonly_fields = (
        "notification_type",
        "info",
        "actor",
        "target_content_type",
        "target_object_id",
        "receivers",
        "created_at",
    )

    def has_add_permission(self, request: HttpRequest) -> bool:
        """Notifications are only created by mentions."""
        return False

    def has_change_permission(self, request: HttpRequest, obj: Any = None) -> bool:
        return False

    def get_queryset(self, request: HttpRequest) -> QuerySet[Notification]:
        return (
            super()
            .get_queryset(request)
            .select_related("actor", "target_content_type")
            .order_by("-created_at")
        )


@admin.register(AbuseFlagger)
class AbuseFlaggerAdmin(admin.ModelAdmin):  # type: ignore
    """Admin interface for AbuseFlagger model."""

    list_display = ("user", "content_object_id", "flagged_at")
    search_fields = ("user__username",)
    list_filter = ("content_type",)


@admin.register(ReadState)
class ReadStateAdmin(admin.ModelAdmin):  # type: ignore
    """Admin interface for ReadState model."""

    list_display = ("user", "course_id")
    search_fields = ("user__username", "course_id")


@admin.register(LastReadTime)
class LastReadTimeAdmin(admin.ModelAdmin):  # type: ignore
    """Admin interface for LastReadTime model."""

    list_display = ("read_state", "comment_thread", "timestamp")
    search_fields = ("read_state__user__username", "comment_thread__title")


@admin.register(UserVote)
class UserVoteAdmin(admin.ModelAdmin):  # type: ignore
    """Admin interface for UserVote model."""

    list_display = ("user", "content_object_id", "vote")
    search_fields = ("user__username",)
    list_filter = ("vote",)
