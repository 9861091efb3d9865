"""
Discussions Django application initialization.
"""

from django.apps import AppConfig


class DiscussionsConfig(AppConfig):
    """
    Configuration for the discussions Django application.
    """

    name = "discussions"
    label = "discussions"
    verbose_name = "Discussions"
    default_auto_field = "django.db.models.BigAutoField"
