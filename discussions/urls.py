"""
URLs for discussions.
"""

from django.urls import include, path

from discussions.views.search import SearchThreadsAPIView

api_patterns = [
    path(
        "search/threads",
        SearchThreadsAPIView.as_view(),
        name="search-thread-api",
    ),
]

urlpatterns = [
    path("api/v2/", include(api_patterns)),
]
