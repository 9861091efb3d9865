"""
Init file for tests.
"""

from typing import Any, Generator

import pytest
from celery import current_app
from django.contrib.auth.models import User  # pylint: disable=E5142

from test_utils.client import APIClient
from test_utils.mock_search_backend import clear_documents


@pytest.fixture(name="api_client")
def fixture_api_client() -> APIClient:
    """Create an API client for testing."""
    return APIClient()


@pytest.fixture(autouse=True)
def mock_search_index() -> Generator[Any, Any, Any]:
    """Start every test with an empty in-memory search index."""
    clear_documents()
    yield
    clear_documents()


@pytest.fixture(autouse=True)
def celery_eager() -> Generator[Any, Any, Any]:
    """Run celery tasks synchronously."""
    previous = current_app.conf.task_always_eager
    current_app.conf.task_always_eager = True
    yield
    current_app.conf.task_always_eager = previous


@pytest.fixture(name="user")
def fixture_user() -> User:
    """Create a thread author."""
    return User.objects.create(username="author")
