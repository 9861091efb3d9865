"""
API client for tests.
"""

from typing import Any, Optional

from rest_framework.response import Response
from rest_framework.test import APIClient as DRFAPIClient


class APIClient(DRFAPIClient):
    """
    DRF test client with JSON helpers.
    """

    def get_json(self, path: str, params: Optional[dict[str, Any]] = None) -> Response:
        """Send a GET request with params in the query string."""
        return self.get(path, data=params or {})
