"""
Search API Views.
"""

from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from discussions.api.search import search_threads


class SearchThreadsAPIView(APIView):
    """
    API View to search threads.

    Always responds with 200: invalid parameters produce an empty result.
    """

    permission_classes = (AllowAny,)

    def get(self, request: Request) -> Response:
        """
        Search threads by text.

        Parameters:
            request (Request): The incoming request, with the search parameters
                in its query string.
        Body:
            Empty.
        Response:
            The matching threads, with total_results, num_pages, page and,
            when the text was corrected, corrected_text.
        """
        return Response(
            search_threads(**request.query_params.dict()), status=status.HTTP_200_OK
        )
