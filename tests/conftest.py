# tests/conftest.py
import json
from typing import Callable, List

import httpx
import pytest

from hunt_scraper.sources.common import GraphQLClient


class SleepRecorder:
    """Stand-in for asyncio.sleep that returns at once and remembers the delays."""

    def __init__(self):
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def sleep():
    return SleepRecorder()


@pytest.fixture
def make_client() -> Callable[[Callable[[dict], httpx.Response]], GraphQLClient]:
    """
    Build a GraphQLClient over httpx.MockTransport.

    The handler receives the decoded request body (operationName, variables,
    extensions) and returns an httpx.Response.
    """

    def factory(handler):
        def transport(request: httpx.Request) -> httpx.Response:
            return handler(json.loads(request.content))

        http = httpx.AsyncClient(transport=httpx.MockTransport(transport))
        return GraphQLClient(http=http)

    return factory


def connection(nodes, has_next=False, end_cursor=None):
    return {
        "edges": [{"node": node} for node in nodes],
        "pageInfo": {"hasNextPage": has_next, "endCursor": end_cursor},
    }


@pytest.fixture
def conn():
    """Build a GraphQL connection payload: conn(nodes, has_next, end_cursor)."""
    return connection
