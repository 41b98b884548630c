"""
Common transport for the Product Hunt GraphQL fetchers.
"""
from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

import httpx

from hunt_scraper.config import BASE_HEADERS, GRAPHQL_URL, SITE_URL
from hunt_scraper.models import JsonDict

logger = logging.getLogger(__name__)


# Persisted query hashes, versioned with the upstream web client.
# A mismatch here is an upstream change, not a bug in the crawler.
PERSISTED_QUERIES: Mapping[str, str] = MappingProxyType({
    "ProductReviewsPage": "a7362f46151a83be4632644a5f719b12e0b7d64b5134113f393ffaefbe5b7775",
    "DiscussionsForumsQuery": "f311e1e9ba52dee82f047d5ba4f2330127bc1d0b15cac8e52ef2267edff1b148",
    "PDiscussionRedesignQuery": "b283157452800ddc0235def608d63ce6e496d92b26317380a55cb92956088672",
    "CommentsThread": "43666f5110463b1187da2e997404e7daead57fe0a95fd0cf0d148c0e297a3b0a",
    "ProductPageLaunches": "b311dc8ba5a776f8056c837d7464b9b6ceaad8f9f771bc7533b26a1b93e73f4a",
    "PostPageComments": "30f2a3c9af5dce9b7e8cbe7b8ad23bd4bc6eda38a9d69a88e247e6c1efd08442",
    "Comments": "c6e0907909263976e488d25f9c5c667a45a4d1bb968ed825cb6e05a9c89d5d9c",
    "ProductAboutPage": "c7495797778b271a67f42cc2709ed506dea300938c11173729e5266432732643",
    "ProductPageMakers": "9f028fe68e6c6894e895e66a2d417b1be76f7a06dc8c7f2dc74e23b5108bf385",
})


class UpstreamError(RuntimeError):
    """A GraphQL request failed at the transport level (network, status or body)."""

    def __init__(self, operation: str, message: str):
        super().__init__(f"{operation}: {message}")
        self.operation = operation


def build_headers(referer: str, ph_referer: Optional[str] = None) -> Dict[str, str]:
    """
    Build the header set for one call.

    Args:
        referer: Page the request pretends to originate from
        ph_referer: Optional value for the custom ``x-ph-referer`` header

    Returns:
        A fresh header dict; the base template is never modified
    """
    headers = dict(BASE_HEADERS)
    headers["referer"] = referer
    if ph_referer:
        headers["x-ph-referer"] = ph_referer
    return headers


def product_referer(product_slug: str, section: str = "") -> str:
    suffix = f"/{section}" if section else ""
    return f"{SITE_URL}/products/{product_slug}{suffix}"


def discussion_referer(forum_slug: str, thread_slug: str = "") -> str:
    suffix = f"/{thread_slug}" if thread_slug else ""
    return f"{SITE_URL}/p/{forum_slug}{suffix}"


def build_payload(operation: str, variables: JsonDict) -> JsonDict:
    return {
        "operationName": operation,
        "variables": variables,
        "extensions": {
            "persistedQuery": {
                "version": 1,
                "sha256Hash": PERSISTED_QUERIES[operation],
            }
        },
    }


class GraphQLClient:
    """Sends persisted-query requests to the GraphQL endpoint.

    Wraps an ``httpx.AsyncClient``; use it as an async context manager or pass
    in a client you manage yourself (tests pass one built on ``MockTransport``).
    """

    def __init__(self, http: Optional[httpx.AsyncClient] = None, url: str = GRAPHQL_URL):
        self._http = http
        self._owns_http = http is None
        self.url = url

    async def __aenter__(self) -> "GraphQLClient":
        if self._http is None:
            self._http = httpx.AsyncClient()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http and self._http is not None:
            await self._http.aclose()
            self._http = None

    async def execute(
        self,
        operation: str,
        variables: JsonDict,
        referer: str,
        ph_referer: Optional[str] = None,
    ) -> Any:
        """
        Run one persisted GraphQL operation.

        Args:
            operation: Operation name registered in ``PERSISTED_QUERIES``
            variables: Operation variables
            referer: Referer for this call
            ph_referer: Optional ``x-ph-referer`` value

        Returns:
            Parsed JSON body

        Raises:
            UpstreamError: On network failure, non-2xx status or a non-JSON body
        """
        if self._http is None:
            raise RuntimeError("GraphQLClient used outside of its async context")

        payload = build_payload(operation, variables)
        headers = build_headers(referer, ph_referer)
        logger.debug("POST %s variables=%s", operation, variables)

        try:
            response = await self._http.post(self.url, json=payload, headers=headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise UpstreamError(operation, f"HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise UpstreamError(operation, f"{type(e).__name__}: {e}") from e

        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError(operation, "response body is not valid JSON") from e
