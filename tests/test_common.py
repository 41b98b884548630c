import asyncio

import httpx
import pytest

from hunt_scraper.config import BASE_HEADERS
from hunt_scraper.schemas import DetailsResponse, decode
from hunt_scraper.sources.common import (
    PERSISTED_QUERIES,
    GraphQLClient,
    UpstreamError,
    build_headers,
    build_payload,
)


def test_headers_are_built_fresh_per_call():
    before = dict(BASE_HEADERS)

    first = build_headers("https://www.producthunt.com/products/a", ph_referer="https://www.producthunt.com/p/a")
    second = build_headers("https://www.producthunt.com/products/b")

    assert first["referer"].endswith("/a")
    assert first["x-ph-referer"].endswith("/p/a")
    assert second["referer"].endswith("/b")
    assert "x-ph-referer" not in second
    assert BASE_HEADERS == before


def test_payload_carries_persisted_query_hash():
    payload = build_payload("Comments", {"order": "VOTES"})

    assert payload["operationName"] == "Comments"
    assert payload["extensions"]["persistedQuery"] == {
        "version": 1,
        "sha256Hash": PERSISTED_QUERIES["Comments"],
    }


def test_status_error_raises_upstream_error(make_client):
    client = make_client(lambda body: httpx.Response(500, text="oops"))

    with pytest.raises(UpstreamError) as excinfo:
        asyncio.run(client.execute("Comments", {}, referer="https://www.producthunt.com/"))
    assert excinfo.value.operation == "Comments"


def test_non_json_body_raises_upstream_error(make_client):
    client = make_client(lambda body: httpx.Response(200, text="<html>"))

    with pytest.raises(UpstreamError):
        asyncio.run(client.execute("Comments", {}, referer="https://www.producthunt.com/"))


def test_request_sends_referer_headers():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(request.headers)
        return httpx.Response(200, json={"data": {}})

    async def run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            client = GraphQLClient(http=http)
            return await client.execute("Comments", {}, referer="https://r", ph_referer="https://p")

    assert asyncio.run(run()) == {"data": {}}
    assert seen["referer"] == "https://r"
    assert seen["x-ph-referer"] == "https://p"


def test_client_requires_context():
    with pytest.raises(RuntimeError):
        asyncio.run(GraphQLClient().execute("Comments", {}, referer="https://r"))


def test_decode_fails_closed():
    assert decode(DetailsResponse, {"data": {"product": None}}) is None
    assert decode(DetailsResponse, "not json") is None
    decoded = decode(DetailsResponse, {"data": {"product": {"id": 42, "name": "Acme"}}})
    assert decoded.data.product.id == "42"
