import asyncio

import httpx

from hunt_scraper.sources.reviews import ReviewsFetcher
from hunt_scraper.utils import decode_offset_cursor, encode_offset_cursor


def review_node(i, rating=5):
    return {
        "id": str(i),
        "text": f"Review number {i}",
        "rating": rating,
        "createdAt": "2024-03-01T12:00:00Z",
        "votesCount": 2,
        "url": "https://www.producthunt.com/products/acme/reviews",
        "user": {"name": "Rita", "username": "rita"},
    }


def reviews_response(conn, nodes):
    return httpx.Response(
        200,
        json={"data": {"product": {"name": "Acme", "slug": "acme", "reviews": conn(nodes)}}},
    )


def test_offset_cursor_encoding():
    assert encode_offset_cursor(10) == "MTA="
    assert decode_offset_cursor("MTA=") == 10
    assert decode_offset_cursor(None) == 0
    assert decode_offset_cursor("not base64!") == 0


def test_pages_by_running_offset(make_client, conn, sleep):
    cursors = []

    def handler(body):
        cursor = body["variables"]["reviewsCursor"]
        cursors.append(cursor)
        start = decode_offset_cursor(cursor)
        count = 10 if start < 20 else 3
        return reviews_response(conn, [review_node(start + i) for i in range(count)])

    reviews = asyncio.run(ReviewsFetcher(make_client(handler), sleep=sleep).fetch("acme"))

    assert len(reviews) == 23
    assert cursors == [None, "MTA=", "MjA="]
    assert sleep.calls == [1.0, 1.0]


def test_review_normalization(make_client, conn, sleep):
    def handler(body):
        node = review_node(7, rating=0)
        node["isVerified"] = True
        return reviews_response(conn, [node])

    [review] = asyncio.run(ReviewsFetcher(make_client(handler), sleep=sleep).fetch("acme"))

    assert review.id == "7"
    assert review.rating is None
    assert review.date == "2024-03-01"
    assert review.url.endswith("/reviews?review=7")
    assert review.reviewer.username == "rita"
    assert review.is_verified is True


def test_unexpected_shape_yields_no_reviews(make_client, sleep):
    def handler(body):
        return httpx.Response(200, json={"data": {"product": None}})

    assert asyncio.run(ReviewsFetcher(make_client(handler), sleep=sleep).fetch("acme")) == []


def test_limit_respected(make_client, conn, sleep):
    def handler(body):
        start = decode_offset_cursor(body["variables"]["reviewsCursor"])
        return reviews_response(conn, [review_node(start + i) for i in range(10)])

    reviews = asyncio.run(ReviewsFetcher(make_client(handler), sleep=sleep).fetch("acme", limit=15))

    assert [r.id for r in reviews] == [str(i) for i in range(15)]
