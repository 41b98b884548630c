import asyncio

import httpx

from hunt_scraper.models import Comment
from hunt_scraper.sources.replies import ReplyContext, ReplyExpander, needs_expansion

CONTEXT = ReplyContext(referer="https://www.producthunt.com/products/acme")


def reply_node(reply_id):
    return {"id": reply_id, "body": f"reply {reply_id}", "user": {"id": "U2", "username": "bob"}}


def replies_response(conn, ids, has_next=False, end_cursor=None):
    return httpx.Response(
        200,
        json={
            "data": {
                "comment": {
                    "id": "C1",
                    "repliesCount": 5,
                    "replies": conn([reply_node(i) for i in ids], has_next, end_cursor),
                }
            }
        },
    )


def partial_comment(reply_ids=("r1", "r2", "r3"), cursor="c1", replies_count=5):
    return Comment(
        id="C1",
        replies=[Comment(id=i, parent_id="C1") for i in reply_ids],
        replies_count=replies_count,
        has_more_replies=True,
        replies_end_cursor=cursor,
    )


def test_expands_remaining_replies_from_stored_cursor(make_client, conn, sleep):
    requests = []

    def handler(body):
        requests.append(body["variables"])
        if body["variables"]["commentsThreadRepliesCursor"] == "c1":
            return replies_response(conn, ["r4", "r5"], has_next=False)
        return replies_response(conn, [])

    comment = partial_comment()
    expander = ReplyExpander(make_client(handler), sleep=sleep)
    asyncio.run(expander.expand(comment, CONTEXT))

    assert len(comment.replies) == 5
    assert comment.has_more_replies is False
    assert comment.replies_end_cursor is None
    assert [r.parent_id for r in comment.replies[3:]] == ["C1", "C1"]
    assert requests[0]["commentsThreadId"] == "C1"
    assert requests[0]["excludedCommentIds"] == ["r1", "r2", "r3"]


def test_overlapping_pages_are_deduplicated_and_idempotent(make_client, conn, sleep):
    def handler(body):
        cursor = body["variables"]["commentsThreadRepliesCursor"]
        if cursor == "c1":
            return replies_response(conn, ["r3", "r4"], has_next=True, end_cursor="c2")
        if cursor == "c2":
            return replies_response(conn, ["r4", "r5"], has_next=False)
        return replies_response(conn, [])

    expander = ReplyExpander(make_client(handler), sleep=sleep)

    once = partial_comment()
    asyncio.run(expander.expand(once, CONTEXT))

    twice = partial_comment()
    asyncio.run(expander.expand(twice, CONTEXT))
    asyncio.run(expander.expand(twice, CONTEXT))

    ids = [r.id for r in once.replies]
    assert ids == ["r1", "r2", "r3", "r4", "r5"]
    assert [r.id for r in twice.replies] == ids
    assert sleep.calls == [1.0, 1.0]


def test_exclusions_sent_only_on_first_request(make_client, conn, sleep):
    excluded = []

    def handler(body):
        variables = body["variables"]
        excluded.append(variables["excludedCommentIds"])
        if variables["commentsThreadRepliesCursor"] == "c1":
            return replies_response(conn, ["r4"], has_next=True, end_cursor="c2")
        return replies_response(conn, ["r5"], has_next=False)

    comment = partial_comment()
    asyncio.run(ReplyExpander(make_client(handler), sleep=sleep).expand(comment, CONTEXT))

    assert excluded == [["r1", "r2", "r3"], []]


def test_from_start_requests_everything_without_exclusions(make_client, conn, sleep):
    seen = []

    def handler(body):
        seen.append((body["variables"]["commentsThreadRepliesCursor"], body["variables"]["excludedCommentIds"]))
        return replies_response(conn, ["r1", "r2", "r3", "r4", "r5"])

    comment = partial_comment()
    asyncio.run(ReplyExpander(make_client(handler), sleep=sleep).expand(comment, CONTEXT, from_start=True))

    assert seen == [("", [])]
    assert [r.id for r in comment.replies] == ["r1", "r2", "r3", "r4", "r5"]


def test_failure_keeps_replies_and_flags_more(make_client, conn, sleep):
    def handler(body):
        if body["variables"]["commentsThreadRepliesCursor"] == "c1":
            return replies_response(conn, ["r4"], has_next=True, end_cursor="c2")
        return httpx.Response(500, json={"errors": ["boom"]})

    comment = partial_comment()
    asyncio.run(ReplyExpander(make_client(handler), sleep=sleep).expand(comment, CONTEXT))

    assert [r.id for r in comment.replies] == ["r1", "r2", "r3", "r4"]
    assert comment.has_more_replies is True


def test_stops_after_max_attempts(make_client, conn, sleep):
    counter = {"n": 0}

    def handler(body):
        counter["n"] += 1
        n = counter["n"]
        return replies_response(conn, [f"x{n}"], has_next=True, end_cursor=f"c{n + 1}")

    comment = partial_comment(replies_count=50)
    expander = ReplyExpander(make_client(handler), max_attempts=3, sleep=sleep)
    asyncio.run(expander.expand(comment, CONTEXT))

    assert counter["n"] == 3
    assert len(comment.replies) == 6
    assert comment.has_more_replies is False


def test_complete_comment_needs_no_expansion(make_client, sleep):
    def handler(body):
        raise AssertionError("no request expected")

    comment = Comment(id="C1", replies=[Comment(id="r1")], replies_count=1)
    assert needs_expansion(comment) is False
    asyncio.run(ReplyExpander(make_client(handler), sleep=sleep).expand(comment, CONTEXT))
    assert len(comment.replies) == 1
