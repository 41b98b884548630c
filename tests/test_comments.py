import asyncio

from hunt_scraper.models import SubjectRef
from hunt_scraper.schemas import CommentNode
from hunt_scraper.sources.comments import parse_comment
from hunt_scraper.sources.replies import ReplyContext, ReplyExpander

SUBJECT = SubjectRef(id="T1", slug="hello", title="Hello")


def comment_payload(conn):
    return {
        "id": "c1",
        "body": "top",
        "createdAt": "2024-01-01T00:00:00Z",
        "user": {"id": "U1", "username": "ann", "selectedBylineProduct": {"id": "P1", "name": "Acme", "slug": "acme"}},
        "repliesCount": 1,
        "replies": conn([
            {
                "id": "r1",
                "body": "reply",
                "repliesCount": 2,
                "replies": conn([{"id": "n1"}, {"id": "n2"}], True, "deeper"),
            }
        ]),
    }


def test_reply_keeps_its_own_replies_one_level_deep(conn):
    comment = parse_comment(CommentNode.model_validate(comment_payload(conn)), SUBJECT)

    [reply] = comment.replies
    assert reply.parent_id == "c1"
    assert reply.nested_replies_count == 2
    assert [n.id for n in reply.nested_replies] == ["n1", "n2"]
    assert [n.parent_id for n in reply.nested_replies] == ["r1", "r1"]
    assert reply.nested_replies[0].nested_replies == []
    assert comment.author.product.slug == "acme"
    assert comment.author.url == "https://www.producthunt.com/@ann"
    assert comment.subject is SUBJECT


def test_nested_replies_are_not_expanded(make_client, conn, sleep):
    requests = []

    def handler(body):
        requests.append(body)
        raise AssertionError("no reply request expected")

    comment = parse_comment(CommentNode.model_validate(comment_payload(conn)), SUBJECT)
    expander = ReplyExpander(make_client(handler), sleep=sleep)

    asyncio.run(expander.expand(comment, ReplyContext(referer="https://www.producthunt.com/p/acme/hello")))

    assert requests == []
    assert [n.id for n in comment.replies[0].nested_replies] == ["n1", "n2"]
