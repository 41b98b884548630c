from hunt_scraper.core.correlate import correlate
from hunt_scraper.models import Author, Comment, Launch, Maker, Thread


def comment(comment_id, author_id, replies=(), parent_id=None):
    return Comment(
        id=comment_id,
        author=Author(id=author_id, username=author_id.lower()),
        body=f"body {comment_id}",
        parent_id=parent_id,
        replies=list(replies),
    )


def test_maker_gets_authored_thread_and_launch_comment():
    makers = [Maker(id="U1", name="Ursula", username="ursula")]
    launches = [Launch(id="L1", name="Acme 1.0", slug="acme", comments=[comment("c1", "U1")])]
    threads = [Thread(id="T1", title="Hello", author=Author(id="U1"), comments=[comment("c2", "U9")])]

    [result] = correlate(makers, launches, threads)

    assert len(result.forum_threads_authored) == 1
    assert result.forum_threads_authored[0].title == "Hello"
    assert len(result.launch_comments) == 1
    assert result.launch_comments[0].launch_slug == "acme"
    assert result.forum_comments == []


def test_every_maker_has_all_three_lists():
    makers = [Maker(id="U1"), Maker(id="nobody")]

    result = correlate(makers, [], [])

    for maker in result:
        assert maker.launch_comments == []
        assert maker.forum_comments == []
        assert maker.forum_threads_authored == []


def test_replies_are_tagged_and_order_is_encounter_order():
    launches = [
        Launch(
            id="L1",
            name="First",
            comments=[
                comment("a", "U1", replies=[comment("a1", "U1", parent_id="a")]),
                comment("b", "U1"),
            ],
        ),
        Launch(id="L2", name="Second", comments=[comment("c", "U1")]),
    ]
    threads = [
        Thread(
            id="T1",
            title="Forum",
            author=Author(id="U2"),
            comments=[comment("t1", "U2", replies=[comment("t1r", "U1", parent_id="t1")])],
        )
    ]

    [maker] = correlate([Maker(id="U1")], launches, threads)

    assert [a.comment_id for a in maker.launch_comments] == ["a", "a1", "b", "c"]
    assert [a.is_reply for a in maker.launch_comments] == [False, True, False, False]
    assert maker.launch_comments[1].parent_id == "a"
    assert [(a.comment_id, a.is_reply) for a in maker.forum_comments] == [("t1r", True)]
    assert maker.forum_threads_authored == []


def test_input_makers_are_not_mutated():
    maker = Maker(id="U1")
    launches = [Launch(id="L1", comments=[comment("c1", "U1")])]

    [result] = correlate([maker], launches, [])

    assert result is not maker
    assert maker.launch_comments == []
    assert len(result.launch_comments) == 1
