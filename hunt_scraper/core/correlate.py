"""
Cross-reference makers with the comments and threads they authored.
"""
from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Tuple

from hunt_scraper.models import (
    Comment,
    ForumCommentActivity,
    Launch,
    LaunchCommentActivity,
    Maker,
    Thread,
    ThreadActivity,
)

logger = logging.getLogger(__name__)


@dataclass
class Activity:
    launch_comments: List[LaunchCommentActivity] = field(default_factory=list)
    forum_comments: List[ForumCommentActivity] = field(default_factory=list)
    forum_threads_authored: List[ThreadActivity] = field(default_factory=list)


def _with_replies(comments: Iterable[Comment]) -> Iterator[Tuple[Comment, bool]]:
    """Yield each comment followed by its direct replies, flagged as replies."""
    for comment in comments:
        yield comment, False
        for reply in comment.replies:
            yield reply, True


def _author_id(comment: Comment) -> str:
    return comment.author.id if comment.author else ""


def build_activity_index(launches: List[Launch], threads: List[Thread]) -> Dict[str, Activity]:
    """
    Map author id to everything that author wrote in this crawl.

    Launches are scanned before threads; within each, entries keep the
    order of comments and then their replies.
    """
    index: Dict[str, Activity] = {}

    def activity_for(author_id: str) -> Activity:
        return index.setdefault(author_id, Activity())

    for launch in launches:
        for comment, is_reply in _with_replies(launch.comments):
            author_id = _author_id(comment)
            if not author_id:
                continue
            activity_for(author_id).launch_comments.append(
                LaunchCommentActivity(
                    launch_id=launch.id,
                    launch_name=launch.name,
                    launch_slug=launch.slug,
                    comment_id=comment.id,
                    body=comment.body,
                    date=comment.date,
                    votes_count=comment.votes_count,
                    is_reply=is_reply,
                    parent_id=comment.parent_id if is_reply else None,
                )
            )

    for thread in threads:
        if thread.author and thread.author.id:
            activity_for(thread.author.id).forum_threads_authored.append(
                ThreadActivity(
                    thread_id=thread.id,
                    title=thread.title,
                    date=thread.date,
                    url=thread.url,
                    comments_count=thread.comments_count,
                    upvotes_count=thread.upvotes_count,
                )
            )
        for comment, is_reply in _with_replies(thread.comments):
            author_id = _author_id(comment)
            if not author_id:
                continue
            activity_for(author_id).forum_comments.append(
                ForumCommentActivity(
                    thread_id=thread.id,
                    thread_title=thread.title,
                    comment_id=comment.id,
                    body=comment.body,
                    date=comment.date,
                    votes_count=comment.votes_count,
                    is_reply=is_reply,
                    parent_id=comment.parent_id if is_reply else None,
                )
            )

    return index


def correlate(makers: List[Maker], launches: List[Launch], threads: List[Thread]) -> List[Maker]:
    """
    Attach launch comments, forum comments and authored threads to each maker.

    Args:
        makers: Makers as fetched; left unmodified
        launches: Launches with comments
        threads: Threads with comments

    Returns:
        Copies of the makers, in input order, each carrying all three
        activity lists (empty when nothing was found).
    """
    index = build_activity_index(launches, threads)
    correlated: List[Maker] = []
    for maker in makers:
        activity = index.get(maker.id) or Activity()
        correlated.append(
            dataclasses.replace(
                maker,
                launch_comments=list(activity.launch_comments),
                forum_comments=list(activity.forum_comments),
                forum_threads_authored=list(activity.forum_threads_authored),
            )
        )
        logger.debug(
            "Maker %s: %d launch comments, %d forum comments, %d threads",
            maker.username or maker.id,
            len(activity.launch_comments),
            len(activity.forum_comments),
            len(activity.forum_threads_authored),
        )
    return correlated
