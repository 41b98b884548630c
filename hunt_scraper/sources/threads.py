"""
File: hunt_scraper/sources/threads.py
Forum threads (DiscussionsForumsQuery) and their comments (PDiscussionRedesignQuery).
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Set

from hunt_scraper.config import THREAD_COMMENTS_PAGE_SIZE
from hunt_scraper.models import Author, Comment, Page, SubjectRef, Thread
from hunt_scraper.schemas import ThreadCommentsResponse, ThreadNode, ThreadsResponse, decode
from hunt_scraper.sources.comments import parse_author, parse_comment
from hunt_scraper.sources.common import (
    GraphQLClient,
    UpstreamError,
    discussion_referer,
    product_referer,
)
from hunt_scraper.sources.paginate import Sleep, paginate
from hunt_scraper.sources.replies import ReplyContext, ReplyExpander, needs_expansion
from hunt_scraper.utils import format_date, site_url

logger = logging.getLogger(__name__)


def parse_thread(node: ThreadNode) -> Thread:
    commentable = node.commentable
    return Thread(
        id=node.id or "",
        title=node.title or "",
        author=parse_author(node.user) or Author(),
        date=format_date(node.created_at),
        is_featured=bool(node.is_featured),
        is_pinned=bool(node.is_pinned),
        upvotes_count=(commentable.votes_count if commentable else None) or 0,
        comments_count=node.comments_count or 0,
        slug=node.slug or "",
        path=node.path or "",
        url=site_url(node.path),
        description=node.description or "",
    )


class ThreadsFetcher:
    """Fetches forum threads for a product, then each thread's comments and replies."""

    THREADS_OPERATION = "DiscussionsForumsQuery"
    COMMENTS_OPERATION = "PDiscussionRedesignQuery"

    def __init__(
        self,
        client: GraphQLClient,
        delay: float = 1.0,
        sleep: Sleep = asyncio.sleep,
        expander: Optional[ReplyExpander] = None,
    ):
        self.client = client
        self.delay = delay
        self.sleep = sleep
        self.expander = expander or ReplyExpander(client, delay=delay, sleep=sleep)

    # --- threads -------------------------------------------------------------

    async def fetch_threads_page(self, product_slug: str, cursor: Optional[str]) -> Page[Thread]:
        variables = {
            "window": None,
            "order": "trending",
            "cursor": cursor,
            "forumSlug": product_slug,
            "pinnedFirst": True,
        }
        raw = await self.client.execute(
            self.THREADS_OPERATION,
            variables,
            referer=product_referer(product_slug, "forums"),
            ph_referer=product_referer(product_slug),
        )
        decoded = decode(ThreadsResponse, raw)
        if decoded is None:
            return Page()

        connection = decoded.data.discussion_forum.threads
        threads = [parse_thread(node) for node in connection.nodes()]
        for index, thread in enumerate(threads, start=1):
            logger.debug(
                "[%d] %s by %s (%d comments, %d upvotes)",
                index, thread.title, thread.author.username, thread.comments_count, thread.upvotes_count,
            )
        return Page(
            items=threads,
            next_cursor=connection.page_info.end_cursor,
            has_more=bool(connection.page_info.has_next_page),
        )

    async def fetch_threads(self, product_slug: str, limit: Optional[int] = None) -> List[Thread]:
        async def fetch_page(cursor: Optional[str]) -> Page[Thread]:
            return await self.fetch_threads_page(product_slug, cursor)

        return await paginate(
            fetch_page, limit=limit, delay=self.delay, sleep=self.sleep, label="threads"
        )

    # --- comments ------------------------------------------------------------

    async def fetch_comments_page(
        self, forum_slug: str, thread: Thread, cursor: Optional[str]
    ) -> Page[Comment]:
        variables = {
            "commentsListSubjectThreadsCursor": cursor or "",
            "commentsThreadRepliesCursor": "",
            "threadSlug": thread.slug,
            "forumSlug": forum_slug,
            "commentsListSubjectThreadsLimit": THREAD_COMMENTS_PAGE_SIZE,
            "includeThreadForCommentId": None,
            "commentsListSubjectFilter": None,
            "order": "DATE_DESC",
            "excludeThreadForCommentId": None,
        }
        referer = discussion_referer(forum_slug, thread.slug)
        raw = await self.client.execute(
            self.COMMENTS_OPERATION, variables, referer=referer, ph_referer=referer
        )
        decoded = decode(ThreadCommentsResponse, raw)
        if decoded is None:
            return Page()

        forum_thread = decoded.data.discussion_forum.thread
        subject = SubjectRef(
            id=forum_thread.id or thread.id,
            slug=forum_thread.slug or thread.slug,
            title=forum_thread.title or thread.title,
        )
        connection = forum_thread.commentable.threads
        return Page(
            items=[parse_comment(node, subject) for node in connection.nodes()],
            next_cursor=connection.page_info.end_cursor,
            has_more=bool(connection.page_info.has_next_page),
        )

    async def fetch_comments(
        self, forum_slug: str, thread: Thread, limit: Optional[int] = None
    ) -> List[Comment]:
        """
        Fetch the top-level comments of one thread and complete their replies.

        Comments already seen on an earlier page are dropped; a page with no
        new comments ends pagination.
        """
        seen: Set[str] = set()

        async def fetch_page(cursor: Optional[str]) -> Page[Comment]:
            page = await self.fetch_comments_page(forum_slug, thread, cursor)
            fresh = [comment for comment in page.items if comment.id not in seen]
            if len(fresh) < len(page.items):
                logger.debug("Skipped %d duplicate comments", len(page.items) - len(fresh))
            seen.update(comment.id for comment in fresh)
            return Page(items=fresh, next_cursor=page.next_cursor, has_more=page.has_more)

        comments = await paginate(
            fetch_page, limit=limit, delay=self.delay, sleep=self.sleep, label="comments"
        )

        context = ReplyContext(
            referer=discussion_referer(forum_slug, thread.slug),
            ph_referer=discussion_referer(forum_slug),
        )
        for comment in comments:
            if needs_expansion(comment):
                await self.sleep(self.delay)
                await self.expander.expand(comment, context, from_start=True)

        logger.info(
            "Fetched %d of %d comments for thread %s",
            len(comments), thread.comments_count, thread.slug,
        )
        return comments

    async def fetch(
        self,
        product_slug: str,
        limit: Optional[int] = None,
        comments_limit: Optional[int] = 10,
    ) -> List[Thread]:
        """
        Fetch forum threads for a product together with their comments.

        Args:
            product_slug: Product slug, which is also the forum slug
            limit: Maximum number of threads (None for all)
            comments_limit: Maximum top-level comments per thread (None for all)

        Returns:
            Threads with ``comments`` filled in. A thread whose comments could
            not be fetched keeps an empty list.
        """
        logger.info("Fetching forum threads for %s", product_slug)
        threads = await self.fetch_threads(product_slug, limit=limit)
        logger.info("Fetched %d threads for %s", len(threads), product_slug)

        for index, thread in enumerate(threads, start=1):
            if not thread.slug:
                logger.warning("Thread #%d has no slug, skipping comments", index)
                continue

            await self.sleep(self.delay)
            logger.info("Thread %d/%d: %r", index, len(threads), thread.title)
            try:
                thread.comments = await self.fetch_comments(product_slug, thread, limit=comments_limit)
            except UpstreamError as e:
                logger.error("Error fetching comments for thread %s: %s", thread.slug, e)
                thread.comments = []

        return threads
