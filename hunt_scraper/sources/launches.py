"""
File: hunt_scraper/sources/launches.py
Product launches (ProductPageLaunches) and their comments.

Launch comments are fetched in two stages: ``PostPageComments`` looks the
launch up by slug and returns its post id, and every later page goes through
``Comments`` with that post id.
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Tuple

from hunt_scraper.config import LAUNCH_COMMENTS_PAGE_SIZE, LAUNCH_FIRST_COMMENTS_PAGE_SIZE
from hunt_scraper.models import Comment, Launch, LaunchBadge, Page, SubjectRef
from hunt_scraper.schemas import (
    FirstLaunchCommentsResponse,
    LaunchCommentsResponse,
    LaunchesResponse,
    PostNode,
    decode,
)
from hunt_scraper.sources.comments import parse_comment
from hunt_scraper.sources.common import GraphQLClient, UpstreamError, product_referer
from hunt_scraper.sources.paginate import Sleep, paginate
from hunt_scraper.sources.replies import ReplyContext, ReplyExpander, needs_expansion
from hunt_scraper.utils import format_date, image_url

logger = logging.getLogger(__name__)


def parse_launch(node: PostNode) -> Launch:
    badges = [
        LaunchBadge(position=badge.position, period=badge.period, date=badge.date)
        for badge in (node.badges.nodes() if node.badges else [])
    ]
    return Launch(
        id=node.id or "",
        name=node.name or "",
        slug=node.slug or "",
        tagline=node.tagline or "",
        date=format_date(node.created_at),
        created_at=node.created_at or "",
        featured_at=node.featured_at,
        updated_at=node.updated_at,
        daily_rank=node.daily_rank,
        weekly_rank=node.weekly_rank,
        monthly_rank=node.monthly_rank,
        votes_count=node.votes_count or 0,
        comments_count=node.comments_count or 0,
        latest_score=node.latest_score,
        launch_day_score=node.launch_day_score,
        shortened_url=node.shortened_url or "",
        thumbnail_url=image_url(node.thumbnail_image_uuid),
        badges=badges,
        product_id=node.product.id if node.product else None,
    )


def _subject(launch: Launch) -> SubjectRef:
    return SubjectRef(id=launch.id, slug=launch.slug, title=launch.name)


class LaunchesFetcher:
    """Fetches a product's launches and the comment threads on each launch."""

    LAUNCHES_OPERATION = "ProductPageLaunches"
    FIRST_COMMENTS_OPERATION = "PostPageComments"
    NEXT_COMMENTS_OPERATION = "Comments"

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

    # --- launches ------------------------------------------------------------

    async def fetch_launches_page(
        self, product_slug: str, cursor: Optional[str], order: str = "DATE"
    ) -> Page[Launch]:
        variables = {"slug": product_slug, "cursor": cursor, "order": order}
        raw = await self.client.execute(
            self.LAUNCHES_OPERATION, variables, referer=product_referer(product_slug, "forums")
        )
        decoded = decode(LaunchesResponse, raw)
        if decoded is None:
            return Page()

        posts = decoded.data.product.posts
        launches = [parse_launch(node) for node in posts.nodes()]
        for index, launch in enumerate(launches, start=1):
            logger.debug("[%d] %s: %s", index, launch.name, launch.tagline)
        return Page(
            items=launches,
            next_cursor=posts.page_info.end_cursor,
            has_more=bool(posts.page_info.has_next_page),
        )

    async def fetch_launches(
        self, product_slug: str, limit: Optional[int] = None, order: str = "DATE"
    ) -> List[Launch]:
        async def fetch_page(cursor: Optional[str]) -> Page[Launch]:
            return await self.fetch_launches_page(product_slug, cursor, order)

        return await paginate(
            fetch_page, limit=limit, delay=self.delay, sleep=self.sleep, label="launches"
        )

    # --- comments ------------------------------------------------------------

    async def fetch_first_comments_page(
        self, product_slug: str, launch: Launch, order: str = "VOTES"
    ) -> Optional[Tuple[str, Page[Comment]]]:
        """
        Stage one: look up the launch by slug.

        Returns:
            (post id, first page), or None when the response carries no post
        """
        variables = {
            "commentsListSubjectThreadsCursor": "",
            "commentsThreadRepliesCursor": "",
            "order": order,
            "slug": launch.slug,
            "includeThreadForCommentId": None,
            "commentsListSubjectThreadsLimit": LAUNCH_FIRST_COMMENTS_PAGE_SIZE,
            "commentsListSubjectFilter": None,
            "excludeThreadForCommentId": None,
        }
        raw = await self.client.execute(
            self.FIRST_COMMENTS_OPERATION, variables, referer=product_referer(product_slug)
        )
        decoded = decode(FirstLaunchCommentsResponse, raw)
        if decoded is None:
            return None

        post = decoded.data.post
        if post.threads is None:
            return post.id, Page()
        return post.id, Page(
            items=[parse_comment(node, _subject(launch)) for node in post.threads.nodes()],
            next_cursor=post.threads.page_info.end_cursor,
            has_more=bool(post.threads.page_info.has_next_page),
        )

    async def fetch_next_comments_page(
        self, product_slug: str, launch: Launch, post_id: str, cursor: str, order: str = "VOTES"
    ) -> Page[Comment]:
        """Stage two: every page after the first, addressed by post id."""
        variables = {
            "commentsListSubjectThreadsCursor": cursor,
            "commentsThreadRepliesCursor": "",
            "commentsSubjectId": post_id,
            "commentsSubjectType": "Post",
            "commentsListSubjectThreadsLimit": LAUNCH_COMMENTS_PAGE_SIZE,
            "commentsListSubjectFilter": None,
            "order": order,
            "includeThreadForCommentId": None,
            "excludeThreadForCommentId": None,
        }
        raw = await self.client.execute(
            self.NEXT_COMMENTS_OPERATION, variables, referer=product_referer(product_slug)
        )
        decoded = decode(LaunchCommentsResponse, raw)
        source = decoded.data.source() if decoded is not None else None
        if source is None or source.threads is None:
            return Page()

        return Page(
            items=[parse_comment(node, _subject(launch)) for node in source.threads.nodes()],
            next_cursor=source.threads.page_info.end_cursor,
            has_more=bool(source.threads.page_info.has_next_page),
        )

    async def fetch_comments(
        self,
        product_slug: str,
        launch: Launch,
        limit: Optional[int] = None,
        order: str = "VOTES",
    ) -> List[Comment]:
        """
        Fetch the comments of one launch and complete their replies.

        A failure on the first stage yields no comments; a failure on a later
        page ends pagination and keeps what was gathered.
        """
        post_id: Optional[str] = None

        async def fetch_page(cursor: Optional[str]) -> Page[Comment]:
            nonlocal post_id
            if post_id is None:
                try:
                    first = await self.fetch_first_comments_page(product_slug, launch, order)
                except UpstreamError as e:
                    logger.error("Error fetching first comments page for %s: %s", launch.slug, e)
                    return Page()
                if first is None:
                    logger.error("Could not find post id for launch %s", launch.slug)
                    return Page()
                post_id, page = first
                return page

            try:
                return await self.fetch_next_comments_page(
                    product_slug, launch, post_id, cursor or "", order
                )
            except UpstreamError as e:
                logger.error("Error fetching comments page for post %s: %s", post_id, e)
                return Page()

        comments = await paginate(
            fetch_page, limit=limit, delay=self.delay, sleep=self.sleep, label="launch comments"
        )

        context = ReplyContext(referer=product_referer(product_slug))
        for comment in comments:
            if needs_expansion(comment):
                await self.sleep(self.delay)
                await self.expander.expand(comment, context)

        logger.info(
            "Fetched %d of %d comments for launch %s",
            len(comments), launch.comments_count, launch.slug,
        )
        return comments

    async def fetch(
        self,
        product_slug: str,
        limit: Optional[int] = None,
        comments_limit: Optional[int] = None,
        order: str = "DATE",
    ) -> List[Launch]:
        """
        Fetch launches for a product together with their comments.

        Args:
            product_slug: Product slug
            limit: Maximum number of launches (None for all)
            comments_limit: Maximum top-level comments per launch (None for all)
            order: Launch ordering enum

        Returns:
            Launches with ``comments`` filled in
        """
        logger.info("Fetching launches for %s", product_slug)
        launches = await self.fetch_launches(product_slug, limit=limit, order=order)
        logger.info("Fetched %d launches for %s", len(launches), product_slug)

        for index, launch in enumerate(launches, start=1):
            if not launch.slug:
                logger.warning("Launch #%d has no slug, skipping comments", index)
                continue
            # Launches are spaced twice as far apart as individual requests.
            await self.sleep(self.delay * 2)
            logger.info("Launch %d/%d: %s", index, len(launches), launch.name)
            launch.comments = await self.fetch_comments(product_slug, launch, limit=comments_limit)

        return launches
