"""
Expansion of reply pages for a single comment.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional

from hunt_scraper.config import MAX_REPLY_FETCH_ATTEMPTS
from hunt_scraper.models import Comment, Page
from hunt_scraper.schemas import RepliesResponse, decode
from hunt_scraper.sources.comments import parse_replies
from hunt_scraper.sources.common import GraphQLClient, UpstreamError
from hunt_scraper.sources.paginate import Sleep

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReplyContext:
    """Referer values sent with reply requests for one thread or launch."""

    referer: str
    ph_referer: Optional[str] = None


def needs_expansion(comment: Comment) -> bool:
    return comment.has_more_replies or comment.replies_count > len(comment.replies)


class ReplyExpander:
    """Fetches the remaining reply pages of a comment and merges them in.

    Known limitation: replies to replies are kept only when the response
    already contains them (``Comment.nested_replies``); they are not paginated.
    """

    OPERATION = "CommentsThread"

    def __init__(
        self,
        client: GraphQLClient,
        delay: float = 1.0,
        max_attempts: int = MAX_REPLY_FETCH_ATTEMPTS,
        sleep: Sleep = asyncio.sleep,
    ):
        self.client = client
        self.delay = delay
        self.max_attempts = max_attempts
        self.sleep = sleep

    async def fetch_page(
        self,
        comment: Comment,
        cursor: str,
        excluded_ids: List[str],
        context: ReplyContext,
    ) -> Page[Comment]:
        variables = {
            "commentsThreadRepliesCursor": cursor,
            "includeCollapsed": True,
            "commentsThreadId": comment.id,
            "excludedCommentIds": excluded_ids,
            "includeThreadForCommentId": None,
        }
        raw = await self.client.execute(
            self.OPERATION, variables, referer=context.referer, ph_referer=context.ph_referer
        )
        decoded = decode(RepliesResponse, raw)
        if decoded is None:
            return Page()

        replies = decoded.data.comment.replies
        return Page(
            items=parse_replies(replies.nodes(), comment.id, comment.subject),
            next_cursor=replies.page_info.end_cursor,
            has_more=bool(replies.page_info.has_next_page),
        )

    async def expand(self, comment: Comment, context: ReplyContext, from_start: bool = False) -> Comment:
        """
        Complete the reply list of ``comment`` in place.

        Args:
            comment: Top-level comment carrying its first page of replies
            context: Referer values for the requests
            from_start: Request every reply from an empty cursor without
                exclusions instead of resuming at ``replies_end_cursor``

        Returns:
            The same comment. On success ``has_more_replies`` is False; if a
            request fails the replies gathered so far are kept and
            ``has_more_replies`` stays True.
        """
        if not needs_expansion(comment):
            return comment

        replies = list(comment.replies)
        seen = {reply.id for reply in replies}
        cursor = "" if from_start else (comment.replies_end_cursor or "")
        # Upstream honours exclusions only on the first request.
        first_exclusions = [] if from_start else [reply.id for reply in replies]
        attempts = 0

        try:
            while True:
                attempts += 1
                page = await self.fetch_page(
                    comment, cursor, first_exclusions if attempts == 1 else [], context
                )
                if not page.items:
                    break

                added = 0
                for reply in page.items:
                    if reply.id in seen:
                        continue
                    seen.add(reply.id)
                    replies.append(reply)
                    added += 1
                logger.debug(
                    "Comment %s: %d new replies (%d/%d)",
                    comment.id, added, len(replies), comment.replies_count,
                )

                if not page.has_more or not page.next_cursor:
                    break
                if attempts >= self.max_attempts:
                    logger.warning(
                        "Reached max fetch attempts (%d) for replies of comment %s",
                        self.max_attempts, comment.id,
                    )
                    break

                cursor = page.next_cursor
                await self.sleep(self.delay)
        except UpstreamError as e:
            logger.warning("Error expanding replies for comment %s: %s", comment.id, e)
            comment.replies = replies
            comment.has_more_replies = True
            return comment

        comment.replies = replies
        comment.has_more_replies = False
        comment.replies_end_cursor = None
        return comment
