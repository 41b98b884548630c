"""
File: hunt_scraper/sources/reviews.py
Product review fetcher (ProductReviewsPage operation).
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

from hunt_scraper.config import REVIEWS_PAGE_SIZE
from hunt_scraper.models import Page, Review, Reviewer
from hunt_scraper.schemas import ReviewNode, ReviewsResponse, decode
from hunt_scraper.sources.common import GraphQLClient, product_referer
from hunt_scraper.sources.paginate import Sleep, paginate
from hunt_scraper.utils import decode_offset_cursor, encode_offset_cursor, format_date, preview

logger = logging.getLogger(__name__)


def parse_review(node: ReviewNode) -> Review:
    review_id = node.id or ""
    base_url = node.url or ""
    user = node.user
    return Review(
        id=review_id,
        reviewer=Reviewer(
            name=(user.name if user else None) or "",
            username=(user.username if user else None) or "",
        ),
        text=node.text or node.body or "",
        rating=node.rating or None,
        date=format_date(node.created_at),
        helpful_votes=node.votes_count or 0,
        url=f"{base_url}?review={review_id}" if review_id else base_url,
        is_verified=bool(node.is_verified),
        comments_count=node.comments_count or 0,
        has_voted=bool(node.has_voted),
    )


class ReviewsFetcher:
    """Fetches a product's reviews, ten per page.

    The endpoint pages by offset: the cursor is the base64 text of the number
    of reviews already returned (10 -> "MTA="). This assumes the upstream page
    size stays at ``REVIEWS_PAGE_SIZE``; if it changes, offsets drift and
    pages will overlap or skip.
    """

    OPERATION = "ProductReviewsPage"

    def __init__(self, client: GraphQLClient, delay: float = 1.0, sleep: Sleep = asyncio.sleep):
        self.client = client
        self.delay = delay
        self.sleep = sleep

    async def fetch_page(self, product_slug: str, cursor: Optional[str]) -> Page[Review]:
        variables = {
            "commentsListSubjectThreadsCursor": "",
            "commentsThreadRepliesCursor": "",
            "slug": product_slug,
            "query": None,
            "reviewsLimit": REVIEWS_PAGE_SIZE,
            "reviewsOrder": "best",
            "includeReviewId": None,
            "rating": "0",
            "order": None,
            "reviewsCursor": cursor,
            "reviewsNoReplies": None,
            "commentsListSubjectThreadsLimit": 10,
            "includeThreadForCommentId": None,
            "commentsListSubjectFilter": None,
            "excludeThreadForCommentId": None,
        }
        raw = await self.client.execute(
            self.OPERATION, variables, referer=product_referer(product_slug)
        )
        decoded = decode(ReviewsResponse, raw)
        if decoded is None:
            return Page()

        product = decoded.data.product
        logger.debug(
            "Product %s (%s): %s reviews, rating %s",
            product.name, product.slug, product.reviews_count, product.reviews_rating,
        )
        reviews = [parse_review(node) for node in product.reviews.nodes()]
        for index, review in enumerate(reviews, start=1):
            logger.debug("[%d] %s: %s", index, review.reviewer.username, preview(review.text))

        offset = decode_offset_cursor(cursor) + len(reviews)
        return Page(
            items=reviews,
            next_cursor=encode_offset_cursor(offset),
            has_more=len(reviews) == REVIEWS_PAGE_SIZE,
        )

    async def fetch(self, product_slug: str, limit: Optional[int] = None) -> List[Review]:
        """
        Fetch reviews for a product.

        Args:
            product_slug: Product slug (e.g., 'lovable')
            limit: Maximum number of reviews (None for all)

        Returns:
            List of Review objects in upstream order
        """
        logger.info("Fetching reviews for %s", product_slug)

        async def fetch_page(cursor: Optional[str]) -> Page[Review]:
            return await self.fetch_page(product_slug, cursor)

        reviews = await paginate(
            fetch_page,
            limit=limit,
            delay=self.delay,
            page_size=REVIEWS_PAGE_SIZE,
            sleep=self.sleep,
            label="reviews",
        )
        logger.info("Fetched %d reviews for %s", len(reviews), product_slug)
        return reviews
