"""
Product makers fetcher (ProductPageMakers operation).
"""
from __future__ import annotations

import logging
from typing import List, Optional

from hunt_scraper.models import MadePost, Maker
from hunt_scraper.schemas import MakersResponse, UserNode, decode
from hunt_scraper.sources.common import GraphQLClient, UpstreamError, product_referer
from hunt_scraper.utils import image_url

logger = logging.getLogger(__name__)


def parse_maker(node: UserNode) -> Maker:
    made_posts = [
        MadePost(
            id=post.id or "",
            slug=post.slug or "",
            name=post.name or "",
            thumbnail_url=image_url(post.thumbnail_image_uuid),
        )
        for post in (node.made_posts.nodes() if node.made_posts else [])
    ]
    return Maker(
        id=node.id or "",
        name=node.name or "",
        username=node.username or "",
        headline=node.headline or None,
        avatar_url=node.avatar_url or "",
        followers_count=node.followers_count or 0,
        made_posts=made_posts,
        made_posts_count=len(made_posts),
    )


class MakersFetcher:
    """Fetches the makers credited on a product page."""

    OPERATION = "ProductPageMakers"

    def __init__(self, client: GraphQLClient):
        self.client = client

    async def fetch(self, product_slug: str) -> Optional[List[Maker]]:
        """
        Fetch makers for a product.

        Returns:
            List of makers, or None if the request failed or returned no makers
        """
        logger.info("Fetching makers for %s", product_slug)
        try:
            raw = await self.client.execute(
                self.OPERATION,
                {"slug": product_slug, "cursor": None},
                referer=product_referer(product_slug),
            )
        except UpstreamError as e:
            logger.error("Error fetching makers for %s: %s", product_slug, e)
            return None

        decoded = decode(MakersResponse, raw)
        if decoded is None:
            logger.warning("No maker data found in response for %s", product_slug)
            return None

        makers = [parse_maker(node) for node in decoded.data.product.makers.nodes()]
        logger.info("Fetched %d makers for %s", len(makers), product_slug)
        return makers
