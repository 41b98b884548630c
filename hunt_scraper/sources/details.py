"""
Product details fetcher (ProductAboutPage operation).
"""
from __future__ import annotations

import logging
from typing import Optional

from hunt_scraper.models import Category, Media, PostSummary, ProductDetails
from hunt_scraper.schemas import DetailsProduct, DetailsResponse, decode
from hunt_scraper.sources.common import GraphQLClient, UpstreamError, product_referer
from hunt_scraper.utils import image_url

logger = logging.getLogger(__name__)


def parse_details(product: DetailsProduct) -> ProductDetails:
    categories = [
        Category(
            id=category.id or "",
            title=category.title or "",
            slug=(category.to or "").replace("/categories/", ""),
        )
        for category in product.categories or []
    ]
    media = [
        Media(
            id=item.id or "",
            type=item.media_type or "",
            image_url=image_url(item.image_uuid),
            video_url=(item.metadata or {}).get("url"),
            platform=(item.metadata or {}).get("platform"),
        )
        for item in product.media or []
    ]
    posts = [
        PostSummary(
            id=post.id or "",
            slug=post.slug or "",
            name=post.name or "",
            tagline=post.tagline or "",
            votes_count=post.votes_count or 0,
            comments_count=post.comments_count or 0,
            created_at=post.created_at or "",
            thumbnail_url=image_url(post.thumbnail_image_uuid),
        )
        for post in (product.posts.nodes() if product.posts else [])
    ]
    return ProductDetails(
        id=product.id,
        slug=product.slug or "",
        name=product.name or "",
        description=product.description or "",
        reviews_count=product.reviews_count or 0,
        reviews_rating=product.reviews_rating,
        posts_count=product.posts_count or 0,
        stacks_count=product.stacks_count or 0,
        alternatives_count=product.alternatives_count or 0,
        shoutouts_count=product.shoutouts_to_count or 0,
        categories=categories,
        media=media,
        posts=posts,
        discussion_forum_path=product.discussion_forum.path if product.discussion_forum else None,
    )


class DetailsFetcher:
    """Fetches the about-page metadata of a product."""

    OPERATION = "ProductAboutPage"

    def __init__(self, client: GraphQLClient):
        self.client = client

    async def fetch(self, product_slug: str) -> Optional[ProductDetails]:
        """
        Fetch details for a product.

        Returns:
            ProductDetails, or None if the request failed or returned no product
        """
        logger.info("Fetching details for %s", product_slug)
        try:
            raw = await self.client.execute(
                self.OPERATION,
                {"productSlug": product_slug},
                referer=product_referer(product_slug, "about"),
            )
        except UpstreamError as e:
            logger.error("Error fetching details for %s: %s", product_slug, e)
            return None

        decoded = decode(DetailsResponse, raw)
        if decoded is None:
            logger.warning("No product data found in response for %s", product_slug)
            return None
        return parse_details(decoded.data.product)
