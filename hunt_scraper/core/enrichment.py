"""
Batch enrichment of reviews with extracted attributes.

Reviews are sent to an extractor in contiguous batches. Results address
reviews by 1-based position within their batch and are merged back in place.
"""
from __future__ import annotations

import logging
from typing import List

from hunt_scraper.models import Review
from hunt_scraper.services.extractors import Extractor

logger = logging.getLogger(__name__)


def _batches(reviews: List[Review], batch_size: int):
    if batch_size < 1:
        raise ValueError("batch_size must be positive")
    for start in range(0, len(reviews), batch_size):
        yield start // batch_size + 1, reviews[start : start + batch_size]


async def enrich_built_artifacts(
    reviews: List[Review], extractor: Extractor, batch_size: int = 10
) -> List[Review]:
    """
    Fill ``used_to_build`` on every review the extractor recognises.

    Args:
        reviews: Reviews to enrich in place
        extractor: Built-artifact extractor
        batch_size: Number of reviews per extractor call

    Returns:
        The same list. Empty values never overwrite an existing field.

    Raises:
        Whatever the extractor raises; batches already merged stay merged.
    """
    total = (len(reviews) + batch_size - 1) // batch_size if batch_size > 0 else 0
    for number, batch in _batches(reviews, batch_size):
        logger.info("Extracting built artifacts: batch %d/%d (%d reviews)", number, total, len(batch))
        results = await extractor([review.text for review in batch])

        found = 0
        for result in results:
            if not 1 <= result.index <= len(batch):
                logger.debug("Ignoring out-of-range result index %d", result.index)
                continue
            if result.value:
                batch[result.index - 1].used_to_build = result.value
                found += 1
        logger.debug("Batch %d: %d built artifacts found", number, found)

    return reviews


async def enrich_sentiment(
    reviews: List[Review], classifier: Extractor, batch_size: int = 10
) -> List[Review]:
    """
    Classify sentiment for reviews that carry no star rating.

    A review with a rating is never given a sentiment.
    """
    unrated = [review for review in reviews if review.rating is None]
    if not unrated:
        logger.info("All reviews have ratings, skipping sentiment analysis")
        return reviews

    total = (len(unrated) + batch_size - 1) // batch_size if batch_size > 0 else 0
    logger.info("Classifying sentiment for %d reviews without ratings", len(unrated))

    for number, batch in _batches(unrated, batch_size):
        logger.info("Classifying sentiment: batch %d/%d (%d reviews)", number, total, len(batch))
        results = await classifier([review.text for review in batch])

        for result in results:
            if not 1 <= result.index <= len(batch):
                logger.debug("Ignoring out-of-range result index %d", result.index)
                continue
            # batch items are the same objects as in the full list
            target = batch[result.index - 1]
            if target.rating is None and result.value:
                target.sentiment = result.value

    return reviews
