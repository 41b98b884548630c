"""
Crawl orchestration and command-line entry point.
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import time
from typing import Any, Dict, List, Optional, Sequence, Tuple

from hunt_scraper.config import ConfigurationError, Settings, load_settings
from hunt_scraper.core.correlate import correlate
from hunt_scraper.core.enrichment import enrich_built_artifacts, enrich_sentiment
from hunt_scraper.models import ProductCrawl, Review
from hunt_scraper.services.extractors import EnrichmentError, Extractor, build_extractors
from hunt_scraper.sources.common import GraphQLClient
from hunt_scraper.sources.details import DetailsFetcher
from hunt_scraper.sources.launches import LaunchesFetcher
from hunt_scraper.sources.makers import MakersFetcher
from hunt_scraper.sources.paginate import Sleep
from hunt_scraper.sources.reviews import ReviewsFetcher
from hunt_scraper.sources.threads import ThreadsFetcher
from hunt_scraper.storage import OutputStore

logger = logging.getLogger("hunt_scraper")

Extractors = Tuple[Extractor, Optional[Extractor]]


def _save(store: Optional[OutputStore], slug: str, name: str, data: Any) -> None:
    if store is not None:
        store.save(slug, name, data)


async def enrich_reviews(
    reviews: List[Review], settings: Settings, extractors: Optional[Extractors] = None
) -> List[Review]:
    """
    Add built artifacts and sentiment to reviews.

    A missing credential or a failing enrichment service is logged; the
    reviews are returned either way, enriched as far as the run got.
    """
    if not settings.ENRICH_REVIEWS or not reviews:
        return reviews

    try:
        built, sentiment = extractors or build_extractors(settings)
        await enrich_built_artifacts(reviews, built, batch_size=settings.ENRICH_BATCH_SIZE)
        if sentiment is not None:
            await enrich_sentiment(reviews, sentiment, batch_size=settings.ENRICH_BATCH_SIZE)
        else:
            logger.info("No sentiment classifier configured, skipping sentiment analysis")
    except ConfigurationError as e:
        logger.error("Review enrichment skipped: %s", e)
    except EnrichmentError as e:
        logger.error("Review enrichment failed, keeping raw reviews: %s", e)
    except Exception:
        logger.exception("Review enrichment failed unexpectedly, keeping raw reviews")

    return reviews


async def crawl_product(
    slug: str,
    settings: Settings,
    client: Optional[GraphQLClient] = None,
    store: Optional[OutputStore] = None,
    sleep: Sleep = asyncio.sleep,
    extractors: Optional[Extractors] = None,
) -> ProductCrawl:
    """
    Crawl every resource of one product, enrich, correlate and save.

    Each resource is written as soon as it is complete, so a later failure
    keeps what was already gathered on disk.

    Args:
        slug: Product slug
        settings: Runtime settings (limits, delay, enrichment)
        client: GraphQL client; one is opened for this call when omitted
        store: Output store; results are not written when omitted
        sleep: Awaitable used for pacing
        extractors: Pre-built (built artifact, sentiment) extractors

    Returns:
        The crawl result

    Raises:
        UpstreamError: If reviews, threads or launches cannot be listed
    """
    if client is None:
        async with GraphQLClient() as owned:
            return await crawl_product(slug, settings, owned, store, sleep, extractors)

    delay = settings.REQUEST_DELAY
    crawl = ProductCrawl(slug=slug)

    logger.info("=== Crawling %s ===", slug)
    crawl.reviews = await ReviewsFetcher(client, delay=delay, sleep=sleep).fetch(
        slug, limit=settings.REVIEWS_LIMIT
    )
    await enrich_reviews(crawl.reviews, settings, extractors)
    _save(store, slug, "reviews", crawl.reviews)

    await sleep(delay)
    crawl.threads = await ThreadsFetcher(client, delay=delay, sleep=sleep).fetch(
        slug, limit=settings.THREADS_LIMIT, comments_limit=settings.THREAD_COMMENTS_LIMIT
    )
    _save(store, slug, "threads", crawl.threads)

    await sleep(delay)
    crawl.launches = await LaunchesFetcher(client, delay=delay, sleep=sleep).fetch(
        slug, limit=settings.LAUNCHES_LIMIT, comments_limit=settings.LAUNCH_COMMENTS_LIMIT
    )
    _save(store, slug, "launches", crawl.launches)

    await sleep(delay)
    crawl.details = await DetailsFetcher(client).fetch(slug)
    if crawl.details is not None:
        _save(store, slug, "details", crawl.details)

    await sleep(delay)
    makers = await MakersFetcher(client).fetch(slug) or []

    try:
        crawl.makers = correlate(makers, crawl.launches, crawl.threads)
    except Exception:
        logger.exception("Correlating makers for %s failed, keeping makers without activity", slug)
        crawl.makers = makers

    _save(store, slug, "makers", crawl.makers)

    logger.info(
        "=== %s: %d reviews, %d threads, %d launches, %d makers ===",
        slug, len(crawl.reviews), len(crawl.threads), len(crawl.launches), len(crawl.makers),
    )
    return crawl


async def crawl_products(
    slugs: Sequence[str],
    settings: Settings,
    client: Optional[GraphQLClient] = None,
    store: Optional[OutputStore] = None,
    sleep: Sleep = asyncio.sleep,
) -> Dict[str, ProductCrawl]:
    """
    Crawl products one after another.

    A product that fails is logged and skipped; the others still run.

    Returns:
        Crawl results keyed by slug, for the products that completed
    """
    if client is None:
        async with GraphQLClient() as owned:
            return await crawl_products(slugs, settings, owned, store, sleep)

    results: Dict[str, ProductCrawl] = {}
    for index, slug in enumerate(slugs, start=1):
        if index > 1:
            await sleep(settings.REQUEST_DELAY)
        start = time.perf_counter()
        try:
            results[slug] = await crawl_product(slug, settings, client, store, sleep)
        except Exception:
            logger.exception("Crawl failed for %s", slug)
            continue
        logger.info("Crawled %s in %.1fs", slug, time.perf_counter() - start)

    logger.info("Completed %d of %d products", len(results), len(slugs))
    return results


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hunt-scraper",
        description="Crawl Product Hunt reviews, forum threads, launches and makers.",
    )
    parser.add_argument("slugs", nargs="+", help="Product slugs to crawl (e.g. lovable)")
    parser.add_argument("--reviews-limit", type=int, help="Maximum reviews per product")
    parser.add_argument("--threads-limit", type=int, help="Maximum forum threads per product")
    parser.add_argument("--thread-comments-limit", type=int, help="Maximum comments per thread")
    parser.add_argument("--launches-limit", type=int, help="Maximum launches per product")
    parser.add_argument("--launch-comments-limit", type=int, help="Maximum comments per launch")
    parser.add_argument("--delay", type=float, help="Seconds to wait between requests")
    parser.add_argument("--output-dir", help="Directory to write results to")
    parser.add_argument("--no-enrich", action="store_true", help="Skip review enrichment")
    parser.add_argument(
        "--extractor", choices=["llm", "regex"], help="Built-artifact extractor to use"
    )
    parser.add_argument("--log-level", help="Logging level (DEBUG, INFO, ...)")
    return parser


def settings_from_args(args: argparse.Namespace) -> Settings:
    overrides = {
        "REVIEWS_LIMIT": args.reviews_limit,
        "THREADS_LIMIT": args.threads_limit,
        "THREAD_COMMENTS_LIMIT": args.thread_comments_limit,
        "LAUNCHES_LIMIT": args.launches_limit,
        "LAUNCH_COMMENTS_LIMIT": args.launch_comments_limit,
        "REQUEST_DELAY": args.delay,
        "OUTPUT_DIR": args.output_dir,
        "BUILT_EXTRACTOR": args.extractor,
        "LOG_LEVEL": args.log_level,
    }
    if args.no_enrich:
        overrides["ENRICH_REVIEWS"] = False
    return load_settings(**{key: value for key, value in overrides.items() if value is not None})


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = settings_from_args(args)

    logging.basicConfig(level=settings.LOG_LEVEL.upper(), format=settings.LOG_FORMAT)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    try:
        asyncio.run(crawl_products(args.slugs, settings, store=OutputStore(settings.OUTPUT_DIR)))
    except Exception:
        logger.exception("Fatal error")
        return 1
    return 0


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
