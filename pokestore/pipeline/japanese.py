"""
Japanese card snapshot from tcgcollector.com.

Unlike the API pipeline, the accumulated cards are flushed after every
listing page, so an interrupted run loses at most one page of work.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from pokestore.models.card import CanonicalCard, PriceRecord
from pokestore.models.failure import PipelineError
from pokestore.models.set import SetRecord
from pokestore.pipeline.progress import format_duration
from pokestore.pipeline.storage import (
    JP_CARDS_FILE,
    JP_PRICES_FILE,
    JP_SETS_FILE,
    LocalStore,
    ObjectStore,
)
from pokestore.scrapers.tcgcollector import TcgCollectorScraper
from pokestore.services.name_resolver import PokemonNameResolver
from pokestore.services.normalizer import normalize_html_card
from pokestore.services.set_reconciler import summarize_japanese_sets

logger = logging.getLogger(__name__)


@dataclass
class ScrapeRun:
    """Outcome of one Japanese scrape."""

    cards: list[CanonicalCard] = field(default_factory=list)
    prices: dict[str, PriceRecord] = field(default_factory=dict)
    failed: list[str] = field(default_factory=list)
    failed_pages: list[int] = field(default_factory=list)
    pages: int = 0


async def scrape_japanese_cards(
    scraper: TcgCollectorScraper,
    resolver: PokemonNameResolver | None,
    store: ObjectStore,
    *,
    query: dict[str, Any] | None = None,
    max_pages: int | None = None,
    updated_at: str | None = None,
) -> ScrapeRun:
    """
    Scrape every listing page and its card detail pages.

    Args:
        scraper: tcgcollector.com scraper
        resolver: Species resolver for card names
        store: Destination flushed after every page
        query: Listing query; the scraper default when omitted
        max_pages: Stop after this many pages (debugging)
        updated_at: Date recorded on each card, today by default

    Returns:
        ScrapeRun with cards, prices keyed by card code, failed detail URLs
        and failed listing pages
    """
    updated_at = updated_at or date.today().strftime("%Y/%m/%d")
    run = ScrapeRun()
    run.pages = await scraper.list_pages(query)
    if max_pages is not None:
        run.pages = min(run.pages, max_pages)

    started = time.monotonic()
    for page in range(1, run.pages + 1):
        page_started = time.monotonic()
        logger.info("Scraping page %d/%d", page, run.pages)

        try:
            urls = await scraper.list_card_urls(query, page)
        except PipelineError as e:
            run.failed_pages.append(page)
            logger.error("Listing page %d failed: %s", page, e)
            continue

        batch = await scraper.scrape_urls(urls)
        run.failed.extend(batch.failed)
        for raw in batch.cards:
            normalized = normalize_html_card(raw, resolver, updated_at=updated_at)
            if normalized is None:
                run.failed.append(raw.url)
                continue
            run.cards.append(normalized.card)
            if normalized.prices is not None:
                run.prices[normalized.card.card_code] = normalized.prices

        await store.put(JP_CARDS_FILE, [card.to_dict() for card in run.cards])
        await store.put(
            JP_PRICES_FILE, {code: price.to_dict() for code, price in run.prices.items()}
        )

        elapsed = time.monotonic() - started
        remaining = elapsed / page * (run.pages - page)
        logger.info(
            "Page %d done in %s. Total cards: %d, failed: %d. Elapsed %s, est. remaining %s",
            page,
            format_duration(time.monotonic() - page_started),
            len(run.cards),
            len(run.failed),
            format_duration(elapsed),
            format_duration(remaining),
        )

    logger.info(
        "Scraping finished. Total cards: %d, failed: %d, total time %s",
        len(run.cards),
        len(run.failed),
        format_duration(time.monotonic() - started),
    )
    if run.failed:
        logger.warning("Failed URLs:\n%s", "\n".join(run.failed))
    return run


async def run_japanese_sets(
    local: LocalStore, upload: ObjectStore | None = None
) -> list[SetRecord]:
    """Rebuild the Japanese sets snapshot from the Japanese cards snapshot."""
    raw_cards = local.read(JP_CARDS_FILE, [])
    cards = [CanonicalCard.from_dict(item) for item in raw_cards]
    sets = summarize_japanese_sets(cards)

    payload = [record.to_dict() for record in sets]
    await local.put(JP_SETS_FILE, payload)
    if upload is not None:
        await upload.put(JP_SETS_FILE, payload)
    logger.info("Done. %d sets written from %d cards", len(sets), len(cards))
    return sets
