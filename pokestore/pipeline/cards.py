"""
Full card snapshot from the Pokémon TCG API.

Pages are fetched in batches of PAGES_BATCH_SIZE concurrent requests. A
failing page never cancels its siblings. The batch that contains a short
page (fewer records than the page size) is the last one, and so is a
batch in which every page failed. The whole aggregate is written once,
at the end of the run.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field

from pokestore.clients.pokemon_tcg import PokemonTcgClient
from pokestore.config import PAGES_BATCH_SIZE
from pokestore.models.card import CanonicalCard, PriceRecord
from pokestore.models.failure import MissingCredentialError
from pokestore.models.set import SetMapping
from pokestore.pipeline.progress import ProgressTracker
from pokestore.pipeline.storage import CARDS_FILE, PRICES_FILE, ObjectStore
from pokestore.services.name_resolver import PokemonNameResolver
from pokestore.services.normalizer import NormalizedCard, normalize_api_card
from pokestore.services.set_reconciler import load_set_aliases, merge_fetched_sets, to_set_record

logger = logging.getLogger(__name__)

BATCH_DELAY = 0.1


@dataclass
class PageResult:
    page: int
    cards: list[NormalizedCard]
    raw_count: int
    seconds: float
    total_count: int | None
    is_last: bool


@dataclass
class CardRun:
    """Aggregate of one full card fetch."""

    cards: list[CanonicalCard] = field(default_factory=list)
    prices: dict[str, PriceRecord] = field(default_factory=dict)
    total_available: int = 0
    failed_pages: list[int] = field(default_factory=list)
    skipped: int = 0
    duplicates: list[str] = field(default_factory=list)

    def prices_payload(self) -> dict[str, dict[str, float]]:
        return {code: record.to_dict() for code, record in self.prices.items()}


async def fetch_page_cards(
    client: PokemonTcgClient,
    page: int,
    set_mapping: SetMapping,
    resolver: PokemonNameResolver | None,
) -> PageResult:
    """Fetch and normalize one page of cards."""
    started = time.monotonic()
    logger.info("Retrieving page %d...", page)
    response = await client.fetch_cards_page(page)

    cards = []
    for item in response.data:
        normalized = normalize_api_card(item, set_mapping, resolver)
        if normalized is not None:
            cards.append(normalized)

    seconds = time.monotonic() - started
    raw_count = len(response.data)
    logger.info("Page %d: %d cards (%d kept) in %.2fs", page, raw_count, len(cards), seconds)
    return PageResult(
        page=page,
        cards=cards,
        raw_count=raw_count,
        seconds=seconds,
        total_count=response.total_count,
        is_last=raw_count < client.config.page_size,
    )


async def fetch_all_cards(
    client: PokemonTcgClient,
    set_mapping: SetMapping,
    resolver: PokemonNameResolver | None = None,
    *,
    batch_size: int = PAGES_BATCH_SIZE,
    batch_delay: float = BATCH_DELAY,
    tracker: ProgressTracker | None = None,
) -> CardRun:
    """
    Fetch every card page and aggregate the normalized results.

    Args:
        client: Open API client
        set_mapping: Folded set name -> primary set
        resolver: Species resolver for cards without Pokédex numbers
        batch_size: Pages fetched concurrently
        batch_delay: Pause between batches in seconds
        tracker: Progress tracker; a fresh one by default

    Returns:
        CardRun with cards, prices keyed by card code and failed pages
    """
    tracker = tracker or ProgressTracker(page_size=client.config.page_size)
    run = CardRun()
    seen: set[str] = set()
    start_page = 1

    while True:
        pages = list(range(start_page, start_page + batch_size))
        results = await asyncio.gather(
            *(fetch_page_cards(client, page, set_mapping, resolver) for page in pages),
            return_exceptions=True,
        )

        done = False
        succeeded = 0
        for page, result in zip(pages, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception) or isinstance(result, MissingCredentialError):
                    raise result
                run.failed_pages.append(page)
                logger.error("Page %d failed: %s", page, result)
                continue

            succeeded += 1
            run.skipped += result.raw_count - len(result.cards)
            tracker.record_page(len(result.cards), result.seconds, result.total_count)
            for normalized in result.cards:
                code = normalized.card.card_code
                if code in seen:
                    run.duplicates.append(code)
                    logger.warning(
                        "Duplicate card code %s for '%s', keeping the first",
                        code,
                        normalized.card.name,
                    )
                    continue
                seen.add(code)
                run.cards.append(normalized.card)
                if normalized.prices is not None:
                    run.prices[code] = normalized.prices
            if result.is_last:
                done = True

        if succeeded == 0:
            logger.error("All pages in batch %d-%d failed, stopping", pages[0], pages[-1])
            if not run.cards:
                # A run that retrieved nothing never writes a snapshot
                raise next(r for r in results if isinstance(r, Exception))
            break

        tracker.log_progress()
        if done:
            logger.info("All pages have been retrieved")
            break

        start_page += batch_size
        if batch_delay:
            await asyncio.sleep(batch_delay)

    run.total_available = tracker.total_available
    tracker.log_summary(run.cards)
    if run.failed_pages:
        logger.warning("Failed pages: %s", ", ".join(str(p) for p in run.failed_pages))
    return run


async def fetch_set_mapping(client: PokemonTcgClient) -> SetMapping:
    """Live set mapping: fetch the set list and fold it."""
    raw_sets = await client.fetch_sets()
    result = merge_fetched_sets([to_set_record(raw) for raw in raw_sets], load_set_aliases())
    return result.mapping


async def run_card_pipeline(
    client: PokemonTcgClient,
    store: ObjectStore,
    resolver: PokemonNameResolver | None = None,
    set_mapping: SetMapping | None = None,
) -> CardRun:
    """
    Fetch all cards and write the cards and prices snapshots in one shot.

    Args:
        client: Open API client
        store: Snapshot destination
        resolver: Species resolver
        set_mapping: Folded set mapping; fetched live when omitted
    """
    if set_mapping is None:
        set_mapping = await fetch_set_mapping(client)

    run = await fetch_all_cards(client, set_mapping, resolver)

    await store.put(CARDS_FILE, [card.to_dict() for card in run.cards])
    await store.put(PRICES_FILE, run.prices_payload())
    logger.info("Finished writing %d cards and %d price records", len(run.cards), len(run.prices))
    return run
