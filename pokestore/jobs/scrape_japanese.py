"""
Scrape Japanese cards from tcgcollector.com into jp-cards-full.json and
jp-prices.json.

Both snapshots are rewritten after every listing page.
"""

import argparse
import asyncio
import logging
from pathlib import Path

import httpx

from pokestore.config import SCRAPER_CHUNK_DELAY, SCRAPER_WORKERS, settings
from pokestore.models.failure import PipelineError
from pokestore.pipeline.japanese import ScrapeRun, scrape_japanese_cards
from pokestore.pipeline.storage import (
    JP_CARDS_FILE,
    JP_PRICES_FILE,
    POKEMONS_FILE,
    LocalStore,
    publish,
    remote_store,
)
from pokestore.scrapers.tcgcollector import HEADERS, TcgCollectorScraper
from pokestore.services.name_resolver import load_resolver

logger = logging.getLogger(__name__)


async def run_scrape_japanese(
    data_dir: Path,
    *,
    max_pages: int | None = None,
    workers: int = SCRAPER_WORKERS,
    upload: bool = False,
) -> ScrapeRun:
    """Scrape all listing pages, or the first `max_pages`."""
    local = LocalStore(data_dir)
    resolver = load_resolver(data_dir / POKEMONS_FILE)

    async with httpx.AsyncClient(headers=HEADERS, timeout=30.0, follow_redirects=True) as client:
        scraper = TcgCollectorScraper(
            base_url=settings.tcgcollector_url,
            workers=workers,
            chunk_delay=SCRAPER_CHUNK_DELAY,
            client=client,
        )
        try:
            run = await scrape_japanese_cards(scraper, resolver, local, max_pages=max_pages)
        except PipelineError as e:
            logger.error("Could not read the listing: %s", e)
            raise

    remote = remote_store(settings) if upload else None
    if remote is not None:
        await publish(local, remote, (JP_CARDS_FILE, JP_PRICES_FILE))
    return run


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Scrape Japanese cards from tcgcollector.com")
    parser.add_argument("--data-dir", type=Path, default=settings.data_dir)
    parser.add_argument(
        "--max-pages",
        type=int,
        default=None,
        help="Stop after this many listing pages",
    )
    parser.add_argument("--workers", type=int, default=SCRAPER_WORKERS)
    parser.add_argument("--upload", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    asyncio.run(
        run_scrape_japanese(
            args.data_dir,
            max_pages=args.max_pages,
            workers=args.workers,
            upload=args.upload,
        )
    )


if __name__ == "__main__":
    main()
