"""
Fetch every card from the Pokémon TCG API.

Writes cards-full.json and prices.json once the whole run has completed,
then publishes them when object storage is configured.

Usage:
    python -m pokestore.jobs.fetch_cards --data-dir data
"""

import argparse
import asyncio
import logging
from pathlib import Path

from pokestore.clients.pokemon_tcg import PokemonTcgClient
from pokestore.config import ApiConfig, settings
from pokestore.models.failure import PipelineError
from pokestore.pipeline.cards import CardRun, run_card_pipeline
from pokestore.pipeline.storage import (
    CARDS_FILE,
    POKEMONS_FILE,
    PRICES_FILE,
    LocalStore,
    publish,
    remote_store,
)
from pokestore.services.name_resolver import load_resolver

logger = logging.getLogger(__name__)


async def run_fetch_cards(data_dir: Path, *, upload: bool = False) -> CardRun:
    """
    Run the card pipeline against the configured API.

    Args:
        data_dir: Snapshot directory (also holds pokemons-full.json)
        upload: Publish the snapshots to object storage afterwards
    """
    local = LocalStore(data_dir)
    resolver = load_resolver(data_dir / POKEMONS_FILE)
    config = ApiConfig.from_settings(settings)

    try:
        async with PokemonTcgClient(config) as client:
            run = await run_card_pipeline(client, local, resolver)
    except PipelineError as e:
        logger.error("Card fetch failed: %s", e)
        raise

    remote = remote_store(settings) if upload else None
    if remote is not None:
        await publish(local, remote, (CARDS_FILE, PRICES_FILE))
    return run


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Fetch all cards and prices")
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=settings.data_dir,
        help=f"Snapshot directory (default: {settings.data_dir})",
    )
    parser.add_argument(
        "--upload",
        action="store_true",
        help="Publish snapshots to the configured object storage",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    asyncio.run(run_fetch_cards(args.data_dir, upload=args.upload))


if __name__ == "__main__":
    main()
