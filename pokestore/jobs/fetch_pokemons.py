"""
Download the species reference table from PokéAPI.

Writes pokemons-full.json, which the name resolver reads.
"""

import argparse
import asyncio
import logging
from pathlib import Path

import httpx

from pokestore.clients.pokeapi import fetch_species
from pokestore.config import POKEMONS_COUNT, settings
from pokestore.models.species import Species
from pokestore.pipeline.storage import POKEMONS_FILE, LocalStore

logger = logging.getLogger(__name__)


async def run_fetch_pokemons(data_dir: Path, count: int = POKEMONS_COUNT) -> list[Species]:
    """Fetch `count` species and store them as [{"id", "name"}]."""
    async with httpx.AsyncClient(timeout=30.0) as client:
        species = await fetch_species(client, count, base_url=settings.pokeapi_url)

    await LocalStore(data_dir).put(
        POKEMONS_FILE, [{"id": entry.id, "name": entry.name} for entry in species]
    )
    return species


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Download the Pokémon species list")
    parser.add_argument("--data-dir", type=Path, default=settings.data_dir)
    parser.add_argument(
        "--count",
        type=int,
        default=POKEMONS_COUNT,
        help=f"Number of species to fetch (default: {POKEMONS_COUNT})",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    asyncio.run(run_fetch_pokemons(args.data_dir, args.count))


if __name__ == "__main__":
    main()
