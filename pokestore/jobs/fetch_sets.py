"""
Refresh the canonical set list.

Fetches every set, folds alias records into their primary and writes
sets-full.json.
"""

import argparse
import asyncio
import logging
from pathlib import Path

from pokestore.clients.pokemon_tcg import PokemonTcgClient
from pokestore.config import ApiConfig, settings
from pokestore.models.failure import PipelineError
from pokestore.models.set import SetRecord
from pokestore.pipeline.sets import run_set_pipeline
from pokestore.pipeline.storage import SETS_FILE, LocalStore, publish, remote_store

logger = logging.getLogger(__name__)


async def run_fetch_sets(data_dir: Path, *, upload: bool = False) -> list[SetRecord]:
    """Fetch, merge and store the set list."""
    local = LocalStore(data_dir)
    config = ApiConfig.from_settings(settings)

    try:
        async with PokemonTcgClient(config) as client:
            sets = await run_set_pipeline(client, local)
    except PipelineError as e:
        logger.error("Set fetch failed: %s", e)
        raise

    remote = remote_store(settings) if upload else None
    if remote is not None:
        await publish(local, remote, (SETS_FILE,))
    return sets


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Fetch and merge the set list")
    parser.add_argument("--data-dir", type=Path, default=settings.data_dir)
    parser.add_argument("--upload", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    asyncio.run(run_fetch_sets(args.data_dir, upload=args.upload))


if __name__ == "__main__":
    main()
