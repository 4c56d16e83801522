"""Rebuild jp-sets-full.json from the Japanese cards snapshot."""

import argparse
import asyncio
import logging
from pathlib import Path

from pokestore.config import settings
from pokestore.pipeline.japanese import run_japanese_sets
from pokestore.pipeline.storage import LocalStore, remote_store


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Summarize Japanese sets from scraped cards")
    parser.add_argument("--data-dir", type=Path, default=settings.data_dir)
    parser.add_argument("--upload", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    remote = remote_store(settings) if args.upload else None
    asyncio.run(run_japanese_sets(LocalStore(args.data_dir), remote))


if __name__ == "__main__":
    main()
