"""
Reconcile the stored cards snapshot against the stored set list.

Cards whose set disappeared from sets-full.json are re-pointed to the
surviving primary set; both snapshots are rewritten.
"""

import argparse
import asyncio
import logging
from pathlib import Path

from pokestore.config import settings
from pokestore.pipeline.sets import run_merge_pipeline
from pokestore.pipeline.storage import LocalStore, remote_store
from pokestore.services.set_reconciler import ReconciliationResult, load_set_aliases

logger = logging.getLogger(__name__)


async def run_merge_sets(
    data_dir: Path, aliases_path: Path | None = None, *, upload: bool = False
) -> ReconciliationResult | None:
    """Run set reconciliation over the snapshots in data_dir."""
    aliases = load_set_aliases(aliases_path)
    remote = remote_store(settings) if upload else None
    return await run_merge_pipeline(LocalStore(data_dir), aliases, remote)


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Merge obsolete sets in stored cards")
    parser.add_argument("--data-dir", type=Path, default=settings.data_dir)
    parser.add_argument(
        "--aliases",
        type=Path,
        default=None,
        help="Alias table JSON (default: the table shipped with the package)",
    )
    parser.add_argument("--upload", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    asyncio.run(run_merge_sets(args.data_dir, args.aliases, upload=args.upload))


if __name__ == "__main__":
    main()
