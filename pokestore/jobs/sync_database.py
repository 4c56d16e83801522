"""
Load the JSON snapshots into the database.

Everything is written in one transaction. Sets, Japanese sets and types
are replaced; species, cards and prices are upserted. Card and price rows
whose codes are no longer in the snapshot are deleted first, so a card
moved to its primary set does not survive under its old code. Price rows
always follow the cards they reference.
"""

import argparse
import asyncio
import logging
from pathlib import Path

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pokestore.config import settings
from pokestore.db.database import async_session_factory, init_db
from pokestore.db.operations import (
    collect_types,
    delete_absent,
    get_sets,
    replace_sets,
    replace_types,
    upsert_cards,
    upsert_prices,
    upsert_species,
)
from pokestore.models.card import CanonicalCard, PriceRecord
from pokestore.models.db import CardDB, JpCardDB, JpPriceDB, JpSetDB, PriceDB, SetDB
from pokestore.models.set import SetRecord
from pokestore.pipeline.storage import (
    CARDS_FILE,
    JP_CARDS_FILE,
    JP_PRICES_FILE,
    JP_SETS_FILE,
    POKEMONS_FILE,
    PRICES_FILE,
    SETS_FILE,
    LocalStore,
)
from pokestore.services.name_resolver import load_species

logger = logging.getLogger(__name__)

# Invalid set names listed in the log before truncating
MAX_REPORTED_SETS = 20


def _read_cards(local: LocalStore, name: str) -> list[CanonicalCard]:
    return [CanonicalCard.from_dict(item) for item in local.read(name, [])]


def _read_prices(
    local: LocalStore, name: str, cards: list[CanonicalCard]
) -> dict[str, PriceRecord]:
    """Load a prices snapshot, dropping entries without a matching card."""
    prices = {code: PriceRecord.from_dict(item) for code, item in local.read(name, {}).items()}
    codes = {card.card_code for card in cards}
    orphaned = [code for code in prices if code not in codes]
    for code in orphaned:
        del prices[code]
    if orphaned:
        logger.warning("Dropped %d prices in %s without a matching card", len(orphaned), name)
    return prices


def report_invalid_sets(cards: list[CanonicalCard], set_names: set[str], label: str) -> list[str]:
    """Log cards whose set name is not in the set table; returns the offending names."""
    invalid: dict[str, int] = {}
    for card in cards:
        if card.set_name not in set_names:
            invalid[card.set_name] = invalid.get(card.set_name, 0) + 1
    if invalid:
        listed = sorted(invalid)[:MAX_REPORTED_SETS]
        logger.warning(
            "%d %s cards reference %d unknown sets: %s",
            sum(invalid.values()),
            label,
            len(invalid),
            ", ".join(f"{name} ({invalid[name]})" for name in listed),
        )
    return sorted(invalid)


async def _sync_cards(
    session: AsyncSession,
    cards: list[CanonicalCard],
    prices: dict[str, PriceRecord],
    card_model: type[CardDB] | type[JpCardDB],
    price_model: type[PriceDB] | type[JpPriceDB],
    known_sets: set[str] | None = None,
) -> tuple[int, int]:
    # An empty snapshot means the file was never produced; keep the table
    if not cards:
        return 0, 0

    stale_prices = await delete_absent(session, price_model, prices)
    stale_cards = await delete_absent(session, card_model, (card.card_code for card in cards))
    if stale_cards or stale_prices:
        logger.info(
            "Removed %d %s rows and %d %s rows no longer in the snapshots",
            len(stale_cards),
            card_model.__tablename__,
            len(stale_prices),
            price_model.__tablename__,
        )

    written = await upsert_cards(session, cards, card_model, known_sets=known_sets)
    return written, await upsert_prices(session, prices, price_model)


async def sync_snapshots(session: AsyncSession, local: LocalStore) -> dict[str, int]:
    """
    Write the snapshots in `local` through an open session.

    English cards keep set names the set table does not know, with a
    warning. Japanese cards store such set names as NULL.

    Args:
        session: Database session; the caller commits
        local: Snapshot directory

    Returns:
        Rows written per table
    """
    species = load_species(local.path(POKEMONS_FILE))
    sets = [SetRecord.from_dict(item) for item in local.read(SETS_FILE, [])]
    jp_sets = [SetRecord.from_dict(item) for item in local.read(JP_SETS_FILE, [])]
    cards = _read_cards(local, CARDS_FILE)
    prices = _read_prices(local, PRICES_FILE, cards)
    jp_cards = _read_cards(local, JP_CARDS_FILE)
    jp_prices = _read_prices(local, JP_PRICES_FILE, jp_cards)
    types = collect_types(cards)

    counts = {
        "pokemons": await upsert_species(session, species),
        "sets": await replace_sets(session, sets) if sets else 0,
        "jp_sets": await replace_sets(session, jp_sets, JpSetDB) if jp_sets else 0,
        "types": await replace_types(session, types) if types else 0,
    }

    set_names = {record.name for record in await get_sets(session, SetDB)}
    jp_set_names = {record.name for record in await get_sets(session, JpSetDB)}
    report_invalid_sets(cards, set_names, "English")
    report_invalid_sets(jp_cards, jp_set_names, "Japanese")

    counts["cards"], counts["prices"] = await _sync_cards(session, cards, prices, CardDB, PriceDB)
    counts["jp_cards"], counts["jp_prices"] = await _sync_cards(
        session, jp_cards, jp_prices, JpCardDB, JpPriceDB, known_sets=jp_set_names
    )
    logger.info("Synced %s", ", ".join(f"{k}={v}" for k, v in counts.items()))
    return counts


async def run_sync(
    data_dir: Path, session_factory: async_sessionmaker[AsyncSession] | None = None
) -> dict[str, int]:
    """Create tables if needed and load every snapshot."""
    if session_factory is None:
        await init_db()
        session_factory = async_session_factory

    async with session_factory() as session:
        counts = await sync_snapshots(session, LocalStore(data_dir))
        await session.commit()
    return counts


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Load JSON snapshots into the database")
    parser.add_argument("--data-dir", type=Path, default=settings.data_dir)
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    asyncio.run(run_sync(args.data_dir))


if __name__ == "__main__":
    main()
