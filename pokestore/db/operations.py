"""
Database write-out of canonical snapshots.

Cards, prices and species are upserted by primary key; set and type lists
are replaced wholesale because reconciliation can rename and drop sets.
Card and price functions take the table to write, so the English and
Japanese tables share one code path.
"""

from collections.abc import Iterable, Sequence

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from pokestore.models.card import PRICE_FIELDS, CanonicalCard, PriceRecord
from pokestore.models.db import (
    CardColumns,
    CardDB,
    PokemonDB,
    PriceColumns,
    PriceDB,
    SetColumns,
    SetDB,
    TypeDB,
)
from pokestore.models.set import SetRecord
from pokestore.models.species import Species

# Keeps IN (...) lists below SQLite's bound parameter limit
CHUNK_SIZE = 500


def _chunks(items: Sequence, size: int = CHUNK_SIZE) -> Iterable[Sequence]:
    for start in range(0, len(items), size):
        yield items[start : start + size]


# --- Card Operations ---


async def count_cards(session: AsyncSession, model: type[CardColumns] = CardDB) -> int:
    result = await session.execute(select(func.count()).select_from(model))
    return int(result.scalar_one())


def _apply_card(row: CardColumns, card: CanonicalCard, set_name: str | None) -> None:
    row.name = card.name
    row.artist = card.artist
    row.rarity = card.rarity
    row.set_name = set_name
    row.supertype = card.supertype
    row.types = card.types
    row.image = card.image
    row.pokemon_id = card.pokemon_number
    row.card_market_url = card.card_market_url
    row.card_market_updated_at = card.card_market_updated_at


async def upsert_cards(
    session: AsyncSession,
    cards: Sequence[CanonicalCard],
    model: type[CardColumns] = CardDB,
    known_sets: set[str] | None = None,
) -> int:
    """
    Insert or update cards keyed by card code.

    Args:
        session: Database session
        cards: Cards to write
        model: Card table, CardDB or JpCardDB
        known_sets: When given, a set name outside it is stored as NULL

    Returns:
        Number of cards written
    """
    for chunk in _chunks(cards):
        codes = [card.card_code for card in chunk]
        result = await session.execute(select(model).where(model.card_code.in_(codes)))
        existing = {row.card_code: row for row in result.scalars()}

        for card in chunk:
            row = existing.get(card.card_code)
            if row is None:
                row = model(card_code=card.card_code)
                session.add(row)
                existing[card.card_code] = row
            set_name = card.set_name
            if known_sets is not None and set_name not in known_sets:
                set_name = None
            _apply_card(row, card, set_name)
        await session.flush()

    return len(cards)


async def delete_absent(
    session: AsyncSession,
    model: type[CardColumns] | type[PriceColumns],
    keep: Iterable[str],
) -> list[str]:
    """
    Delete rows whose card code is not in `keep`.

    Card codes change when reconciliation moves a card to its primary
    set, so the old row has to go rather than linger beside the new one.

    Returns:
        Deleted card codes
    """
    wanted = set(keep)
    result = await session.execute(select(model.card_code))
    stale = sorted(code for code in result.scalars() if code not in wanted)
    for chunk in _chunks(stale):
        await session.execute(delete(model).where(model.card_code.in_(chunk)))
    await session.flush()
    return stale


# --- Price Operations ---


async def upsert_prices(
    session: AsyncSession,
    prices: dict[str, PriceRecord],
    model: type[PriceColumns] = PriceDB,
) -> int:
    """
    Insert or update price rows keyed by card code.

    Every column is rewritten, so a figure that disappeared upstream
    becomes NULL rather than keeping a stale value.
    """
    codes = list(prices)
    for chunk in _chunks(codes):
        result = await session.execute(select(model).where(model.card_code.in_(chunk)))
        existing = {row.card_code: row for row in result.scalars()}

        for code in chunk:
            row = existing.get(code)
            if row is None:
                row = model(card_code=code)
                session.add(row)
            record = prices[code]
            for name in PRICE_FIELDS:
                setattr(row, name, getattr(record, name))
        await session.flush()

    return len(codes)


# --- Set Operations ---


async def replace_sets(
    session: AsyncSession, sets: Sequence[SetRecord], model: type[SetColumns] = SetDB
) -> int:
    """Replace the whole set list. Returns the number of sets written."""
    await session.execute(delete(model))
    for record in sets:
        session.add(
            model(
                name=record.name,
                logo=record.logo,
                printed_total=record.printed_total,
                official_total=record.official_total,
                ptcgo_code=record.ptcgo_code,
                release_date=record.release_date,
                series=record.series,
                aliases=list(record.aliases),
            )
        )
    await session.flush()
    return len(sets)


async def get_sets(session: AsyncSession, model: type[SetColumns] = SetDB) -> list[SetRecord]:
    result = await session.execute(select(model).order_by(model.name))
    return [
        SetRecord(
            name=row.name,
            logo=row.logo,
            printed_total=row.printed_total or 0,
            ptcgo_code=row.ptcgo_code,
            release_date=row.release_date,
            series=row.series,
            aliases=list(row.aliases or []),
            official_total=row.official_total,
        )
        for row in result.scalars()
    ]


# --- Type Operations ---


def collect_types(cards: Iterable[CanonicalCard]) -> list[str]:
    """Distinct energy type names across cards, sorted."""
    names = {name.strip() for card in cards for name in card.types.split(",") if name.strip()}
    return sorted(names)


async def replace_types(session: AsyncSession, names: Sequence[str]) -> int:
    """Replace the type list. Returns the number of types written."""
    await session.execute(delete(TypeDB))
    session.add_all(TypeDB(name=name) for name in names)
    await session.flush()
    return len(names)


# --- Species Operations ---


async def upsert_species(session: AsyncSession, species: Sequence[Species]) -> int:
    """Insert or rename species keyed by Pokédex number."""
    for chunk in _chunks(species):
        ids = [entry.id for entry in chunk]
        result = await session.execute(select(PokemonDB).where(PokemonDB.id.in_(ids)))
        existing = {row.id: row for row in result.scalars()}
        for entry in chunk:
            row = existing.get(entry.id)
            if row is None:
                session.add(PokemonDB(id=entry.id, name=entry.name))
            else:
                row.name = entry.name
        await session.flush()
    return len(species)
