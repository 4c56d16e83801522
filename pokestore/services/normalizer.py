"""
Card and price normalization.

Maps raw upstream records (Pokémon TCG API cards, tcgcollector.com HTML
cards) to CanonicalCard, applying the set mapping and extracting price
facts into a separate PriceRecord.

Steps per record:
1. Repair double-encoded UTF-8 text
2. Resolve the species when the record lacks a Pokédex number
3. Derive the machine set code and apply the set mapping
4. Build the card code
5. Extract prices, falling back per field from cardmarket to tcgplayer

A record missing required fields is skipped and logged; it never yields
a partial card.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from pokestore.config import SENTINEL_SPECIES_ID
from pokestore.models.card import (
    ENERGY_SUPERTYPE,
    POKEMON_SUPERTYPE,
    TRAINER_SUPERTYPE,
    CanonicalCard,
    PriceRecord,
)
from pokestore.models.raw import RawApiCard, RawHtmlCard, TcgplayerVariant
from pokestore.models.set import SetMapping
from pokestore.services.card_code import generate_card_code, set_code_from_image
from pokestore.services.name_resolver import PokemonNameResolver

logger = logging.getLogger(__name__)

# Text decoded as Latin-1 after being encoded as UTF-8. Longest first.
ENCODING_FIXES = (
    ("PokÃ©mon", "Pokémon"),
    ("Ã©", "é"),
    ("Ã¨", "è"),
    ("Ã¢", "â"),
    ("Ãª", "ê"),
    ("Ã®", "î"),
    ("Ã´", "ô"),
    ("Ã»", "û"),
    ("Ã ", "à"),
)

# Named items the API files as Pokémon although they are Trainer cards
MISCATEGORIZED_TRAINERS = ("buried fossil",)

_HTML_PRICE = re.compile(r"\$\s*(\d[\d,]*(?:\.\d+)?)")


def fix_encoding(text: str | None) -> str:
    """Repair known double-UTF-8 sequences ("PokÃ©mon" -> "Pokémon")."""
    if not text:
        return ""
    for broken, fixed in ENCODING_FIXES:
        text = text.replace(broken, fixed)
    return text


@dataclass
class NormalizedCard:
    """A canonical card and its price facts (None when no figure is known)."""

    card: CanonicalCard
    prices: PriceRecord | None


def _first(*values: float | None) -> float | None:
    """First value that is set and non-zero, else the last candidate."""
    for value in values:
        if value:
            return value
    return values[-1] if values else None


def _coalesce(*values: float | None) -> float | None:
    """First value that is not None."""
    for value in values:
        if value is not None:
            return value
    return None


def extract_prices(raw: RawApiCard) -> PriceRecord:
    """
    Build a price record from whichever upstream price blocks are present.

    Each field independently prefers cardmarket and falls back to
    tcgplayer. Figures neither source knows stay None, and PriceRecord
    omits them on serialization.
    """
    cm = raw.cardmarket.prices if raw.cardmarket and raw.cardmarket.prices else None
    tcg = raw.tcgplayer.prices if raw.tcgplayer and raw.tcgplayer.prices else None
    normal = (tcg.normal or tcg.holofoil) if tcg else None
    reverse = tcg.reverse_holofoil if tcg else None
    empty = TcgplayerVariant()
    normal = normal or empty
    reverse = reverse or empty

    if cm is None:
        return PriceRecord(
            simple=normal.market,
            low=normal.low,
            trend=normal.market,
            reverse_simple=reverse.market,
            reverse_low=reverse.low,
            reverse_trend=reverse.market,
        )

    # Zero means "no sales" on cardmarket for the headline figures
    return PriceRecord(
        simple=_first(cm.suggested_price, cm.average_sell_price, normal.market),
        low=_first(cm.low_price, normal.low),
        trend=_first(cm.trend_price, normal.market),
        avg1=cm.avg1,
        avg7=cm.avg7,
        avg30=cm.avg30,
        reverse_simple=_coalesce(cm.reverse_holo_sell, reverse.market),
        reverse_low=_coalesce(cm.reverse_holo_low, reverse.low),
        reverse_trend=_coalesce(cm.reverse_holo_trend, reverse.market),
        reverse_avg1=cm.reverse_holo_avg1,
        reverse_avg7=cm.reverse_holo_avg7,
        reverse_avg30=cm.reverse_holo_avg30,
    )


def _resolve_api_species(
    raw: RawApiCard, supertype: str, resolver: PokemonNameResolver | None
) -> tuple[int | None, str]:
    """Species id and (possibly corrected) supertype for an API card."""
    numbers = raw.national_pokedex_numbers or []
    if numbers:
        return numbers[0], supertype

    if supertype != POKEMON_SUPERTYPE:
        return None, supertype

    name = raw.name.lower()
    if any(item in name for item in MISCATEGORIZED_TRAINERS):
        logger.info("'%s' is filed as Pokémon upstream, treating it as Trainer", raw.name)
        return None, TRAINER_SUPERTYPE

    if resolver is not None:
        species_id = resolver.resolve_id(raw.name)
        if species_id is None:
            species = resolver.fuzzy_lookup(raw.name)
            species_id = species.id if species else None
        if species_id is not None:
            logger.debug("Found Pokémon number %d for '%s'", species_id, raw.name)
            return species_id, supertype

    logger.info("No Pokémon found for '%s', using sentinel %d", raw.name, SENTINEL_SPECIES_ID)
    return SENTINEL_SPECIES_ID, supertype


def normalize_api_card(
    data: dict[str, Any] | RawApiCard,
    set_mapping: SetMapping,
    resolver: PokemonNameResolver | None = None,
) -> NormalizedCard | None:
    """
    Normalize one Pokémon TCG API card.

    Args:
        data: Raw JSON object or an already validated RawApiCard
        set_mapping: Folded set name -> primary set
        resolver: Species resolver for cards without Pokédex numbers

    Returns:
        NormalizedCard, or None if the record lacks required fields
    """
    try:
        raw = data if isinstance(data, RawApiCard) else RawApiCard.model_validate(data)
    except ValidationError as e:
        name = data.get("name") if isinstance(data, dict) else None
        logger.warning("Skipping unparseable API card %r: %d errors", name, e.error_count())
        return None

    image = raw.images.large or raw.images.small
    if not image or not raw.number:
        logger.warning("Skipping API card '%s': missing image or number", raw.name)
        return None

    name = fix_encoding(raw.name)
    supertype = fix_encoding(raw.supertype)
    species_id, supertype = _resolve_api_species(raw, supertype, resolver)

    set_name = fix_encoding(raw.set.name)
    set_code = set_code_from_image(image)
    mapped = set_mapping.get(set_name)
    if mapped is not None:
        set_name = mapped.primary_set_name
        set_code = mapped.primary_set_code or set_code
    if not set_code:
        logger.warning("Skipping API card '%s': no set code in '%s'", raw.name, image)
        return None

    card_code = generate_card_code(supertype, species_id, set_code, raw.number)

    cardmarket = raw.cardmarket
    tcgplayer = raw.tcgplayer
    market_url = cardmarket.url if cardmarket else None
    if market_url is None and tcgplayer and tcgplayer.url:
        market_url = tcgplayer.url.replace("/tcgplayer/", "/cardmarket/")
    updated_at = (cardmarket.updated_at if cardmarket else None) or (
        tcgplayer.updated_at if tcgplayer else None
    )

    card = CanonicalCard(
        card_code=card_code,
        name=name,
        set_name=set_name,
        supertype=supertype,
        artist=fix_encoding(raw.artist) or "Unknown",
        rarity=raw.rarity or "Common",
        types=", ".join(raw.types or []),
        image=image,
        pokemon_number=species_id,
        card_market_url=market_url,
        card_market_updated_at=updated_at,
    )

    prices = extract_prices(raw)
    return NormalizedCard(card=card, prices=None if prices.is_empty() else prices)


def html_supertype(card_type: str) -> str:
    """Map tcgcollector's free-text card type onto a supertype."""
    if "Pok" in card_type:
        return POKEMON_SUPERTYPE
    if card_type == TRAINER_SUPERTYPE or card_type.startswith(f"{TRAINER_SUPERTYPE} "):
        return TRAINER_SUPERTYPE
    if card_type == ENERGY_SUPERTYPE or card_type.endswith(f" {ENERGY_SUPERTYPE}"):
        return ENERGY_SUPERTYPE
    return fix_encoding(card_type)


def parse_html_price(text: str) -> float | None:
    """Dollar figure from tcgcollector price text ("$1,234.50" -> 1234.5)."""
    match = _HTML_PRICE.search(text or "")
    if match is None:
        return None
    return float(match.group(1).replace(",", ""))


def normalize_html_card(
    raw: RawHtmlCard,
    resolver: PokemonNameResolver | None,
    updated_at: str | None = None,
    set_mapping: SetMapping | None = None,
) -> NormalizedCard | None:
    """
    Normalize one scraped tcgcollector.com card.

    Args:
        raw: Scraped card
        resolver: Species resolver
        updated_at: Scrape date recorded as the market update date
        set_mapping: Optional folded set name -> primary set

    Returns:
        NormalizedCard whose prices carry the listed market price as
        `simple`, or None if the record has no name or URL
    """
    name = fix_encoding(raw.name).strip()
    if not raw.url or not name:
        logger.warning("Skipping scraped card %s: missing name", raw.url or "<no url>")
        return None

    supertype = html_supertype(raw.card_type.strip())
    species_id: int | None = None
    if supertype == POKEMON_SUPERTYPE or not supertype:
        species_id = resolver.resolve_id(name) if resolver else None
        if species_id is not None and not supertype:
            supertype = POKEMON_SUPERTYPE
        elif species_id is None and supertype == POKEMON_SUPERTYPE:
            logger.info("No Pokémon found for '%s', using sentinel %d", name, SENTINEL_SPECIES_ID)
            species_id = SENTINEL_SPECIES_ID

    set_name = fix_encoding(raw.set_name).strip()
    set_code = raw.set_code.strip()
    mapped = (set_mapping or {}).get(set_name)
    if mapped is not None:
        set_name = mapped.primary_set_name
        set_code = mapped.primary_set_code or set_code

    card_number = raw.card_number.split("/", 1)[0].strip()
    card_code = generate_card_code(
        supertype or POKEMON_SUPERTYPE,
        species_id,
        set_code or "unknownset",
        card_number or "unknown",
    )

    card = CanonicalCard(
        card_code=card_code,
        name=name,
        set_name=set_name,
        supertype=supertype,
        artist=fix_encoding(raw.illustrator).strip(),
        rarity=fix_encoding(raw.rarity).strip(),
        types=fix_encoding(raw.pokemon_type).strip(),
        image=raw.image_url,
        pokemon_number=species_id,
        card_market_url=raw.url,
        card_market_updated_at=updated_at,
    )

    price = parse_html_price(raw.price)
    prices = PriceRecord(simple=price) if price is not None else None
    return NormalizedCard(card=card, prices=prices)
