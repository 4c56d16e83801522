"""
Card code generation.

A card code identifies one physical card printing:

    supertype_speciesId_setCode_cardNumber

e.g. ``pokemon_145_base5_21`` for Rocket's Zapdos in Team Rocket.

The generator is a pure function and never raises. Two records for the
same printing collapse to the same code whatever their casing or accents;
two different printings only collide when their normalized
(supertype, species, set, number) tuples are identical.
"""

import re
import unicodedata
from typing import NamedTuple

from pokestore.config import UNKNOWN_SPECIES_ID

_NON_ALNUM = re.compile(r"[^a-z0-9]")

# NFD + mark stripping turns "pokémon" into "pokemon", but upstream text that
# was mangled before reaching us ("pok?mon", "pokmon") only loses the letter.
_SUPERTYPE_FIXES = {"pokmon": "pokemon"}


class CardCodeParts(NamedTuple):
    """The four segments of a card code."""

    supertype: str
    species_id: str
    set_code: str
    card_number: str


def _normalize_token(value: str | None) -> str:
    """Lowercase, strip diacritics, drop everything but [a-z0-9]."""
    decomposed = unicodedata.normalize("NFD", (value or "").lower())
    without_marks = "".join(c for c in decomposed if not unicodedata.combining(c))
    return _NON_ALNUM.sub("", without_marks)


def normalize_supertype(supertype: str | None) -> str:
    """Normalize a supertype label; empty input defaults to pokemon."""
    token = _normalize_token(supertype or "pokemon")
    return _SUPERTYPE_FIXES.get(token, token)


def normalize_set_code(set_code: str | None) -> str:
    return _normalize_token(set_code)


def normalize_card_number(card_number: str | None) -> str:
    """
    Keep the printed number, dropping the "/total" part.

    "021/102" -> "021", "TG01/TG30" -> "tg01", "SWSH050" -> "swsh050".
    """
    leading = (card_number or "").split("/", 1)[0]
    return _NON_ALNUM.sub("", leading.lower())


def generate_card_code(
    supertype: str | None,
    species_id: int | str | None,
    set_code: str | None,
    card_number: str | None,
) -> str:
    """
    Build the canonical card code.

    Args:
        supertype: Raw supertype text ("Pokémon", "Trainer", "Energy")
        species_id: National Pokédex number; None becomes 0 (unknown)
        set_code: Machine set code (e.g., "base5", "swsh12pt5")
        card_number: Printed number, optionally with "/total"

    Returns:
        Code in the form supertype_speciesId_setCode_cardNumber
    """
    species = UNKNOWN_SPECIES_ID if species_id is None or species_id == "" else species_id
    return "_".join(
        (
            normalize_supertype(supertype),
            str(species),
            normalize_set_code(set_code),
            normalize_card_number(card_number),
        )
    )


def parse_card_code(card_code: str) -> CardCodeParts | None:
    """Split a card code into its segments, or None if it is malformed."""
    parts = card_code.split("_")
    if len(parts) != 4:
        return None
    return CardCodeParts(*parts)


def replace_set_code(card_code: str, set_code: str) -> str:
    """Return card_code with its set segment replaced by set_code (normalized)."""
    parts = parse_card_code(card_code)
    if parts is None:
        return card_code
    return "_".join(parts._replace(set_code=normalize_set_code(set_code)))


def set_code_from_image(image_url: str | None) -> str | None:
    """
    Extract the machine set code from an image URL.

    The code is the second-to-last path segment:
    https://images.pokemontcg.io/swsh12pt5/160_hires.png -> swsh12pt5
    """
    if not image_url:
        return None
    parts = image_url.rstrip("/").split("/")
    if len(parts) < 2:
        return None
    return parts[-2] or None
