"""
Canonical card and price records.

INVARIANTS:
- cardCode is unique across the canonical card set
- A PriceRecord never stores a None figure: unknown figures are absent
"""

from dataclasses import dataclass, fields
from typing import Any

POKEMON_SUPERTYPE = "Pokémon"
TRAINER_SUPERTYPE = "Trainer"
ENERGY_SUPERTYPE = "Energy"

SUPERTYPES = (POKEMON_SUPERTYPE, TRAINER_SUPERTYPE, ENERGY_SUPERTYPE)


@dataclass
class CanonicalCard:
    """
    A normalized card printing.

    Attributes:
        card_code: Stable identifier, see services.card_code
        name: Card name with encoding repaired
        set_name: Canonical set name (may be rewritten by set reconciliation)
        supertype: Pokémon, Trainer or Energy
        types: Comma-joined energy types
        pokemon_number: Species id, 99999 for unresolved Pokémon, None otherwise
    """

    card_code: str
    name: str
    set_name: str
    supertype: str
    artist: str = "Unknown"
    rarity: str = "Common"
    types: str = ""
    image: str = ""
    pokemon_number: int | None = None
    card_market_url: str | None = None
    card_market_updated_at: str | None = None
    mean_color: str = "FFFFFF"

    def to_dict(self) -> dict[str, Any]:
        """Serialize with the camelCase keys of the published snapshots."""
        return {
            "artist": self.artist,
            "cardCode": self.card_code,
            "cardMarketUpdatedAt": self.card_market_updated_at,
            "cardMarketUrl": self.card_market_url,
            "image": self.image,
            "meanColor": self.mean_color,
            "name": self.name,
            "pokemonNumber": self.pokemon_number,
            "rarity": self.rarity,
            "setName": self.set_name,
            "supertype": self.supertype,
            "types": self.types,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CanonicalCard":
        """Load a card from a stored snapshot entry."""
        return cls(
            card_code=data["cardCode"],
            name=data["name"],
            set_name=data.get("setName", ""),
            supertype=data.get("supertype", ""),
            artist=data.get("artist") or "Unknown",
            rarity=data.get("rarity") or "Common",
            types=data.get("types") or "",
            image=data.get("image") or "",
            pokemon_number=data.get("pokemonNumber"),
            card_market_url=data.get("cardMarketUrl"),
            card_market_updated_at=data.get("cardMarketUpdatedAt"),
            mean_color=data.get("meanColor") or "FFFFFF",
        )


# Snapshot key -> attribute name
_PRICE_KEYS = {
    "simple": "simple",
    "low": "low",
    "trend": "trend",
    "avg1": "avg1",
    "avg7": "avg7",
    "avg30": "avg30",
    "reverseSimple": "reverse_simple",
    "reverseLow": "reverse_low",
    "reverseTrend": "reverse_trend",
    "reverseAvg1": "reverse_avg1",
    "reverseAvg7": "reverse_avg7",
    "reverseAvg30": "reverse_avg30",
}


@dataclass
class PriceRecord:
    """Price facts for one card, keyed externally by cardCode."""

    simple: float | None = None
    low: float | None = None
    trend: float | None = None
    avg1: float | None = None
    avg7: float | None = None
    avg30: float | None = None
    reverse_simple: float | None = None
    reverse_low: float | None = None
    reverse_trend: float | None = None
    reverse_avg1: float | None = None
    reverse_avg7: float | None = None
    reverse_avg30: float | None = None

    def to_dict(self) -> dict[str, float]:
        """Serialize known figures only; absent figures are omitted, never null."""
        result: dict[str, float] = {}
        for key, attr in _PRICE_KEYS.items():
            value = getattr(self, attr)
            if value is not None:
                result[key] = value
        return result

    def is_empty(self) -> bool:
        return not self.to_dict()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PriceRecord":
        kwargs = {attr: data[key] for key, attr in _PRICE_KEYS.items() if data.get(key) is not None}
        return cls(**kwargs)


PRICE_FIELDS = tuple(f.name for f in fields(PriceRecord))
