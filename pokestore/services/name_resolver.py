"""
Pokémon name resolution.

Maps free-text card names ("Rocket's Zapdos", "Dark Charizard",
"Pikachu V-UNION") to canonical species names from the national Pokédex.

Resolution order, first hit wins:
1. Exact match of the whole name
2. The token after a possessive ("'s ")
3. The name with a cosmetic prefix removed ("dark ", "shiny ", ...)
4. The name with a trailing "-suffix" removed
5. The longest species name occurring in the text as a whole word

Longer species names are tried first in step 5 so that "Mew" never wins
over "Mewtwo". Resolution never raises; unknown names resolve to None.
"""

import json
import logging
import re
from pathlib import Path

from pokestore.models.species import Species

logger = logging.getLogger(__name__)

COSMETIC_PREFIXES = (
    "dark ",
    "light ",
    "shiny ",
    "shadow ",
    "rocket's ",
    "team rocket's ",
)

_SUFFIX_PATTERN = re.compile(r"-[a-z]+$")


class PokemonNameResolver:
    """
    Longest-match species lookup over a reference table.

    The lookup tables are built once and read-only afterwards, so one
    resolver can be shared by concurrent normalizers.
    """

    def __init__(self, species: list[Species]) -> None:
        self._ids: dict[str, int] = {}
        for entry in species:
            self._ids.setdefault(entry.name.lower(), entry.id)
        self._names = frozenset(self._ids)
        # Longest first; ties keep reference order
        self._by_length = sorted(self._ids, key=len, reverse=True)
        self._patterns = [
            (name, re.compile(rf"\b{re.escape(name)}\b", re.IGNORECASE))
            for name in self._by_length
        ]
        self._spaced_patterns = [
            (name, re.compile(rf"\b{re.escape(name.replace('-', ' '))}\b"))
            for name in self._by_length
        ]

    def __len__(self) -> int:
        return len(self._names)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._names

    def resolve(self, text: str | None) -> str | None:
        """
        Find the species named in a card name.

        Args:
            text: Free-text card name

        Returns:
            Canonical lowercase species name, or None if unresolved
        """
        if not text:
            return None
        lowered = text.lower().strip()

        if lowered in self._names:
            return lowered

        if "'s " in lowered:
            after = lowered.split("'s ", 1)[1].strip()
            if after in self._names:
                return after

        for prefix in COSMETIC_PREFIXES:
            if lowered.startswith(prefix):
                stripped = lowered[len(prefix) :]
                if stripped in self._names:
                    return stripped

        if _SUFFIX_PATTERN.search(lowered):
            stripped = _SUFFIX_PATTERN.sub("", lowered).strip()
            if stripped in self._names:
                return stripped

        for name, pattern in self._patterns:
            if pattern.search(lowered):
                return name

        return None

    def resolve_id(self, text: str | None) -> int | None:
        """Resolve a card name straight to its national Pokédex number."""
        name = self.resolve(text)
        return self._ids[name] if name else None

    def species_id(self, name: str) -> int | None:
        """Pokédex number of an exact species name."""
        return self._ids.get(name.lower())

    def fuzzy_lookup(self, card_name: str) -> Species | None:
        """
        Containment lookup used when an API card lacks Pokédex numbers.

        Hyphens count as spaces on both sides, so "Ho Oh" style card
        names and "ho-oh" style species compare evenly.
        """
        target = card_name.lower().replace("-", " ")
        for name, pattern in self._spaced_patterns:
            if pattern.search(target):
                return Species(id=self._ids[name], name=name)
        return None


def load_species(path: Path) -> list[Species]:
    """
    Load the species reference table.

    Args:
        path: JSON list of {"id": int, "name": str, ...} objects

    Returns:
        Species list; empty if the file does not exist
    """
    if not path.exists():
        logger.warning("Species file %s not found, name resolution disabled", path)
        return []

    with open(path, encoding="utf-8") as f:
        entries = json.load(f)

    return [Species(id=int(e["id"]), name=str(e["name"])) for e in entries if "name" in e]


def load_resolver(path: Path) -> PokemonNameResolver:
    """Build a resolver from the species reference file."""
    species = load_species(path)
    logger.info("Loaded %d Pokémon entries for name resolution", len(species))
    return PokemonNameResolver(species)
