from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Species:
    """
    A Pokémon species from the national Pokédex.

    Attributes:
        id: National Pokédex number (1-1025)
        name: Canonical species name as published by PokéAPI (e.g., "mr-mime")
    """

    id: int
    name: str
