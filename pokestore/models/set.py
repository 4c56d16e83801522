"""Set records and the transient set mapping used during reconciliation."""

from dataclasses import dataclass, field
from typing import Any


@dataclass
class SetRecord:
    """
    A canonical card set.

    Attributes:
        name: Canonical set name (unique across the set list)
        logo: Logo image URL; its second-to-last path segment is the set code
        printed_total: Sum of printed totals of this set and every folded alias
        ptcgo_code: Online game code shared by regional/sub-set releases
        aliases: Logo-derived codes of sets folded into this one
        official_total: Highest "/N" total seen on scraped cards (Japanese sets)
    """

    name: str
    logo: str | None = None
    printed_total: int = 0
    ptcgo_code: str | None = None
    release_date: str | None = None
    series: str | None = None
    aliases: list[str] = field(default_factory=list)
    official_total: int | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "logo": self.logo,
            "printedTotal": self.printed_total,
            "ptcgoCode": self.ptcgo_code,
            "releaseDate": self.release_date,
            "series": self.series,
        }
        if self.aliases:
            data["aliases"] = list(self.aliases)
        if self.official_total is not None:
            data["officialTotal"] = self.official_total
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SetRecord":
        return cls(
            name=data["name"],
            logo=data.get("logo"),
            printed_total=data.get("printedTotal") or 0,
            ptcgo_code=data.get("ptcgoCode"),
            release_date=data.get("releaseDate"),
            series=data.get("series"),
            aliases=list(data.get("aliases") or []),
            official_total=data.get("officialTotal"),
        )


@dataclass(frozen=True)
class SetMappingEntry:
    """Where cards of an obsolete set name should point."""

    primary_set_name: str
    primary_set_code: str


# Obsolete set name -> primary set
SetMapping = dict[str, SetMappingEntry]


@dataclass(frozen=True)
class SetAlias:
    """Curated primary set -> alias set names pair."""

    primary: str
    aliases: tuple[str, ...]
