"""
Set reconciliation.

The Pokémon TCG API publishes some real-world sets as several records:
promo sub-sets ("Hidden Fates Shiny Vault"), galleries ("Lost Origin
Trainer Gallery") and regional releases sharing an online code. This
module folds those records into one canonical SetRecord and produces the
SetMapping the normalizer uses to point cards at the surviving set.

Strategies, first success wins per set:
1. Curated alias table (data/set_aliases.json)
2. Grouping by shared ptcgoCode, shortest logo-derived code is primary
3. For stored card snapshots only: naming patterns, substring
   containment, then a small table of irregular codes

INVARIANTS:
- A primary's printed_total is its own total plus every folded alias total
- No two SetRecords share a name
- A card is only ever re-pointed to a set that exists; set names that
  cannot be mapped are logged and their cards left untouched
"""

import json
import logging
import re
from collections import Counter
from dataclasses import dataclass, field, replace
from pathlib import Path

from pokestore.models.card import CanonicalCard
from pokestore.models.raw import RawApiSet
from pokestore.models.set import SetAlias, SetMapping, SetMappingEntry, SetRecord
from pokestore.services.card_code import (
    normalize_set_code,
    parse_card_code,
    replace_set_code,
)

logger = logging.getLogger(__name__)

ALIASES_PATH = Path(__file__).parent.parent / "data" / "set_aliases.json"

# Sub-set naming conventions: group 1 is the parent set name
SUBSET_PATTERNS = (
    re.compile(r"^(.+)\s+Trainer\s+Gallery$", re.IGNORECASE),
    re.compile(r"^(.+)\s+Galarian\s+Gallery$", re.IGNORECASE),
    re.compile(r"^(.+)\s+Shiny\s+Vault$", re.IGNORECASE),
    re.compile(r"^(.+):\s+Classic\s+Collection$", re.IGNORECASE),
)

# Sets whose records upstream cannot be matched by name at all
IRREGULAR_PTCGO_CODES = {
    "Hidden Fates": "HIF",
    "Shining Fates": "SHF",
}


def load_set_aliases(path: Path | None = None) -> list[SetAlias]:
    """
    Load the curated alias table.

    Args:
        path: JSON list of {"primary": str, "aliases": [str]}. Defaults to
            the table shipped with the package.
    """
    if path is None:
        path = ALIASES_PATH

    with open(path, encoding="utf-8") as f:
        entries = json.load(f)

    return [SetAlias(primary=e["primary"], aliases=tuple(e["aliases"])) for e in entries]


def set_code_from_logo(logo_url: str | None) -> str:
    """
    Derive a set's machine code from its logo URL.

    https://images.pokemontcg.io/swsh12pt5/logo.png -> swsh12pt5
    """
    if not logo_url:
        return ""
    parts = logo_url.split("/")
    return parts[-2] if len(parts) >= 2 else ""


def to_set_record(raw: RawApiSet) -> SetRecord:
    return SetRecord(
        name=raw.name,
        logo=raw.images.logo,
        printed_total=raw.printed_total,
        ptcgo_code=raw.ptcgo_code,
        release_date=raw.release_date,
        series=raw.series,
    )


def _fold(primary: SetRecord, alias: SetRecord) -> str:
    """Fold alias into primary in place; returns the alias's code."""
    code = set_code_from_logo(alias.logo)
    if code and code not in primary.aliases and code != set_code_from_logo(primary.logo):
        primary.aliases.append(code)
    for extra in alias.aliases:
        if extra not in primary.aliases:
            primary.aliases.append(extra)
    primary.printed_total += alias.printed_total
    return code


@dataclass
class SetMergeResult:
    """Canonical sets plus the mapping from folded set names to their primary."""

    sets: list[SetRecord]
    mapping: SetMapping = field(default_factory=dict)


def merge_fetched_sets(
    sets: list[SetRecord],
    aliases: list[SetAlias] | None = None,
) -> SetMergeResult:
    """
    Fold duplicate set records of a fresh upstream set list.

    Args:
        sets: Set records in upstream order (modified in place)
        aliases: Curated alias table; None loads the shipped table

    Returns:
        SetMergeResult with surviving sets in upstream order and the
        folded-name -> primary mapping
    """
    if aliases is None:
        aliases = load_set_aliases()

    mapping: SetMapping = {}
    folded: set[int] = set()
    index_of = {id(record): index for index, record in enumerate(sets)}

    # Same name twice is the same set
    by_name: dict[str, SetRecord] = {}
    for index, record in enumerate(sets):
        first = by_name.get(record.name)
        if first is None:
            by_name[record.name] = record
            continue
        _fold(first, record)
        folded.add(index)
        logger.info("Folded duplicate set record '%s'", record.name)

    # Strategy 1: curated alias table
    for entry in aliases:
        primary = by_name.get(entry.primary)
        if primary is None:
            continue
        for alias_name in entry.aliases:
            alias = by_name.get(alias_name)
            if alias is None or alias is primary:
                continue
            code = _fold(primary, alias)
            folded.add(index_of[id(alias)])
            del by_name[alias_name]
            mapping[alias_name] = SetMappingEntry(
                primary_set_name=primary.name,
                primary_set_code=set_code_from_logo(primary.logo),
            )
            logger.info(
                "Merged set '%s' (%s) into '%s' via alias table", alias_name, code, primary.name
            )

    # Strategy 2: shared ptcgoCode
    groups: dict[str, list[int]] = {}
    for index, record in enumerate(sets):
        if index in folded or not record.ptcgo_code:
            continue
        groups.setdefault(record.ptcgo_code, []).append(index)

    for ptcgo_code, members in groups.items():
        if len(members) < 2:
            continue
        # Records without a logo code never lead; ties keep upstream order
        ordered = sorted(
            members,
            key=lambda i: (
                not set_code_from_logo(sets[i].logo),
                len(set_code_from_logo(sets[i].logo)),
            ),
        )
        primary = sets[ordered[0]]
        logger.info(
            "Found %d sets sharing ptcgoCode %s, primary is '%s'",
            len(members),
            ptcgo_code,
            primary.name,
        )
        for index in ordered[1:]:
            alias = sets[index]
            code = _fold(primary, alias)
            folded.add(index)
            mapping[alias.name] = SetMappingEntry(
                primary_set_name=primary.name,
                primary_set_code=set_code_from_logo(primary.logo),
            )
            logger.info("Merged set '%s' (%s) into '%s'", alias.name, code, primary.name)

    merged = [record for index, record in enumerate(sets) if index not in folded]
    logger.info("Merged %d sets into %d canonical sets", len(sets), len(merged))
    return SetMergeResult(sets=merged, mapping=mapping)


def _entry_for(record: SetRecord) -> SetMappingEntry:
    return SetMappingEntry(
        primary_set_name=record.name,
        primary_set_code=set_code_from_logo(record.logo),
    )


def match_obsolete_set(
    obsolete_name: str,
    sets: list[SetRecord],
    aliases: list[SetAlias],
) -> tuple[SetMappingEntry, str] | None:
    """
    Find the surviving set an obsolete set name belongs to.

    Returns:
        (mapping entry, strategy name) or None if nothing matched
    """
    by_name = {record.name: record for record in sets}

    for entry in aliases:
        if obsolete_name in entry.aliases and entry.primary in by_name:
            return _entry_for(by_name[entry.primary]), "alias table"

    for pattern in SUBSET_PATTERNS:
        match = pattern.match(obsolete_name)
        if match and match.group(1).strip() in by_name:
            return _entry_for(by_name[match.group(1).strip()]), "pattern match"

    candidates = [
        record
        for record in sets
        if record.name in obsolete_name or obsolete_name in record.name
    ]
    if candidates:
        best = min(candidates, key=lambda r: len(r.name))
        return _entry_for(best), "substring match"

    ptcgo_code = IRREGULAR_PTCGO_CODES.get(obsolete_name)
    if ptcgo_code:
        candidates = [record for record in sets if record.ptcgo_code == ptcgo_code]
        if candidates:
            best = min(candidates, key=lambda r: len(r.name))
            return _entry_for(best), "ptcgoCode match"

    return None


def map_obsolete_sets(
    obsolete_names: list[str],
    sets: list[SetRecord],
    aliases: list[SetAlias],
) -> tuple[SetMapping, list[str]]:
    """
    Map every obsolete set name onto a surviving set.

    Returns:
        (mapping, unmapped names). Unmapped names are logged as warnings.
    """
    mapping: SetMapping = {}
    unmapped: list[str] = []
    for name in obsolete_names:
        matched = match_obsolete_set(name, sets, aliases)
        if matched is None:
            unmapped.append(name)
            logger.warning(
                "Could not find mapping for obsolete set '%s', its cards are kept as is", name
            )
            continue
        entry, strategy = matched
        mapping[name] = entry
        logger.info(
            "Mapping obsolete set '%s' to '%s' (%s) via %s",
            name,
            entry.primary_set_name,
            entry.primary_set_code,
            strategy,
        )
    return mapping, unmapped


@dataclass
class ReconciliationResult:
    """Outcome of reconciling a card snapshot against a refreshed set list."""

    cards: list[CanonicalCard]
    sets: list[SetRecord]
    mapping: SetMapping
    unmapped: list[str]
    updated_count: int
    card_counts: dict[str, int]


def _dominant_set_code(cards: list[CanonicalCard], set_name: str) -> str:
    """Most common set segment among the card codes of one set."""
    codes = Counter(
        parts.set_code
        for card in cards
        if card.set_name == set_name and (parts := parse_card_code(card.card_code))
    )
    return codes.most_common(1)[0][0] if codes else ""


def _restore_primaries(
    obsolete: list[str],
    cards: list[CanonicalCard],
    sets: list[SetRecord],
    aliases: list[SetAlias],
) -> SetMapping:
    """
    Undo upstream renames where a curated primary vanished but its alias survived.

    The surviving alias record is renamed to the primary name (keeping its
    total), and the alias name is mapped onto the primary.
    """
    mapping: SetMapping = {}
    by_name = {record.name: record for record in sets}
    for entry in aliases:
        if entry.primary not in obsolete or entry.primary in by_name:
            continue
        survivor_name = next((a for a in entry.aliases if a in by_name), None)
        if survivor_name is None:
            continue
        survivor = by_name.pop(survivor_name)
        primary_code = _dominant_set_code(cards, entry.primary) or set_code_from_logo(survivor.logo)
        survivor_code = set_code_from_logo(survivor.logo)
        logger.info(
            "Set '%s' is obsolete but its alias '%s' survived, restoring '%s' as primary",
            entry.primary,
            survivor_name,
            entry.primary,
        )
        survivor.name = entry.primary
        if survivor_code and survivor_code not in (primary_code, *survivor.aliases):
            survivor.aliases.append(survivor_code)
        if survivor.logo and survivor_code:
            survivor.logo = survivor.logo.replace(f"/{survivor_code}/", f"/{primary_code}/")
        by_name[entry.primary] = survivor
        mapping[survivor_name] = SetMappingEntry(
            primary_set_name=entry.primary, primary_set_code=primary_code
        )
    return mapping


def reconcile_cards(
    cards: list[CanonicalCard],
    sets: list[SetRecord],
    aliases: list[SetAlias] | None = None,
) -> ReconciliationResult:
    """
    Re-point cards whose set vanished from a refreshed set list.

    Args:
        cards: Previously stored canonical cards
        sets: Refreshed canonical set list (modified in place)
        aliases: Curated alias table; None loads the shipped table

    Returns:
        ReconciliationResult with rewritten cards and the sets that still
        hold cards. Cards of unmapped sets keep their original set name.
    """
    if aliases is None:
        aliases = load_set_aliases()

    valid_names = {record.name for record in sets}
    card_set_names = list(dict.fromkeys(card.set_name for card in cards))
    obsolete = [name for name in card_set_names if name not in valid_names]

    logger.info(
        "Found %d set names in cards, %d in sets, %d obsolete",
        len(card_set_names),
        len(valid_names),
        len(obsolete),
    )

    mapping = _restore_primaries(obsolete, cards, sets, aliases)
    valid_names = {record.name for record in sets}
    remaining = [name for name in obsolete if name not in valid_names]
    matched, unmapped = map_obsolete_sets(remaining, sets, aliases)
    mapping.update(matched)

    # Remember the codes of folded sets so old card codes still resolve
    by_name = {record.name: record for record in sets}
    for name, entry in mapping.items():
        old_code = _dominant_set_code(cards, name)
        primary = by_name[entry.primary_set_name]
        if (
            old_code
            and old_code != normalize_set_code(entry.primary_set_code)
            and old_code not in primary.aliases
        ):
            primary.aliases.append(old_code)

    updated: list[CanonicalCard] = []
    updated_count = 0
    for card in cards:
        entry = mapping.get(card.set_name)
        if entry is None:
            updated.append(card)
            continue
        updated.append(
            replace(
                card,
                set_name=entry.primary_set_name,
                card_code=replace_set_code(card.card_code, entry.primary_set_code),
            )
        )
        updated_count += 1

    card_counts = Counter(card.set_name for card in updated)
    kept_sets = [record for record in sets if card_counts.get(record.name) or not updated]
    for record in sets:
        if updated and not card_counts.get(record.name):
            logger.info("Removing empty set '%s' with 0 cards", record.name)

    logger.info("Updated %d cards to use their primary set", updated_count)
    return ReconciliationResult(
        cards=updated,
        sets=kept_sets,
        mapping=mapping,
        unmapped=unmapped,
        updated_count=updated_count,
        card_counts=dict(card_counts),
    )


_JP_NUMBER_PATTERN = re.compile(r"-(\d{3,})-(\d{2,})$")


def summarize_japanese_sets(cards: list[CanonicalCard]) -> list[SetRecord]:
    """
    Rebuild Japanese set records from scraped cards.

    The card count is the number of distinct printed numbers seen for the
    set; official_total is the highest "/N" printed total. Numbers come from
    the tcgcollector card URL slug (".../pikachu-sv4a-001-190").
    """
    numbers: dict[str, set[str]] = {}
    codes: dict[str, str] = {}

    for card in cards:
        set_name = card.set_name.strip() or "Unknown"
        parts = parse_card_code(card.card_code)
        match = _JP_NUMBER_PATTERN.search(card.card_market_url or "")
        if match is None:
            continue
        numbers.setdefault(set_name, set()).add(f"{match.group(1)}/{match.group(2)}")
        if parts and parts.set_code and not parts.set_code.isdigit():
            codes[set_name] = parts.set_code
        else:
            codes.setdefault(set_name, "")

    records: list[SetRecord] = []
    for set_name in sorted(numbers):
        seen = numbers[set_name]
        official = max(int(n.split("/")[1]) for n in seen)
        records.append(
            SetRecord(
                name=set_name,
                ptcgo_code=codes[set_name] or None,
                printed_total=len(seen),
                official_total=official,
            )
        )
    return records
