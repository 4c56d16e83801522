"""Set list refresh and reconciliation of stored card snapshots."""

import logging
from typing import Any

from pokestore.clients.pokemon_tcg import PokemonTcgClient
from pokestore.models.card import CanonicalCard
from pokestore.models.set import SetAlias, SetRecord
from pokestore.pipeline.storage import CARDS_FILE, PRICES_FILE, SETS_FILE, LocalStore, ObjectStore
from pokestore.services.set_reconciler import (
    ReconciliationResult,
    load_set_aliases,
    merge_fetched_sets,
    reconcile_cards,
    to_set_record,
)

logger = logging.getLogger(__name__)


async def fetch_and_merge_sets(
    client: PokemonTcgClient, aliases: list[SetAlias] | None = None
) -> list[SetRecord]:
    """Fetch every upstream set and fold alias records into their primary."""
    raw_sets = await client.fetch_sets()
    logger.info("Found %d sets", len(raw_sets))
    result = merge_fetched_sets([to_set_record(raw) for raw in raw_sets], aliases)
    return result.sets


async def run_set_pipeline(
    client: PokemonTcgClient,
    store: ObjectStore,
    aliases: list[SetAlias] | None = None,
) -> list[SetRecord]:
    """Refresh the canonical set list and write the sets snapshot."""
    sets = await fetch_and_merge_sets(client, aliases)
    await store.put(SETS_FILE, [record.to_dict() for record in sets])
    logger.info("Done. %d sets written", len(sets))
    return sets


def _rekey_prices(
    prices: dict[str, Any], before: list[CanonicalCard], after: list[CanonicalCard]
) -> dict[str, Any] | None:
    """Prices keyed by rewritten card codes, or None when no priced card moved."""
    renamed = {
        old.card_code: new.card_code
        for old, new in zip(before, after)
        if old.card_code != new.card_code
    }
    if not any(code in renamed for code in prices):
        return None
    return {renamed.get(code, code): item for code, item in prices.items()}


async def run_merge_pipeline(
    local: LocalStore,
    aliases: list[SetAlias] | None = None,
    upload: ObjectStore | None = None,
) -> ReconciliationResult | None:
    """
    Reconcile the stored cards snapshot against the stored set list.

    Reads cards and sets from `local`, re-points cards of obsolete sets,
    and writes both snapshots back (and to `upload` when given). Prices
    stored under a rewritten card code move to the new code.

    Returns:
        The reconciliation result, or None when a snapshot is missing
    """
    raw_sets = local.read(SETS_FILE, [])
    raw_cards = local.read(CARDS_FILE, [])
    if not raw_sets or not raw_cards:
        logger.warning("Sets or cards snapshot missing in %s, nothing to merge", local.root)
        return None

    sets = [SetRecord.from_dict(item) for item in raw_sets]
    cards = [CanonicalCard.from_dict(item) for item in raw_cards]
    logger.info("Loaded %d sets and %d cards", len(sets), len(cards))

    result = reconcile_cards(cards, sets, aliases if aliases is not None else load_set_aliases())
    if not result.mapping:
        logger.info("No obsolete set names found, no merging needed")
        return result

    cards_payload = [card.to_dict() for card in result.cards]
    sets_payload = [record.to_dict() for record in result.sets]
    prices_payload = _rekey_prices(local.read(PRICES_FILE, {}), cards, result.cards)
    targets: list[ObjectStore] = [local] if upload is None else [local, upload]
    for target in targets:
        await target.put(CARDS_FILE, cards_payload)
        await target.put(SETS_FILE, sets_payload)
        if prices_payload is not None:
            await target.put(PRICES_FILE, prices_payload)

    if result.unmapped:
        logger.warning("Unmapped set names: %s", ", ".join(result.unmapped))
    logger.info("Set merging completed")
    return result
