"""Tests for snapshot record serialization."""

from pokestore.models.card import CanonicalCard, PriceRecord
from pokestore.models.failure import (
    FailureKind,
    HttpStatusError,
    MissingCredentialError,
    RateLimitedError,
)
from pokestore.models.raw import ApiPage
from pokestore.models.set import SetRecord


class TestCanonicalCard:
    def test_snapshot_keys(self) -> None:
        """Snapshots use camelCase keys."""
        card = CanonicalCard(
            card_code="pokemon_25_base1_58",
            name="Pikachu",
            set_name="Base",
            supertype="Pokémon",
            pokemon_number=25,
        )

        data = card.to_dict()

        assert data["cardCode"] == "pokemon_25_base1_58"
        assert data["setName"] == "Base"
        assert data["pokemonNumber"] == 25
        assert data["meanColor"] == "FFFFFF"
        assert CanonicalCard.from_dict(data) == card

    def test_from_sparse_entry(self) -> None:
        card = CanonicalCard.from_dict({"cardCode": "trainer_0_base1_91", "name": "Bill"})

        assert card.artist == "Unknown"
        assert card.rarity == "Common"
        assert card.pokemon_number is None


class TestPriceRecord:
    def test_omits_unknown_figures(self) -> None:
        record = PriceRecord(trend=2.0, reverse_low=0.5)

        assert record.to_dict() == {"trend": 2.0, "reverseLow": 0.5}

    def test_zero_is_a_figure(self) -> None:
        """Zero is kept; only None is omitted."""
        assert PriceRecord(low=0.0).to_dict() == {"low": 0.0}

    def test_empty(self) -> None:
        assert PriceRecord().is_empty()
        assert PriceRecord.from_dict({"trend": None}).is_empty()


class TestSetRecord:
    def test_optional_keys(self) -> None:
        """aliases and officialTotal appear only when set."""
        data = SetRecord(name="Base", printed_total=102).to_dict()

        assert "aliases" not in data
        assert "officialTotal" not in data

        data = SetRecord(name="Hidden Fates", aliases=["sma"], official_total=163).to_dict()
        assert data["aliases"] == ["sma"]
        assert data["officialTotal"] == 163


class TestFailures:
    def test_retryable_classification(self) -> None:
        assert RateLimitedError("u").retryable
        assert HttpStatusError("u", 500).retryable
        assert not MissingCredentialError().retryable

    def test_kinds(self) -> None:
        assert RateLimitedError("u").kind is FailureKind.RATE_LIMITED
        assert MissingCredentialError().kind is FailureKind.MISSING_CREDENTIAL


class TestApiPage:
    def test_total_count_alias(self) -> None:
        page = ApiPage.model_validate({"data": [{"name": "Mew"}], "totalCount": 18000})

        assert page.total_count == 18000
        assert page.data == [{"name": "Mew"}]
