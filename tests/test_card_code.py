"""Tests for card code generation."""

from pokestore.services.card_code import (
    CardCodeParts,
    generate_card_code,
    normalize_card_number,
    normalize_supertype,
    parse_card_code,
    replace_set_code,
    set_code_from_image,
)


class TestGenerateCardCode:
    def test_rockets_zapdos(self) -> None:
        """Species, set and number end up in order."""
        assert generate_card_code("Pokémon", 145, "TR", "21") == "pokemon_145_tr_21"

    def test_deterministic(self) -> None:
        """Same input always yields the same code."""
        first = generate_card_code("Trainer", None, "swsh12pt5", "160/159")
        second = generate_card_code("Trainer", None, "swsh12pt5", "160/159")

        assert first == second

    def test_casing_and_accents_collapse(self) -> None:
        """Two spellings of one printing share a code."""
        assert generate_card_code("Pokémon", 25, "BASE1", "58") == generate_card_code(
            "pokemon", 25, "base1", "58"
        )

    def test_mangled_supertype_is_repaired(self) -> None:
        """A supertype that lost its accented letter still reads pokemon."""
        assert generate_card_code("Pokmon", 25, "base1", "58") == "pokemon_25_base1_58"

    def test_missing_species_is_zero(self) -> None:
        """Trainers and energies carry species 0."""
        assert generate_card_code("Trainer", None, "sv1", "166") == "trainer_0_sv1_166"
        assert generate_card_code("Energy", "", "sv1", "1") == "energy_0_sv1_1"

    def test_empty_supertype_defaults_to_pokemon(self) -> None:
        assert generate_card_code("", 1, "base1", "44").startswith("pokemon_1_")

    def test_total_is_dropped(self) -> None:
        """The "/total" suffix is not part of the code."""
        assert generate_card_code("Pokémon", 6, "base1", "4/102") == "pokemon_6_base1_4"

    def test_different_printings_differ(self) -> None:
        """Only identical tuples collide."""
        codes = {
            generate_card_code("Pokémon", 25, "base1", "58"),
            generate_card_code("Pokémon", 25, "base1", "59"),
            generate_card_code("Pokémon", 25, "jungle", "58"),
            generate_card_code("Pokémon", 26, "base1", "58"),
            generate_card_code("Trainer", 25, "base1", "58"),
        }

        assert len(codes) == 5

    def test_trainer_gallery_numbers_keep_letters(self) -> None:
        """TG01 and 01 are different printings."""
        assert generate_card_code("Pokémon", 25, "swsh12tg", "TG01/TG30") != generate_card_code(
            "Pokémon", 25, "swsh12tg", "01"
        )


class TestNormalizers:
    def test_card_number_forms(self) -> None:
        assert normalize_card_number("021/102") == "021"
        assert normalize_card_number("TG01/TG30") == "tg01"
        assert normalize_card_number("SWSH050") == "swsh050"
        assert normalize_card_number(None) == ""

    def test_supertype_strips_accents(self) -> None:
        assert normalize_supertype("Pokémon") == "pokemon"
        assert normalize_supertype(None) == "pokemon"


class TestParseCardCode:
    def test_parses_four_segments(self) -> None:
        assert parse_card_code("pokemon_145_tr_21") == CardCodeParts("pokemon", "145", "tr", "21")

    def test_rejects_malformed(self) -> None:
        """Anything but four segments is not a card code."""
        assert parse_card_code("pokemon_145_tr") is None
        assert parse_card_code("unknown_card_a_b_c") is None

    def test_replace_set_code(self) -> None:
        assert replace_set_code("pokemon_151_sma_sv12", "SM115") == "pokemon_151_sm115_sv12"

    def test_replace_set_code_leaves_malformed(self) -> None:
        assert replace_set_code("garbage", "sm115") == "garbage"


class TestSetCodeFromImage:
    def test_second_to_last_segment(self) -> None:
        url = "https://images.pokemontcg.io/swsh12pt5/160_hires.png"

        assert set_code_from_image(url) == "swsh12pt5"

    def test_missing_image(self) -> None:
        assert set_code_from_image(None) is None
        assert set_code_from_image("logo.png") is None
