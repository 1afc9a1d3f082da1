"""Tests for the address normalizer.

Tests cover:
- Reference scenarios
- City and street-type rewrites
- House / building markers
- Whitespace and casing
- Determinism and idempotence
- Ordered (double) substitution
- Optional fuzzy matching
"""

import pytest

from addrclean.address_dictionary import DictionaryStore
from addrclean.address_normalizer import AddressNormalizer, normalize


# ============================================================================
# Reference Scenarios
# ============================================================================


class TestScenarios:
    """End-to-end examples from the product documentation."""

    def test_moscow_house_marker_gets_comma(self, normalizer):
        result = normalizer.normalize("г. Москва, ул. Тверская д. 10")
        assert result == "г. Москва, ул. Тверская, д. 10"

    def test_spb_abbreviations(self, normalizer):
        result = normalizer.normalize("СПб, Невский пр-т")
        assert result == "г. Санкт-Петербург, Невский пр."

    def test_bare_house_number_and_implicit_street(self, normalizer):
        result = normalizer.normalize("Екатеринбург, Ленина 52a")
        assert result == "г. Екатеринбург, ул. Ленина, д. 52А"

    def test_empty_string(self, normalizer):
        assert normalizer.normalize("") == ""

    def test_whitespace_only(self, normalizer):
        assert normalizer.normalize("   \t ") == ""

    def test_module_level_normalize_uses_seed(self):
        assert normalize("СПб, Невский пр-т") == "г. Санкт-Петербург, Невский пр."


# ============================================================================
# Dictionary Rewrite Tests
# ============================================================================


class TestCityRewrites:
    """Tests for city synonym substitution."""

    @pytest.mark.parametrize("variant", ["спб", "СПБ", "питер", "Санкт-Петербург"])
    def test_spb_variants(self, normalizer, variant):
        result = normalizer.normalize(f"{variant}, ул. Садовая, д. 1")
        assert result == "г. Санкт-Петербург, ул. Садовая, д. 1"

    def test_city_marker_word_is_absorbed(self, normalizer):
        result = normalizer.normalize("город москва ул тверская дом 7")
        assert result == "г. Москва ул. Тверская, д. 7"

    def test_unknown_city_marker_is_canonicalized(self, normalizer):
        result = normalizer.normalize("город тверь, ул. советская, д. 3")
        assert result == "г. Тверь, ул. Советская, д. 3"

    def test_hyphenated_city_not_split(self, normalizer):
        """'петербург' must not match inside 'санкт-петербург'."""
        result = normalizer.normalize("санкт-петербург")
        assert result == "г. Санкт-Петербург"

    def test_multi_word_city(self, normalizer):
        result = normalizer.normalize("нижний   новгород, ул. большая покровская, д. 1")
        assert result == "г. Нижний Новгород, ул. Большая Покровская, д. 1"

    def test_city_key_inside_word_not_matched(self, normalizer):
        """'мск' is a key but 'омск' is a different city."""
        assert normalizer.normalize("омск").startswith("г. Омск")

    def test_bare_city_marker_before_name(self, normalizer):
        result = normalizer.normalize("г тверь, ул. советская, д. 3")
        assert result == "г. Тверь, ул. Советская, д. 3"

    def test_trailing_letter_is_not_a_city_marker(self, normalizer, validator):
        result = normalizer.normalize("ул. ленина д 5 г")

        assert result == "ул. Ленина, д. 5 г"
        assert validator.validate(result).message == "city missing"


class TestStreetTypeRewrites:
    """Tests for street type synonym substitution."""

    @pytest.mark.parametrize("variant,canonical", [
        ("улица", "ул."),
        ("ул", "ул."),
        ("ул.", "ул."),
        ("проспект", "пр."),
        ("пр-кт", "пр."),
        ("пр-т", "пр."),
        ("переулок", "пер."),
        ("пер", "пер."),
    ])
    def test_street_type_variants(self, normalizer, variant, canonical):
        result = normalizer.normalize(f"мск, {variant} мира, д. 1")
        assert result == f"г. Москва, {canonical} Мира, д. 1"

    def test_street_type_inside_word_not_matched(self, normalizer):
        result = normalizer.normalize("мск, переулочная")
        assert result == "г. Москва, Переулочная"
        assert "пер." not in result

    def test_missing_space_after_abbreviation(self, normalizer):
        result = normalizer.normalize("мск, ул.тверская, д.1")
        assert result == "г. Москва, ул. Тверская, д. 1"


# ============================================================================
# House / Building Tests
# ============================================================================


class TestHouseMarkers:
    """Tests for house and building restructuring."""

    def test_building_marker(self, normalizer):
        result = normalizer.normalize("мск, ул. ленина, д. 5 стр. 2")
        assert result == "г. Москва, ул. Ленина, д. 5, стр. 2"

    def test_full_word_building(self, normalizer):
        result = normalizer.normalize("мск, ул. ленина, дом 5 строение 2")
        assert result == "г. Москва, ул. Ленина, д. 5, стр. 2"

    def test_bare_number_after_street(self, normalizer):
        result = normalizer.normalize("москва улица арбат 1a")
        assert result == "г. Москва ул. Арбат, д. 1А"

    def test_latin_letter_becomes_cyrillic(self, normalizer):
        result = normalizer.normalize("мск, ул. ленина, д. 7b")
        assert result.endswith("д. 7В")
        assert "B" not in result

    def test_apartment_number_not_a_house(self, normalizer):
        result = normalizer.normalize("мск, ул. ленина, д. 5, кв 12")
        assert result == "г. Москва, ул. Ленина, д. 5, кв 12"

    def test_house_marker_without_number_untouched(self, normalizer):
        result = normalizer.normalize("мск, ул. ленина, дом")
        assert "д." not in result

    def test_house_number_in_own_segment(self, normalizer, validator):
        result = normalizer.normalize("г. Москва, ул. Тверская, 10")

        assert result == "г. Москва, ул. Тверская, д. 10"
        assert validator.validate(result).valid

    def test_own_segment_number_with_letter_and_apartment(self, normalizer):
        result = normalizer.normalize("мск, ул. ленина, 7b, кв 3")
        assert result == "г. Москва, ул. Ленина, д. 7В, кв 3"

    def test_number_after_city_segment_untouched(self, normalizer):
        assert normalizer.normalize("г. москва, 10") == "г. Москва, 10"

    def test_building_directly_after_house_number(self, normalizer):
        result = normalizer.normalize("мск, ул. ленина, д.5стр.2")
        assert result == "г. Москва, ул. Ленина, д. 5, стр. 2"

    def test_house_number_with_corpus_suffix(self, normalizer):
        result = normalizer.normalize("мск, ул. ленина, д. 12к1")
        assert result.endswith("д. 12К1")


# ============================================================================
# Whitespace & Casing Tests
# ============================================================================


class TestFormatting:
    """Tests for whitespace collapse and capitalization."""

    def test_whitespace_and_commas(self, normalizer):
        result = normalizer.normalize("  мск ,  ул.   ленина ,д.5  ")
        assert result == "г. Москва, ул. Ленина, д. 5"

    def test_leading_marker_stays_lowercase(self, normalizer):
        assert normalizer.normalize("г. москва").startswith("г. ")

    def test_first_plain_word_capitalized(self, normalizer):
        assert normalizer.normalize("казань центр") == "г. Казань Центр"
        assert normalizer.normalize("центр") == "Центр"

    def test_markers_stay_lowercase(self, normalizer):
        result = normalizer.normalize("мск, ул. ленина, д. 5, стр. 1, корп. 2, кв. 3")
        for marker in ("ул.", "д.", "стр.", "корп.", "кв."):
            assert marker in result

    @pytest.mark.parametrize("raw,expected", [
        (
            "мск, ул. ленина, д. 5, корпус 2, кв 3",
            "г. Москва, ул. Ленина, д. 5, корпус 2, кв 3",
        ),
        (
            "московская обл, мск, ул. ленина, д. 1",
            "Московская обл, г. Москва, ул. Ленина, д. 1",
        ),
        (
            "мск, ул. ленина, д. 5 к 2, квартира 7",
            "г. Москва, ул. Ленина, д. 5 к 2, квартира 7",
        ),
    ])
    def test_common_abbreviations_stay_lowercase(self, normalizer, raw, expected):
        assert normalizer.normalize(raw) == expected


# ============================================================================
# Determinism & Idempotence
# ============================================================================


class TestDeterminism:
    """Repeated normalization is stable."""

    @pytest.mark.parametrize("raw", [
        "г. Москва, ул. Тверская д. 10",
        "СПб, Невский пр-т",
        "Екатеринбург, Ленина 52a",
        "Казань центр",
        "",
    ])
    def test_same_input_same_output(self, normalizer, raw):
        assert normalizer.normalize(raw) == normalizer.normalize(raw)

    def test_separate_instances_agree(self, store):
        raw = "СПб, Невский пр-т"
        assert AddressNormalizer(store).normalize(raw) == AddressNormalizer(store).normalize(raw)

    @pytest.mark.parametrize("canonical", [
        "г. Москва, ул. Тверская, д. 10",
        "г. Санкт-Петербург, Невский пр.",
        "г. Екатеринбург, ул. Ленина, д. 52А",
        "г. Москва, ул. Ленина, д. 5, стр. 2",
        "г. Нижний Новгород, ул. Большая Покровская, д. 1",
        "г. Ростов-на-Дону, пр. Буденновский, д. 9",
    ])
    def test_seed_canonical_forms_are_fixed_points(self, normalizer, canonical):
        assert normalizer.normalize(canonical) == canonical


class TestOrderedSubstitution:
    """Entries are applied independently and in order.

    A later entry can rewrite text produced by an earlier one. These tests
    pin the current behavior for overlapping dictionaries.
    """

    @pytest.fixture
    def overlapping(self):
        return AddressNormalizer(DictionaryStore.from_mapping({
            "cities": [
                ["нижний новгород", "г. Нижний Новгород"],
                ["новгород", "г. Великий Новгород"],
            ],
        }))

    def test_later_entry_rewrites_earlier_output(self, overlapping):
        assert overlapping.normalize("нижний новгород") == "г. Нижний г. Великий Новгород"

    def test_renormalization_is_not_idempotent_for_overlap(self, overlapping):
        once = overlapping.normalize("новгород")
        assert once == "г. Великий Новгород"
        assert overlapping.normalize(once) == "г. Великий г. Великий Новгород"

    def test_order_matters(self):
        reversed_store = DictionaryStore.from_mapping({
            "cities": [
                ["новгород", "г. Великий Новгород"],
                ["нижний новгород", "г. Нижний Новгород"],
            ],
        })
        result = AddressNormalizer(reversed_store).normalize("нижний новгород")
        assert result == "Нижний г. Великий Новгород"


# ============================================================================
# Fuzzy Matching
# ============================================================================


class TestFuzzyNormalization:
    """Optional approximate matching before the exact rewrites."""

    def test_disabled_by_default(self, normalizer):
        assert normalizer.fuzzy_matcher is None
        assert normalizer.normalize("масква, ул. тверская, д. 1") == "Масква, ул. Тверская, д. 1"

    def test_misspelled_city_is_snapped(self, store):
        fuzzy = AddressNormalizer.with_fuzzy_matching(store, threshold=0.8)
        assert fuzzy.normalize("масква, ул. тверская, д. 1") == "г. Москва, ул. Тверская, д. 1"

    def test_scenarios_unchanged_with_fuzzy(self, store, normalizer):
        fuzzy = AddressNormalizer.with_fuzzy_matching(store)
        for raw in ("г. Москва, ул. Тверская д. 10", "СПб, Невский пр-т", "Екатеринбург, Ленина 52a"):
            assert fuzzy.normalize(raw) == normalizer.normalize(raw)
