"""Unit tests for AI response parsing and normalization."""

import json

import pytest

from menu_import_service.errors import AIResponseParseError
from menu_import_service.extraction.response_parser import (
    DEFAULT_CONFIDENCE,
    format_category_name,
    normalize,
    normalize_text_case,
    parse_response_text,
    strip_code_fences,
)
from menu_import_service.models.extraction_models import OptionGroupType


@pytest.mark.unit
class TestCasing:
    """Tests for name casing helpers."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("  MARGHERITA pizza ", "Margherita Pizza"),
            ("crème brûlée", "Crème Brûlée"),
            ("fish & chips", "Fish & Chips"),
            ("7up", "7up"),
            ("", ""),
        ],
    )
    def test_normalize_text_case(self, raw: str, expected: str) -> None:
        """Test word-initial capitalization after lowercasing."""
        assert normalize_text_case(raw) == expected

    def test_format_category_name_from_key(self) -> None:
        """Test snake_case keys become title-cased names."""
        assert format_category_name("hot_drinks") == "Hot Drinks"


@pytest.mark.unit
class TestParseResponseText:
    """Tests for parse_response_text."""

    def test_strips_json_fence(self) -> None:
        """Test fenced output is unwrapped."""
        assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
        assert parse_response_text('```\n{"a": 1}\n```') == {"a": 1}

    def test_recovers_object_embedded_in_prose(self) -> None:
        """Test the first balanced object is recovered from surrounding text."""
        content = 'Here is the menu: {"categories": [{"name": "Pizza {x}", "items": []}]} Hope it helps!'

        assert parse_response_text(content) == {"categories": [{"name": "Pizza {x}", "items": []}]}

    def test_skips_unparseable_brace_block(self) -> None:
        """Test a broken leading block does not hide a later valid one."""
        content = 'draft {not json} final {"confidence": 0.5}'

        assert parse_response_text(content) == {"confidence": 0.5}

    def test_raises_when_nothing_parses(self) -> None:
        """Test that unrecoverable output raises with a bounded preview."""
        content = "I could not find a menu. " * 50

        with pytest.raises(AIResponseParseError) as exc_info:
            parse_response_text(content)

        assert len(exc_info.value.raw_preview) <= 200


@pytest.mark.unit
class TestNormalizeCanonical:
    """Tests for normalize with the canonical shape."""

    def test_normalizes_names_prices_and_confidence(self) -> None:
        """Test casing, integer prices and clamped confidence."""
        raw = {
            "categories": [
                {
                    "name": "PIZZA",
                    "description": "Wood fired",
                    "items": [
                        {"name": "margherita pizza", "price": 1199.6, "allergens": ["gluten", "milk"]},
                        {"name": "free bread", "price": -5},
                    ],
                }
            ],
            "optionGroups": [],
            "confidence": 1.7,
        }

        result = normalize(raw)

        category = result.categories[0]
        assert category.name == "Pizza"
        assert category.description == "Wood fired"
        assert category.items[0].name == "Margherita Pizza"
        assert category.items[0].price == 1200
        assert category.items[0].allergens == ["gluten", "milk"]
        assert category.items[0].category_name == "Pizza"
        assert category.items[1].price == 0
        assert result.confidence == 1.0

    def test_option_groups_are_parsed(self) -> None:
        """Test option group fields in camelCase."""
        raw = {
            "categories": [],
            "optionGroups": [
                {
                    "name": "Extras",
                    "type": "multi_select",
                    "isRequired": True,
                    "choices": [{"name": "Cheese", "priceModifier": 150}, {"name": "No onion", "priceModifier": -20}],
                    "appliesTo": ["Burger"],
                }
            ],
            "confidence": 0.8,
        }

        group = normalize(raw).option_groups[0]

        assert group.type == OptionGroupType.MULTI_SELECT
        assert group.is_required is True
        assert [(c.name, c.price_modifier) for c in group.choices] == [("Cheese", 150), ("No onion", -20)]
        assert group.applies_to == ["Burger"]

    def test_unknown_option_group_type_falls_back(self) -> None:
        """Test an invalid type becomes single_select."""
        raw = {"categories": [], "optionGroups": [{"name": "Size", "type": "pick_some"}]}

        assert normalize(raw).option_groups[0].type == OptionGroupType.SINGLE_SELECT

    def test_missing_confidence_defaults(self) -> None:
        """Test that a missing confidence uses the default."""
        assert normalize({"categories": []}).confidence == DEFAULT_CONFIDENCE

    def test_non_object_raises(self) -> None:
        """Test that a JSON array is rejected."""
        with pytest.raises(AIResponseParseError):
            normalize([{"name": "Pizza"}])


@pytest.mark.unit
class TestNormalizeKeyInference:
    """Tests for normalize with arbitrary top-level keys."""

    def test_keys_become_categories(self) -> None:
        """Test each list-valued key is read as a category."""
        raw = json.loads(
            """
            {
                "hot_drinks": [{"name": "flat white", "price": 350}],
                "Mains": [{"name": "Steak Frites", "price": 2400, "description": "Ribeye"}],
                "restaurant": "Chez Test",
                "confidence": 0.6
            }
            """
        )

        result = normalize(raw)

        assert [c.name for c in result.categories] == ["Hot Drinks", "Mains"]
        # item names keep the model's casing on this path
        assert result.categories[0].items[0].name == "flat white"
        assert result.categories[0].items[0].category_name == "Hot Drinks"
        assert result.categories[1].items[0].description == "Ribeye"
        assert result.confidence == 0.6

    @pytest.mark.parametrize("key", ["optionGroups", "option_groups", "options"])
    def test_option_group_synonyms_are_reserved(self, key: str) -> None:
        """Test option groups are read from any synonym and never become a category."""
        raw = {
            "burgers": [{"name": "Classic", "price": 1100}],
            key: [{"name": "Doneness", "choices": [{"name": "Medium"}]}],
        }

        result = normalize(raw)

        assert [c.name for c in result.categories] == ["Burgers"]
        assert [g.name for g in result.option_groups] == ["Doneness"]
        assert result.option_groups[0].choices[0].price_modifier == 0

    def test_snake_case_item_fields(self) -> None:
        """Test snake_case category references are accepted."""
        raw = {"sides": [{"name": "Fries", "price": 400, "category_name": "Sides"}]}

        item = normalize(raw).categories[0].items[0]

        assert item.category_name == "Sides"
        assert item.price == 400
