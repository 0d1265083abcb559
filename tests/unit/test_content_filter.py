"""Unit tests for content moderation of extracted menus."""

import pytest

from menu_import_service.extraction.content_filter import (
    FILTERED_CATEGORY,
    FILTERED_CHOICE,
    FILTERED_ITEM,
    FILTERED_OPTION,
    FILTERED_TEXT,
    contains_blocked_content,
    filter_extraction,
)
from menu_import_service.models.extraction_models import (
    ExtractedCategory,
    ExtractedItem,
    ExtractedMenuData,
    ExtractedOptionChoice,
    ExtractedOptionGroup,
)


@pytest.mark.unit
class TestContainsBlockedContent:
    """Tests for contains_blocked_content."""

    @pytest.mark.parametrize("text", ["Holy Shit Burger", "Fuck fries", "fuuuck", "SH1T sandwich"])
    def test_detects_profanity(self, text: str) -> None:
        """Test that blocked terms are found regardless of case or repetition."""
        assert contains_blocked_content(text) is True

    @pytest.mark.parametrize(
        "text",
        ["Shiitake Mushroom Risotto", "Scunthorpe Sausage", "Passion Fruit", "Chicken Tikka", None, ""],
    )
    def test_ignores_ordinary_menu_words(self, text: str | None) -> None:
        """Test that common food names are not flagged."""
        assert contains_blocked_content(text) is False


@pytest.mark.unit
class TestFilterExtraction:
    """Tests for filter_extraction."""

    def test_replaces_whole_fields_with_placeholders(self) -> None:
        """Test that every flagged field is replaced by its placeholder."""
        extraction = ExtractedMenuData(
            categories=[
                ExtractedCategory(
                    name="Shit Snacks",
                    description="fuck this",
                    items=[
                        ExtractedItem(
                            name="Shitty Nachos",
                            description="cheesy shit",
                            price=800,
                            category_name="Shit Snacks",
                        ),
                        ExtractedItem(name="Olives", description="Green", price=400, category_name="Shit Snacks"),
                    ],
                )
            ],
            option_groups=[
                ExtractedOptionGroup(
                    name="Fucking Sauces",
                    description="asshole sauce",
                    choices=[
                        ExtractedOptionChoice(name="Shit Sauce", price_modifier=50),
                        ExtractedOptionChoice(name="Mayo", price_modifier=0),
                    ],
                    applies_to=["Olives"],
                )
            ],
            confidence=0.8,
        )

        result = filter_extraction(extraction)

        category = result.categories[0]
        assert category.name == FILTERED_CATEGORY
        assert category.description == FILTERED_TEXT
        assert category.items[0].name == FILTERED_ITEM
        assert category.items[0].description == FILTERED_TEXT
        assert category.items[0].category_name == FILTERED_CATEGORY
        assert category.items[0].price == 800
        assert category.items[1].name == "Olives"
        assert category.items[1].description == "Green"

        group = result.option_groups[0]
        assert group.name == FILTERED_OPTION
        assert group.description == FILTERED_TEXT
        assert [c.name for c in group.choices] == [FILTERED_CHOICE, "Mayo"]
        assert group.choices[0].price_modifier == 50
        assert group.applies_to == ["Olives"]
        assert result.confidence == 0.8

    def test_clean_extraction_is_equal(self, extracted_menu: ExtractedMenuData) -> None:
        """Test that a clean menu comes back unchanged."""
        assert filter_extraction(extracted_menu).model_dump() == extracted_menu.model_dump()
