"""Shared pytest fixtures and configuration for all tests."""

import os

# entry point modules skip app creation and exporters in test mode
os.environ.setdefault("ENVIRONMENT", "test")

import pytest  # noqa: E402

from menu_import_service.models.comparison_models import MenuComparisonData  # noqa: E402
from menu_import_service.models.extraction_models import (  # noqa: E402
    ExtractedCategory,
    ExtractedItem,
    ExtractedMenuData,
    ExtractedOptionChoice,
    ExtractedOptionGroup,
)
from menu_import_service.models.menu_models import (  # noqa: E402
    ExistingCategory,
    ExistingItem,
    ExistingMenuSnapshot,
    ExistingOptionGroup,
)
from menu_import_service.services.menu_comparer import compare_menus  # noqa: E402


@pytest.fixture
def store_id() -> str:
    """Fixture providing a standard test store ID."""
    return "store_123"


@pytest.fixture
def extracted_menu() -> ExtractedMenuData:
    """Fixture providing a small extracted menu."""
    return ExtractedMenuData(
        categories=[
            ExtractedCategory(
                name="Pizza",
                items=[
                    ExtractedItem(name="Margherita Pizza", price=1300, category_name="Pizza"),
                    ExtractedItem(name="Truffle Risotto", price=1800, category_name="Pizza"),
                    ExtractedItem(name="Pepperoni Pizza", price=1400, category_name="Pizza"),
                ],
            ),
            ExtractedCategory(
                name="Desserts",
                items=[ExtractedItem(name="Tiramisu", price=700, category_name="Desserts")],
            ),
        ],
        option_groups=[
            ExtractedOptionGroup(
                name="Size",
                choices=[
                    ExtractedOptionChoice(name="Small", price_modifier=0),
                    ExtractedOptionChoice(name="Large", price_modifier=300),
                ],
                applies_to=["Margherita Pizza"],
            )
        ],
        confidence=0.9,
    )


@pytest.fixture
def existing_menu() -> ExistingMenuSnapshot:
    """Fixture providing a live menu with one matching category."""
    return ExistingMenuSnapshot(
        categories=[
            ExistingCategory(
                id="cat_1",
                name="Pizza",
                items=[
                    ExistingItem(id="item_1", name="Margherita Pizza", price=1200),
                    ExistingItem(id="item_2", name="Pepperoni Pizza", price=1400),
                ],
            )
        ],
        option_groups=[ExistingOptionGroup(id="og_1", name="Size")],
    )


@pytest.fixture
def comparison_data(
    extracted_menu: ExtractedMenuData, existing_menu: ExistingMenuSnapshot
) -> MenuComparisonData:
    """Fixture providing the comparison of the two menus above."""
    return compare_menus(extracted_menu, existing_menu)
