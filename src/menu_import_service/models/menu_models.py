"""Existing menu snapshot models.

These models mirror the live menu as served by the menu service. They are a
read-only input to the comparison engine; nothing in this service mutates them.
"""

from pydantic import BaseModel, Field


class ExistingItem(BaseModel):
    """Live menu item."""

    id: str = Field(..., description="Unique identifier for the menu item")
    name: str = Field(..., description="Item name")
    description: str | None = Field(None, description="Item description")
    price: int = Field(..., description="Item price in minor currency units", ge=0)
    allergens: list[str] | None = Field(None, description="Allergen labels")


class ExistingCategory(BaseModel):
    """Live menu category with its items."""

    id: str = Field(..., description="Unique identifier for the category")
    name: str = Field(..., description="Category name")
    description: str | None = Field(None, description="Category description")
    items: list[ExistingItem] = Field(default_factory=list)


class ExistingOptionGroup(BaseModel):
    """Live option group."""

    id: str = Field(..., description="Unique identifier for the option group")
    name: str = Field(..., description="Option group name")
    description: str | None = Field(None, description="Option group description")
    type: str = Field("single_select", description="Selection type")


class ExistingMenuSnapshot(BaseModel):
    """Read model of a store's live menu."""

    categories: list[ExistingCategory] = Field(default_factory=list)
    option_groups: list[ExistingOptionGroup] = Field(default_factory=list)

    @property
    def category_names(self) -> list[str]:
        return [category.name for category in self.categories]

    @property
    def item_names(self) -> list[str]:
        return [item.name for category in self.categories for item in category.items]
