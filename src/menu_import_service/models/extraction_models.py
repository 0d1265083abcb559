"""Extracted menu models.

These models are the contract between the AI extraction engine and the
comparison engine. They serialize with camelCase keys because the same
payload is persisted on the import job and read back by the review UI.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class OptionGroupType(str, Enum):
    """Selection behaviour of an option group."""

    SINGLE_SELECT = "single_select"
    MULTI_SELECT = "multi_select"
    QUANTITY_SELECT = "quantity_select"


class ExtractedModel(BaseModel):
    """Base for extracted entities: immutable, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class ExtractedItem(ExtractedModel):
    """Menu item extracted by the AI."""

    name: str = Field(..., description="Item name")
    description: str | None = Field(None, description="Item description")
    price: int = Field(..., description="Price in minor currency units", ge=0)
    allergens: list[str] | None = Field(None, description="Allergen labels")
    category_name: str = Field(..., description="Name of the containing category")


class ExtractedCategory(ExtractedModel):
    """Menu category extracted by the AI."""

    name: str = Field(..., description="Category name")
    description: str | None = Field(None, description="Category description")
    items: list[ExtractedItem] = Field(default_factory=list)


class ExtractedOptionChoice(ExtractedModel):
    """A single choice inside an option group."""

    name: str = Field(..., description="Choice name")
    price_modifier: int = Field(0, description="Price delta in minor units, may be negative")


class ExtractedOptionGroup(ExtractedModel):
    """Option group (sizes, extras, ...) extracted by the AI."""

    name: str = Field(..., description="Option group name")
    description: str | None = Field(None, description="Option group description")
    type: OptionGroupType = Field(OptionGroupType.SINGLE_SELECT, description="Selection type")
    is_required: bool = Field(False, description="Whether a choice is mandatory")
    choices: list[ExtractedOptionChoice] = Field(default_factory=list)
    applies_to: list[str] = Field(default_factory=list, description="Item names")


class ExtractedMenuData(ExtractedModel):
    """Full structured menu produced by the extraction engine."""

    categories: list[ExtractedCategory] = Field(default_factory=list)
    option_groups: list[ExtractedOptionGroup] = Field(default_factory=list)
    confidence: float = Field(..., description="Self-reported extraction quality", ge=0.0, le=1.0)

    @property
    def item_count(self) -> int:
        """Total number of items across all categories."""
        return sum(len(category.items) for category in self.categories)
