"""Comparison (diff) models.

``MenuComparisonData`` is persisted on the import job and handed to the
review UI and the apply-changes collaborator, so its shape must stay stable.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from menu_import_service.models.extraction_models import (
    ExtractedCategory,
    ExtractedItem,
    ExtractedMenuData,
    ExtractedOptionGroup,
)


class DiffAction(str, Enum):
    """Classification of an extracted entity against the live menu."""

    CREATE = "create"
    UPDATE = "update"
    SKIP = "skip"


class ComparisonModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FieldChange(ComparisonModel):
    """A single differing field on an update-classified item."""

    field: str
    old_value: Any = None
    new_value: Any = None


class ItemComparison(ComparisonModel):
    extracted: ExtractedItem
    existing_id: str | None = None
    existing_name: str | None = None
    action: DiffAction
    match_score: float = Field(..., ge=0.0, le=1.0)
    changes: list[FieldChange] | None = None


class CategoryComparison(ComparisonModel):
    extracted: ExtractedCategory
    existing_id: str | None = None
    existing_name: str | None = None
    action: DiffAction
    match_score: float = Field(..., ge=0.0, le=1.0)
    items: list[ItemComparison] = Field(default_factory=list)


class OptionGroupComparison(ComparisonModel):
    extracted: ExtractedOptionGroup
    existing_id: str | None = None
    existing_name: str | None = None
    action: DiffAction
    match_score: float = Field(..., ge=0.0, le=1.0)


class ComparisonSummary(ComparisonModel):
    """Per-action counts, used for reporting only."""

    total_categories: int = 0
    new_categories: int = 0
    updated_categories: int = 0
    total_items: int = 0
    new_items: int = 0
    updated_items: int = 0
    total_option_groups: int = 0
    new_option_groups: int = 0
    updated_option_groups: int = 0


class MenuComparisonData(ComparisonModel):
    """Full reconciliation result of an import."""

    extracted_menu: ExtractedMenuData
    categories: list[CategoryComparison] = Field(default_factory=list)
    option_groups: list[OptionGroupComparison] = Field(default_factory=list)
    summary: ComparisonSummary = Field(default_factory=ComparisonSummary)
