"""Change set models handed to the apply-changes collaborator.

A change set is built from a READY job's comparison data and the reviewer's
selections. It only contains entities that will actually be written.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from menu_import_service.models.import_models import AppliedCounts, SelectionType


class ChangeOperation(str, Enum):
    CREATE = "create"
    UPDATE = "update"


class MenuChange(BaseModel):
    """One live-menu write."""

    entity_type: SelectionType = Field(..., description="Kind of entity being written")
    operation: ChangeOperation = Field(..., description="Create a record or patch an existing one")
    name: str = Field(..., description="Extracted entity name")
    existing_id: str | None = Field(None, description="Target record for updates")
    category_name: str | None = Field(None, description="Owning category for items")
    data: dict[str, Any] = Field(default_factory=dict, description="Fields to write")


class MenuChangeSet(BaseModel):
    """Ordered list of writes for one store."""

    store_id: str
    job_id: str
    changes: list[MenuChange] = Field(default_factory=list)

    def counts(self) -> AppliedCounts:
        def count(entity_type: SelectionType) -> int:
            return sum(1 for change in self.changes if change.entity_type == entity_type)

        return AppliedCounts(
            categories=count(SelectionType.CATEGORY),
            items=count(SelectionType.ITEM),
            option_groups=count(SelectionType.OPTION_GROUP),
        )
