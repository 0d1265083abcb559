"""Menu Service writer for applying import change sets.

Creates and patches are sent in one batch request so the menu service can
apply them in order (categories before the items that reference them).
"""

import logging
from typing import Any

import httpx

from menu_import_service.adapters.base_adapter import MenuChangeWriter
from menu_import_service.models.change_models import ChangeOperation, MenuChangeSet
from menu_import_service.models.import_models import SelectionType

logger = logging.getLogger(__name__)

# categories must exist before items and option groups are attached to them
_ENTITY_ORDER = {
    SelectionType.CATEGORY: 0,
    SelectionType.ITEM: 1,
    SelectionType.OPTION_GROUP: 2,
}


class MenuServiceAdapter(MenuChangeWriter):
    """Applies change sets through the Menu Service batch endpoint."""

    def __init__(self, base_url: str, api_key: str, timeout_seconds: float = 30.0) -> None:
        """Initialize the Menu Service writer.

        Args:
            base_url: Base URL of the Menu Service API
            api_key: API key for service-to-service authentication
            timeout_seconds: Request timeout
        """
        super().__init__("menu-service")
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds

    def format_changes(self, change_set: MenuChangeSet) -> dict[str, Any] | None:
        """Build the batch payload.

        Items reference their category by name; the menu service resolves it
        after creating any new categories earlier in the same batch.
        """
        try:
            ordered = sorted(change_set.changes, key=lambda change: _ENTITY_ORDER[change.entity_type])

            operations = []
            for change in ordered:
                operation: dict[str, Any] = {
                    "entityType": change.entity_type.value,
                    "operation": change.operation.value,
                    "data": change.data,
                }
                if change.operation == ChangeOperation.UPDATE:
                    if not change.existing_id:
                        logger.error(f"Update for {change.entity_type.value} '{change.name}' has no target id")
                        return None
                    operation["id"] = change.existing_id
                if change.category_name is not None:
                    operation["categoryName"] = change.category_name
                operations.append(operation)

            return {"sourceImportJobId": change_set.job_id, "operations": operations}

        except KeyError as e:
            logger.error(f"Failed to format change set for job {change_set.job_id}: {e}")
            return None

    async def publish_changes(self, store_id: str, payload: dict[str, Any]) -> bool:
        """POST the batch to the menu service."""
        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                response = await client.post(
                    f"{self.base_url}/stores/{store_id}/menu/batch",
                    json=payload,
                    headers={"X-API-Key": self.api_key},
                )

            if response.status_code in (200, 201, 204):
                logger.info(
                    f"Applied {len(payload.get('operations', []))} menu changes for store {store_id}"
                )
                return True

            logger.error(f"Menu service batch update failed for store {store_id}: {response.status_code}")
            return False

        except httpx.RequestError as e:
            logger.error(f"Menu service batch update failed for store {store_id}: {e}")
            return False
