"""Client for reading the live menu from the Menu Service API."""

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from menu_import_service.models.menu_models import (
    ExistingCategory,
    ExistingMenuSnapshot,
    ExistingOptionGroup,
)

logger = logging.getLogger(__name__)


class MenuServiceClient:
    """HTTP client providing existing-menu snapshots.

    Uses service-to-service authentication with an API key header. Fetch
    failures are logged and reported as None so the caller decides how to fail.
    """

    def __init__(self, base_url: str, api_key: str) -> None:
        """Initialize the Menu Service client.

        Args:
            base_url: Base URL of the Menu Service API (e.g., "https://api.example.com")
            api_key: API key for service-to-service authentication
        """
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key

    async def _get_json(self, path: str) -> dict[str, Any]:
        async with httpx.AsyncClient() as client:
            response = await client.get(f"{self.base_url}{path}", headers={"X-API-Key": self.api_key})
            response.raise_for_status()
            return response.json()

    async def get_categories(self, store_id: str) -> list[ExistingCategory] | None:
        """Fetch categories, each with its items, for a store.

        Args:
            store_id: The store to fetch categories for

        Returns:
            List of ExistingCategory objects, empty list if none exist, or None on failure
        """
        try:
            data = await self._get_json(f"/stores/{store_id}/categories?include=items")
            return [ExistingCategory.model_validate(c) for c in data.get("categories", [])]

        except (httpx.HTTPStatusError, httpx.RequestError, ValidationError) as e:
            logger.error(f"Failed to fetch categories for store {store_id}: {e}")
            return None

    async def get_option_groups(self, store_id: str) -> list[ExistingOptionGroup] | None:
        """Fetch option groups for a store.

        Args:
            store_id: The store to fetch option groups for

        Returns:
            List of ExistingOptionGroup objects, empty list if none exist, or None on failure
        """
        try:
            data = await self._get_json(f"/stores/{store_id}/option-groups")
            return [ExistingOptionGroup.model_validate(g) for g in data.get("optionGroups", [])]

        except (httpx.HTTPStatusError, httpx.RequestError, ValidationError) as e:
            logger.error(f"Failed to fetch option groups for store {store_id}: {e}")
            return None

    async def get_existing_menu(self, store_id: str) -> ExistingMenuSnapshot | None:
        """Fetch the complete live menu snapshot for a store.

        Both requests must succeed for a snapshot to be returned.

        Args:
            store_id: The store to fetch the menu for

        Returns:
            ExistingMenuSnapshot, or None if either fetch fails
        """
        categories = await self.get_categories(store_id)
        if categories is None:
            return None

        option_groups = await self.get_option_groups(store_id)
        if option_groups is None:
            return None

        return ExistingMenuSnapshot(categories=categories, option_groups=option_groups)
