"""Base contract for writers that apply import changes to a live menu.

Writers use simple return values (None/False) for expected failures rather
than raising exceptions; the import service decides how to surface them.
"""

from abc import ABC, abstractmethod
from typing import Any

from menu_import_service.models.change_models import MenuChangeSet


class MenuChangeWriter(ABC):
    """Abstract base class for apply-changes collaborators.

    The writer follows a simple error handling pattern:
    - format_changes returns None on failure
    - publish_changes returns False on failure
    """

    def __init__(self, target_name: str) -> None:
        """Initialize the writer.

        Args:
            target_name: Name of the system receiving the writes (e.g., 'menu-service')
        """
        self.target_name = target_name

    @abstractmethod
    def format_changes(self, change_set: MenuChangeSet) -> dict[str, Any] | None:
        """Transform a change set into the target's request payload.

        Args:
            change_set: Selected creates and updates for one store

        Returns:
            dict: Request payload, or None if formatting fails
        """

    @abstractmethod
    async def publish_changes(self, store_id: str, payload: dict[str, Any]) -> bool:
        """Send a formatted payload to the target.

        Args:
            store_id: Store whose menu is written
            payload: Output of format_changes

        Returns:
            bool: True if the writes were accepted, False otherwise
        """
