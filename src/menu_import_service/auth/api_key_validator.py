"""API key validation for the import review API.

Keys are configured at startup and compared in constant time.
"""

import hmac
from collections.abc import Iterable


class APIKeyValidator:
    """Validates X-API-Key values against the configured keys."""

    def __init__(self, api_keys: Iterable[str]) -> None:
        """Initialize validator.

        Args:
            api_keys: Valid API keys; blank entries are ignored

        Raises:
            ValueError: If no usable API key is provided
        """
        self.api_keys = frozenset(key.strip() for key in api_keys if key and key.strip())
        if not self.api_keys:
            raise ValueError("At least one API key must be provided")

    def validate(self, api_key: str | None) -> bool:
        """Return True if *api_key* is one of the configured keys."""
        if not api_key:
            return False
        return any(hmac.compare_digest(api_key, key) for key in self.api_keys)
