"""Unit tests for API key validation."""

import pytest

from menu_import_service.auth.api_key_validator import APIKeyValidator


@pytest.mark.unit
class TestAPIKeyValidator:
    """Test suite for APIKeyValidator."""

    def test_validator_initialization_with_multiple_keys(self) -> None:
        """Test that validator keeps every configured key."""
        validator = APIKeyValidator(api_keys=["key1", "key2", "key3"])
        assert validator.api_keys == frozenset({"key1", "key2", "key3"})

    def test_validator_ignores_blank_keys(self) -> None:
        """Test that blank entries from a comma-separated setting are dropped."""
        validator = APIKeyValidator(api_keys=[" key1 ", "", "   "])
        assert validator.api_keys == frozenset({"key1"})

    @pytest.mark.parametrize("keys", [[], ["", " "]])
    def test_validator_without_usable_keys_raises_error(self, keys: list[str]) -> None:
        """Test that initializing without a usable key raises ValueError."""
        with pytest.raises(ValueError, match="At least one API key must be provided"):
            APIKeyValidator(api_keys=keys)

    def test_validate_returns_true_for_valid_key(self) -> None:
        """Test that validate returns True for any configured key."""
        validator = APIKeyValidator(api_keys=["key1", "key2"])
        assert validator.validate("key1") is True
        assert validator.validate("key2") is True

    def test_validate_returns_false_for_invalid_key(self) -> None:
        """Test that validate returns False for an invalid API key."""
        validator = APIKeyValidator(api_keys=["valid-key"])
        assert validator.validate("invalid-key") is False

    @pytest.mark.parametrize("api_key", ["", None])
    def test_validate_returns_false_for_missing_key(self, api_key: str | None) -> None:
        """Test that validate returns False for an empty or missing key."""
        validator = APIKeyValidator(api_keys=["valid-key"])
        assert validator.validate(api_key) is False

    def test_validate_is_case_sensitive(self) -> None:
        """Test that keys must match exactly."""
        validator = APIKeyValidator(api_keys=["Valid-Key"])
        assert validator.validate("valid-key") is False
