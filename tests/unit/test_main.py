"""Unit tests for main application entry point."""

import os
from unittest.mock import MagicMock, Mock, patch

import pytest
from fastapi import FastAPI

from src.main import create_application


@pytest.mark.unit
class TestCreateApplication:
    """Tests for create_application function."""

    @patch("src.main.setup_observability")
    @patch("src.main.create_app")
    @patch("src.main.get_api_keys")
    @patch("src.main.create_import_service")
    @patch("src.main.configure_logging")
    @patch.dict(os.environ, {"LOG_LEVEL": "WARNING"}, clear=True)
    def test_wires_app_from_environment(
        self,
        mock_configure_logging: Mock,
        mock_create_service: Mock,
        mock_get_api_keys: Mock,
        mock_create_app: Mock,
        mock_setup_observability: Mock,
    ) -> None:
        """Test that the app is built from the import service and instrumented."""
        mock_service = MagicMock()
        mock_create_service.return_value = mock_service
        mock_get_api_keys.return_value = ["key-1", "key-2"]
        mock_app = MagicMock(spec=FastAPI)
        mock_create_app.return_value = mock_app

        result = create_application()

        mock_configure_logging.assert_called_once_with("WARNING")
        mock_create_app.assert_called_once_with(import_service=mock_service, api_keys=["key-1", "key-2"])
        mock_setup_observability.assert_called_once_with(mock_app)
        assert result is mock_app

    @patch("src.main.setup_observability")
    @patch("src.main.configure_logging")
    @patch.dict(os.environ, {"AI_API_KEY": "sk-test"}, clear=True)
    def test_raises_when_menu_service_not_configured(
        self, mock_configure_logging: Mock, mock_setup_observability: Mock
    ) -> None:
        """Test that missing menu service configuration fails startup."""
        with pytest.raises(ValueError, match="MENU_SERVICE_BASE_URL"):
            create_application()

        mock_setup_observability.assert_not_called()
