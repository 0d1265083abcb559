"""Shared dependency factory for Lambda handlers.

Dependencies are created once and reused across invocations within the same
Lambda container.
"""

import logging
import os

from fastapi import FastAPI

from menu_import_service.bootstrap import create_import_service, get_api_keys
from menu_import_service.handlers.api_handler import create_app
from menu_import_service.handlers.event_handler import ImportEventHandler
from menu_import_service.observability import configure_logging, setup_observability
from menu_import_service.services.import_service import ImportService

logger = logging.getLogger(__name__)

# Module-level caches for Lambda container reuse
_import_service: ImportService | None = None
_event_handler: ImportEventHandler | None = None
_fastapi_app: FastAPI | None = None


def get_import_service() -> ImportService:
    """Create or retrieve the cached import service."""
    global _import_service

    if _import_service is None:
        _import_service = create_import_service()
        logger.info("Import service initialized")

    return _import_service


def get_event_handler() -> ImportEventHandler:
    """Create or retrieve the cached EventBridge handler."""
    global _event_handler

    if _event_handler is None:
        _event_handler = ImportEventHandler(import_service=get_import_service())
        logger.info("Event handler initialized")

    return _event_handler


def get_fastapi_app() -> FastAPI:
    """Create or retrieve the cached FastAPI application."""
    global _fastapi_app

    if _fastapi_app is None:
        _fastapi_app = create_app(import_service=get_import_service(), api_keys=get_api_keys())
        logger.info("FastAPI application initialized")

    return _fastapi_app


def initialize_lambda_environment() -> None:
    """Configure logging and observability once per cold start."""
    configure_logging(os.getenv("LOG_LEVEL", "INFO"))
    setup_observability()
    logger.info("Lambda environment initialized")
