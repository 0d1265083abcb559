"""Composition root: builds the import service from environment variables.

Shared by the local FastAPI entry point and the Lambda dependency cache.
"""

import logging
import os
from typing import Any

import boto3

from menu_import_service.adapters.menu_service_adapter import MenuServiceAdapter
from menu_import_service.extraction.menu_extractor import MenuExtractor, ModelConfig
from menu_import_service.repositories.import_job_repository import ImportJobRepository
from menu_import_service.services.ai_client import AICompletionClient
from menu_import_service.services.file_storage import FileStorage
from menu_import_service.services.import_service import ImportService
from menu_import_service.services.menu_service_client import MenuServiceClient

logger = logging.getLogger(__name__)


def _aws_kwargs(endpoint_env: str) -> dict[str, Any]:
    """boto3 keyword arguments, pointing at a local endpoint when one is configured."""
    kwargs: dict[str, Any] = {"region_name": os.getenv("AWS_REGION", "us-east-1")}
    endpoint_url = os.getenv(endpoint_env)
    if endpoint_url:
        logger.info(f"Using local endpoint {endpoint_url} ({endpoint_env})")
        kwargs.update(
            endpoint_url=endpoint_url,
            aws_access_key_id=os.getenv("AWS_ACCESS_KEY_ID"),
            aws_secret_access_key=os.getenv("AWS_SECRET_ACCESS_KEY"),
        )
    return kwargs


def get_dynamodb_resource() -> Any:
    """Create DynamoDB resource with appropriate configuration."""
    return boto3.resource("dynamodb", **_aws_kwargs("DYNAMODB_ENDPOINT"))


def get_s3_client() -> Any:
    """Create S3 client with appropriate configuration."""
    return boto3.client("s3", **_aws_kwargs("S3_ENDPOINT"))


def get_api_keys() -> list[str]:
    """Read comma-separated admin API keys, falling back to a development key."""
    api_keys = [key.strip() for key in os.getenv("ADMIN_API_KEY", "").split(",") if key.strip()]

    if not api_keys:
        logger.warning("No ADMIN_API_KEY configured - using development key")
        api_keys = ["dummy-key-for-development"]

    return api_keys


def create_import_service() -> ImportService:
    """Wire the import service from environment configuration.

    Raises:
        ValueError: If required configuration is missing
    """
    menu_service_url = os.getenv("MENU_SERVICE_BASE_URL")
    menu_service_api_key = os.getenv("MENU_SERVICE_API_KEY")
    if not menu_service_url or not menu_service_api_key:
        raise ValueError("MENU_SERVICE_BASE_URL and MENU_SERVICE_API_KEY must be set in environment")

    ai_api_key = os.getenv("AI_API_KEY")
    if not ai_api_key:
        raise ValueError("AI_API_KEY must be set in environment")

    jobs_table = os.getenv("DYNAMODB_IMPORT_JOBS_TABLE", "menu-import-jobs")
    bucket = os.getenv("IMPORT_FILES_BUCKET", "menu-import-files")

    job_repository = ImportJobRepository(dynamodb_resource=get_dynamodb_resource(), table_name=jobs_table)
    file_storage = FileStorage(s3_client=get_s3_client(), bucket_name=bucket)
    logger.info(f"Storage configured - jobs table: {jobs_table}, bucket: {bucket}")

    ai_client = AICompletionClient(
        base_url=os.getenv("AI_API_BASE_URL", "https://openrouter.ai/api/v1"),
        api_key=ai_api_key,
        timeout_seconds=float(os.getenv("AI_TIMEOUT_SECONDS", "120")),
    )
    model = ModelConfig(
        id=os.getenv("AI_EXTRACTION_MODEL", "nvidia/nemotron-3-nano-30b-a3b:free"),
        supports_structured_output=os.getenv("AI_SUPPORTS_STRUCTURED_OUTPUT", "false").lower() == "true",
    )
    logger.info(f"AI extraction model: {model.id} (structured output: {model.supports_structured_output})")

    return ImportService(
        job_repository=job_repository,
        file_storage=file_storage,
        menu_service_client=MenuServiceClient(base_url=menu_service_url, api_key=menu_service_api_key),
        menu_extractor=MenuExtractor(ai_client=ai_client, model=model),
        change_writer=MenuServiceAdapter(base_url=menu_service_url, api_key=menu_service_api_key),
        pipeline_timeout_seconds=float(os.getenv("IMPORT_PIPELINE_TIMEOUT_SECONDS", "300")),
    )
