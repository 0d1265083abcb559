"""FastAPI application for the menu import review API."""

import logging
from typing import Annotated

from fastapi import BackgroundTasks, Depends, FastAPI, File, Request, UploadFile
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from menu_import_service.auth.api_dependencies import require_api_key
from menu_import_service.auth.api_key_validator import APIKeyValidator
from menu_import_service.errors import (
    ApplyChangesError,
    JobNotFoundError,
    JobNotReadyError,
    MenuImportError,
    UnsupportedFormatError,
)
from menu_import_service.models.import_models import (
    ApplyResult,
    ImportJobStatusEnum,
    ImportJobStatusView,
    ImportSelection,
)
from menu_import_service.services.import_service import ImportService

logger = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str


class UploadResponse(BaseModel):
    """Response model for accepted uploads."""

    job_id: str
    status: ImportJobStatusEnum


class ApplyRequest(BaseModel):
    """Request body for applying selected changes."""

    store_id: str
    selections: list[ImportSelection] = Field(default_factory=list)


def _error_response(status_code: int, error: Exception) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": str(error)})


def create_app(import_service: ImportService, api_keys: list[str]) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        import_service: Service handling uploads, job status and apply
        api_keys: List of valid API keys for authentication

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title="Menu Import Service API",
        description="Upload menu files, review the AI-extracted diff and apply it to the live menu",
        version="1.0.0",
    )

    app.state.import_service = import_service
    app.state.api_key_validator = APIKeyValidator(api_keys=api_keys)

    @app.exception_handler(JobNotFoundError)
    async def job_not_found(_request: Request, exc: JobNotFoundError) -> JSONResponse:
        return _error_response(404, exc)

    @app.exception_handler(JobNotReadyError)
    async def job_not_ready(_request: Request, exc: JobNotReadyError) -> JSONResponse:
        return _error_response(409, exc)

    @app.exception_handler(UnsupportedFormatError)
    async def unsupported_format(_request: Request, exc: UnsupportedFormatError) -> JSONResponse:
        return _error_response(400, exc)

    @app.exception_handler(ApplyChangesError)
    async def apply_failed(_request: Request, exc: ApplyChangesError) -> JSONResponse:
        return _error_response(502, exc)

    @app.exception_handler(MenuImportError)
    async def import_failed(_request: Request, exc: MenuImportError) -> JSONResponse:
        logger.error(f"Import request failed: {exc}")
        return _error_response(500, exc)

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check() -> HealthResponse:
        """Health check endpoint."""
        return HealthResponse(status="healthy")

    @app.post(
        "/imports/{store_id}",
        response_model=UploadResponse,
        status_code=202,
        tags=["Imports"],
    )
    async def upload_menu_file(
        store_id: str,
        background_tasks: BackgroundTasks,
        file: Annotated[UploadFile, File()],
        _api_key: str = Depends(require_api_key),
    ) -> UploadResponse:
        """Accept a menu file and start processing it in the background.

        Returns:
            The created job id and its PROCESSING status
        """
        data = await file.read()
        job = await app.state.import_service.upload_file(
            store_id=store_id,
            filename=file.filename or "upload",
            content_type=file.content_type,
            data=data,
        )

        background_tasks.add_task(app.state.import_service.process_in_background, job.job_id)

        return UploadResponse(job_id=job.job_id, status=job.status)

    @app.get(
        "/imports/jobs/{job_id}",
        response_model=ImportJobStatusView,
        tags=["Imports"],
    )
    async def get_import_job(
        job_id: str,
        _api_key: str = Depends(require_api_key),
    ) -> ImportJobStatusView:
        """Get an import job with its diff (READY) or failure message (FAILED)."""
        status: ImportJobStatusView = app.state.import_service.get_job_status(job_id)
        return status

    @app.post(
        "/imports/jobs/{job_id}/apply",
        response_model=ApplyResult,
        tags=["Imports"],
    )
    async def apply_import_changes(
        job_id: str,
        body: ApplyRequest,
        _api_key: str = Depends(require_api_key),
    ) -> ApplyResult:
        """Apply the selected entities of a READY job to the live menu."""
        logger.info(f"Applying {len(body.selections)} selections for import job {job_id}")
        result: ApplyResult = await app.state.import_service.apply_changes(
            job_id=job_id,
            store_id=body.store_id,
            selections=body.selections,
        )
        return result

    return app
