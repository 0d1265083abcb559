"""Import service: job lifecycle and review operations.

Runs the import pipeline for a job (fetch file, extract text, load the live
menu, AI extraction, comparison) and exposes the upload, status and
selective-apply operations used by the API.
"""

import asyncio
import logging
import time
import uuid
from collections.abc import Iterable
from datetime import UTC, datetime

from menu_import_service.adapters.base_adapter import MenuChangeWriter
from menu_import_service.errors import (
    ApplyChangesError,
    ExistingMenuUnavailableError,
    FileNotFoundInStorageError,
    JobNotFoundError,
    JobNotReadyError,
    MenuImportError,
    UnsupportedFormatError,
)
from menu_import_service.extraction.menu_extractor import MenuExtractor
from menu_import_service.extraction.text_extractor import extract_text
from menu_import_service.models.change_models import ChangeOperation, MenuChange, MenuChangeSet
from menu_import_service.models.comparison_models import DiffAction, MenuComparisonData
from menu_import_service.models.import_models import (
    ApplyResult,
    ImportJob,
    ImportJobStatusEnum,
    ImportJobStatusView,
    ImportSelection,
    SelectionAction,
    SelectionType,
    resolve_file_type,
)
from menu_import_service.observability.decorators import traced
from menu_import_service.observability.metrics import (
    record_import_duration,
    record_import_failure,
    record_import_success,
)
from menu_import_service.repositories.import_job_repository import ImportJobRepository
from menu_import_service.services.file_storage import FileStorage
from menu_import_service.services.menu_comparer import compare_menus
from menu_import_service.services.menu_service_client import MenuServiceClient

logger = logging.getLogger(__name__)

MAX_ERROR_MESSAGE_LENGTH = 500
DEFAULT_PIPELINE_TIMEOUT_SECONDS = 300.0


def failure_message(error: Exception, timeout_seconds: float) -> str:
    """Message stored on a FAILED job, bounded in length."""
    if isinstance(error, TimeoutError):
        message = f"Import timed out after {timeout_seconds:g} seconds"
    else:
        message = str(error) or type(error).__name__
    return message[:MAX_ERROR_MESSAGE_LENGTH]


def build_change_set(
    job_id: str,
    store_id: str,
    comparison: MenuComparisonData,
    selections: Iterable[ImportSelection],
) -> MenuChangeSet:
    """Resolve reviewer selections against a stored comparison.

    Only ``apply`` selections are considered. Entities classified ``skip``
    and selections that name no extracted entity produce no write. A
    selection's ``matched_entity_id`` turns the write into an update of
    that record. A name extracted more than once is written for every
    entity carrying it.

    Args:
        job_id: Import job the comparison belongs to
        store_id: Store whose menu is written
        comparison: Comparison data of a READY job
        selections: Reviewer decisions

    Returns:
        MenuChangeSet with categories, items and option groups in comparison order
    """
    selected = {
        (selection.type, selection.extracted_name): selection
        for selection in selections
        if selection.action == SelectionAction.APPLY
    }
    matched: set[tuple[SelectionType, str]] = set()
    changes: list[MenuChange] = []

    def resolve(
        entity_type: SelectionType, name: str, action: DiffAction, existing_id: str | None
    ) -> tuple[ChangeOperation, str | None] | None:
        # a name may be extracted more than once; one selection covers every entity with it
        selection = selected.get((entity_type, name))
        if selection is not None:
            matched.add((entity_type, name))
        if selection is None or action == DiffAction.SKIP:
            return None
        if selection.matched_entity_id:
            return ChangeOperation.UPDATE, selection.matched_entity_id
        if action == DiffAction.UPDATE:
            return ChangeOperation.UPDATE, existing_id
        return ChangeOperation.CREATE, None

    for category in comparison.categories:
        resolved = resolve(
            SelectionType.CATEGORY, category.extracted.name, category.action, category.existing_id
        )
        if resolved:
            operation, target_id = resolved
            changes.append(
                MenuChange(
                    entity_type=SelectionType.CATEGORY,
                    operation=operation,
                    name=category.extracted.name,
                    existing_id=target_id,
                    data=category.extracted.model_dump(mode="json", by_alias=True, exclude={"items"}),
                )
            )

        # items of a matched category go into the live category under its live name
        if category.action != DiffAction.CREATE and category.existing_name:
            category_name = category.existing_name
        else:
            category_name = category.extracted.name

        for item in category.items:
            resolved = resolve(SelectionType.ITEM, item.extracted.name, item.action, item.existing_id)
            if not resolved:
                continue
            operation, target_id = resolved
            if operation == ChangeOperation.UPDATE and item.changes:
                data = {change.field: change.new_value for change in item.changes}
            else:
                data = item.extracted.model_dump(mode="json", by_alias=True, exclude={"category_name"})
            changes.append(
                MenuChange(
                    entity_type=SelectionType.ITEM,
                    operation=operation,
                    name=item.extracted.name,
                    existing_id=target_id,
                    category_name=category_name,
                    data=data,
                )
            )

    for group in comparison.option_groups:
        resolved = resolve(SelectionType.OPTION_GROUP, group.extracted.name, group.action, group.existing_id)
        if resolved:
            operation, target_id = resolved
            changes.append(
                MenuChange(
                    entity_type=SelectionType.OPTION_GROUP,
                    operation=operation,
                    name=group.extracted.name,
                    existing_id=target_id,
                    data=group.extracted.model_dump(mode="json", by_alias=True),
                )
            )

    for entity_type, name in selected.keys() - matched:
        logger.warning(f"Selection {entity_type.value} '{name}' does not match any extracted entity in job {job_id}")

    return MenuChangeSet(store_id=store_id, job_id=job_id, changes=changes)


class ImportService:
    """Service orchestrating menu imports.

    Coordinates file storage, text and AI extraction, the live menu snapshot,
    comparison, and job state in DynamoDB.
    """

    def __init__(
        self,
        job_repository: ImportJobRepository,
        file_storage: FileStorage,
        menu_service_client: MenuServiceClient,
        menu_extractor: MenuExtractor,
        change_writer: MenuChangeWriter,
        pipeline_timeout_seconds: float = DEFAULT_PIPELINE_TIMEOUT_SECONDS,
    ) -> None:
        """Initialize the ImportService.

        Args:
            job_repository: Repository for import jobs
            file_storage: Store holding uploaded files
            menu_service_client: Provider of existing-menu snapshots
            menu_extractor: AI extraction engine
            change_writer: Collaborator that writes applied changes to the live menu
            pipeline_timeout_seconds: Overall deadline for one pipeline run
        """
        self.job_repository = job_repository
        self.file_storage = file_storage
        self.menu_service_client = menu_service_client
        self.menu_extractor = menu_extractor
        self.change_writer = change_writer
        self.pipeline_timeout_seconds = pipeline_timeout_seconds

    async def upload_file(
        self,
        store_id: str,
        filename: str,
        content_type: str | None,
        data: bytes,
    ) -> ImportJob:
        """Store an uploaded menu file and create a PROCESSING job for it.

        Processing is not started here; callers trigger process_import_job.

        Raises:
            UnsupportedFormatError: If the file type cannot be determined
            MenuImportError: If the file or job cannot be stored
        """
        file_type = resolve_file_type(content_type, filename)
        if file_type is None:
            raise UnsupportedFormatError(content_type or filename or "unknown")

        job_id = str(uuid.uuid4())
        file_key = f"imports/{store_id}/{job_id}.{file_type.value}"

        if not self.file_storage.put_file(file_key, data, content_type):
            raise MenuImportError(f"Failed to store import file for store {store_id}")

        job = ImportJob(
            job_id=job_id,
            store_id=store_id,
            original_filename=filename,
            file_type=file_type,
            file_key=file_key,
            status=ImportJobStatusEnum.PROCESSING,
            created_at=datetime.now(UTC),
        )
        if not self.job_repository.create_job(job):
            raise MenuImportError(f"Failed to create import job for store {store_id}")

        logger.info(f"Created import job {job_id} for store {store_id} ({file_type.value})")
        return job

    @traced("process_import_job", service_name="menu-import-svc")
    async def process_import_job(self, job_id: str) -> None:
        """Run the import pipeline for a job.

        A job that is no longer PROCESSING is left alone, so duplicate
        triggers are harmless. Any pipeline error marks the job FAILED and
        is re-raised.

        Args:
            job_id: Job to process

        Raises:
            JobNotFoundError: If the job does not exist
            MenuImportError: If the result cannot be stored
        """
        job = self.job_repository.get_job(job_id)
        if job is None:
            raise JobNotFoundError(job_id)

        if job.status != ImportJobStatusEnum.PROCESSING:
            logger.debug(f"Import job {job_id} is {job.status.value}, skipping")
            return

        logger.info(f"Processing import job {job_id} for store {job.store_id}")
        start_time = time.perf_counter()

        try:
            comparison = await asyncio.wait_for(
                self._run_pipeline(job), timeout=self.pipeline_timeout_seconds
            )
        except Exception as e:
            message = failure_message(e, self.pipeline_timeout_seconds)
            logger.error(f"Import job {job_id} failed: {message}", exc_info=True)
            self.job_repository.mark_failed(job_id, message)
            record_import_failure(type(e).__name__)
            record_import_duration(time.perf_counter() - start_time, "failed")
            raise

        if not self.job_repository.mark_ready(job_id, comparison):
            current = self.job_repository.get_job(job_id)
            if current is not None and current.status != ImportJobStatusEnum.PROCESSING:
                logger.warning(f"Import job {job_id} became {current.status.value} before it was marked READY")
                return
            # the READY write itself failed; do not leave the job PROCESSING
            logger.error(f"Failed to store import result for job {job_id}")
            self.job_repository.mark_failed(job_id, "Failed to store import result")
            record_import_failure("ResultStoreError")
            record_import_duration(time.perf_counter() - start_time, "failed")
            raise MenuImportError(f"Failed to store import result for job {job_id}")

        record_import_success(comparison.extracted_menu.item_count)
        record_import_duration(time.perf_counter() - start_time, "ready")
        logger.info(
            f"Import job {job_id} ready: {comparison.summary.total_categories} categories, "
            f"{comparison.summary.total_items} items"
        )

    async def _run_pipeline(self, job: ImportJob) -> MenuComparisonData:
        data = self.file_storage.get_file(job.file_key)
        if data is None:
            raise FileNotFoundInStorageError(job.file_key)

        extracted_text = extract_text(data, job.file_type)

        existing_menu = await self.menu_service_client.get_existing_menu(job.store_id)
        if existing_menu is None:
            raise ExistingMenuUnavailableError(job.store_id)

        extracted_menu = await self.menu_extractor.extract_menu(
            extracted_text.text,
            existing_category_names=existing_menu.category_names,
            existing_item_names=existing_menu.item_names,
        )

        return compare_menus(extracted_menu, existing_menu)

    async def process_in_background(self, job_id: str) -> None:
        """Process a job without propagating its failure to the caller.

        The failure has already been recorded on the job by process_import_job.
        """
        try:
            await self.process_import_job(job_id)
        except MenuImportError as e:
            logger.warning(f"Background import of job {job_id} failed: {e}")
        except Exception:
            logger.exception(f"Background import of job {job_id} failed unexpectedly")

    def get_job_status(self, job_id: str) -> ImportJobStatusView:
        """Read a job for the review surface.

        Raises:
            JobNotFoundError: If the job does not exist
        """
        job = self.job_repository.get_job(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return ImportJobStatusView.from_job(job)

    async def apply_changes(
        self,
        job_id: str,
        store_id: str,
        selections: list[ImportSelection],
    ) -> ApplyResult:
        """Write the selected part of a READY job's diff to the live menu.

        Args:
            job_id: Job whose comparison is applied
            store_id: Store the job must belong to
            selections: Reviewer decisions per extracted entity

        Returns:
            ApplyResult with the number of written entities per type

        Raises:
            JobNotFoundError: If the job does not exist for the store
            JobNotReadyError: If the job is not READY
            ApplyChangesError: If the live menu rejects the writes
        """
        job = self.job_repository.get_job(job_id)
        if job is None or job.store_id != store_id:
            raise JobNotFoundError(job_id)

        if job.status != ImportJobStatusEnum.READY or job.comparison_data is None:
            raise JobNotReadyError(job_id, job.status.value)

        change_set = build_change_set(job_id, store_id, job.comparison_data, selections)

        if change_set.changes:
            payload = self.change_writer.format_changes(change_set)
            if payload is None:
                raise ApplyChangesError(job_id)

            if not await self.change_writer.publish_changes(store_id, payload):
                raise ApplyChangesError(job_id)

        if not self.job_repository.mark_completed(job_id):
            logger.warning(f"Import job {job_id} changed status while its changes were applied")

        counts = change_set.counts()
        logger.info(
            f"Applied import job {job_id}: {counts.categories} categories, "
            f"{counts.items} items, {counts.option_groups} option groups"
        )
        return ApplyResult(success=True, applied=counts)
