"""EventBridge handler for import job events."""

import logging
from typing import Any

from pydantic import BaseModel, ValidationError

from menu_import_service.errors import JobNotFoundError
from menu_import_service.services.import_service import ImportService

logger = logging.getLogger(__name__)

EVENT_SOURCE = "com.menu.import"
IMPORT_JOB_CREATED = "ImportJobCreated"


class ImportJobCreatedEvent(BaseModel):
    """Detail of an ImportJobCreated event.

    Attributes:
        job_id: The job to process
        store_id: Store the job belongs to, informational only
    """

    job_id: str
    store_id: str | None = None


def parse_eventbridge_event(event: dict[str, Any]) -> ImportJobCreatedEvent | None:
    """Parse an EventBridge event into an ImportJobCreatedEvent.

    Returns:
        ImportJobCreatedEvent if parsing succeeds, None otherwise
    """
    try:
        return ImportJobCreatedEvent(**event.get("detail", {}))
    except (ValidationError, TypeError) as e:
        logger.error(f"Failed to parse EventBridge event: {e}")
        return None


class ImportEventHandler:
    """Worker-side handler that runs the import pipeline for created jobs."""

    def __init__(self, import_service: ImportService) -> None:
        self.import_service = import_service

    async def handle_import_job_created(self, event: ImportJobCreatedEvent) -> bool:
        """Process the job named by the event.

        The job records its own failure, so a pipeline error is reported
        here as False rather than raised.

        Returns:
            True if the pipeline ran to completion (or had nothing to do)
        """
        logger.info(f"Processing import job {event.job_id} from event")

        try:
            await self.import_service.process_import_job(event.job_id)
        except JobNotFoundError:
            logger.error(f"Import job {event.job_id} from event does not exist")
            return False
        except Exception as e:
            logger.error(f"Import job {event.job_id} failed: {e}")
            return False

        return True

    async def handle_eventbridge_event(self, event: dict[str, Any]) -> dict[str, Any]:
        """Validate, parse and process an EventBridge event.

        Returns:
            Dictionary with statusCode and body for the Lambda response
        """
        source = event.get("source", "")
        detail_type = event.get("detail-type", "")

        if source != EVENT_SOURCE or detail_type != IMPORT_JOB_CREATED:
            logger.warning(f"Unsupported event type: {source}/{detail_type}")
            return {"statusCode": 400, "body": f"Unsupported event type: {source}/{detail_type}"}

        import_event = parse_eventbridge_event(event)
        if import_event is None:
            return {"statusCode": 400, "body": "Invalid event format"}

        if await self.handle_import_job_created(import_event):
            return {"statusCode": 200, "body": f"Processed import job {import_event.job_id}"}

        return {"statusCode": 500, "body": f"Failed to process import job {import_event.job_id}"}
