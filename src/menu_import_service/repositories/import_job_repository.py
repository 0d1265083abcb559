"""DynamoDB repository for import jobs.

Status transitions are written with a single conditional update on the
current status (compare-and-set) so two concurrent processor invocations
cannot set divergent terminal states. Following the repository convention,
expected failures return None/False rather than raising.
"""

import logging
from datetime import UTC, datetime
from typing import Any

from botocore.exceptions import ClientError
from mypy_boto3_dynamodb.service_resource import DynamoDBServiceResource, Table

from menu_import_service.models.comparison_models import MenuComparisonData
from menu_import_service.models.import_models import ImportJob, ImportJobStatusEnum

logger = logging.getLogger(__name__)


class ImportJobRepository:
    """Repository for import job CRUD operations.

    Manages import job records in DynamoDB with job_id as partition key.
    """

    def __init__(self, dynamodb_resource: DynamoDBServiceResource, table_name: str) -> None:
        """Initialize repository.

        Args:
            dynamodb_resource: Boto3 DynamoDB resource
            table_name: Name of the DynamoDB table
        """
        self.dynamodb = dynamodb_resource
        self.table_name = table_name
        self.table: Table = dynamodb_resource.Table(table_name)

    def create_job(self, job: ImportJob) -> bool:
        """Insert a new job; fails if the job id already exists.

        Args:
            job: ImportJob to create

        Returns:
            bool: True if the job was created, False otherwise
        """
        try:
            self.table.put_item(
                Item=job.to_dynamodb_item(),
                ConditionExpression="attribute_not_exists(job_id)",
            )
            return True

        except ClientError as e:
            logger.error(f"Failed to create import job {job.job_id}: {e}")  # pragma: no cover
            return False

    def get_job(self, job_id: str) -> ImportJob | None:
        """Retrieve an import job by ID.

        Args:
            job_id: Job identifier

        Returns:
            ImportJob if found, None otherwise
        """
        try:
            response = self.table.get_item(Key={"job_id": job_id})

            if "Item" not in response:
                return None

            return ImportJob.from_dynamodb_item(response["Item"])

        except ClientError as e:
            logger.error(f"Failed to get import job {job_id}: {e}")  # pragma: no cover
            return None

    def transition_status(
        self,
        job_id: str,
        expected_status: ImportJobStatusEnum,
        new_status: ImportJobStatusEnum,
        attributes: dict[str, Any] | None = None,
    ) -> bool:
        """Atomically move a job from *expected_status* to *new_status*.

        Args:
            job_id: Job identifier
            expected_status: Status the job must currently have
            new_status: Status to set
            attributes: Extra attributes written in the same update

        Returns:
            bool: True if the transition was applied, False if the job was not
            in the expected status or the write failed
        """
        values: dict[str, Any] = {
            ":expected": expected_status.value,
            ":new": new_status.value,
            ":updated_at": datetime.now(UTC).isoformat(),
        }
        names = {"#status": "status"}
        assignments = ["#status = :new", "updated_at = :updated_at"]

        for index, (name, value) in enumerate((attributes or {}).items()):
            names[f"#a{index}"] = name
            values[f":a{index}"] = value
            assignments.append(f"#a{index} = :a{index}")

        try:
            self.table.update_item(
                Key={"job_id": job_id},
                UpdateExpression="SET " + ", ".join(assignments),
                ConditionExpression="#status = :expected",
                ExpressionAttributeNames=names,
                ExpressionAttributeValues=values,
            )
            return True

        except ClientError as e:
            if e.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException":
                logger.warning(
                    f"Import job {job_id} is no longer {expected_status.value}, "
                    f"skipping transition to {new_status.value}"
                )
                return False
            logger.error(f"Failed to update import job {job_id}: {e}")  # pragma: no cover
            return False

    def mark_ready(self, job_id: str, comparison_data: MenuComparisonData) -> bool:
        """PROCESSING -> READY with the comparison payload."""
        return self.transition_status(
            job_id,
            ImportJobStatusEnum.PROCESSING,
            ImportJobStatusEnum.READY,
            {"comparison_data": comparison_data.model_dump_json(by_alias=True)},
        )

    def mark_failed(self, job_id: str, error_message: str) -> bool:
        """PROCESSING -> FAILED with the captured error message."""
        return self.transition_status(
            job_id,
            ImportJobStatusEnum.PROCESSING,
            ImportJobStatusEnum.FAILED,
            {"error_message": error_message},
        )

    def mark_completed(self, job_id: str) -> bool:
        """READY -> COMPLETED after changes were applied."""
        return self.transition_status(
            job_id, ImportJobStatusEnum.READY, ImportJobStatusEnum.COMPLETED
        )
