"""Import job models.

These models represent menu import jobs, their lifecycle status and the
selections a reviewer submits when applying an import.
Stored in DynamoDB with job_id as partition key.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from menu_import_service.models.comparison_models import MenuComparisonData

FAILED_JOB_USER_MESSAGE = "The menu could not be imported."


class ImportJobStatusEnum(str, Enum):
    """Enumeration of import job status values.

    Transitions are one-directional: PROCESSING -> READY | FAILED,
    READY -> COMPLETED.
    """

    PROCESSING = "PROCESSING"
    READY = "READY"
    FAILED = "FAILED"
    COMPLETED = "COMPLETED"


class FileType(str, Enum):
    """Declared formats accepted for import."""

    XLSX = "xlsx"
    CSV = "csv"
    JSON = "json"
    MD = "md"
    TXT = "txt"


MIME_TYPE_MAP: dict[str, FileType] = {
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": FileType.XLSX,
    "application/vnd.ms-excel": FileType.XLSX,
    "text/csv": FileType.CSV,
    "application/json": FileType.JSON,
    "text/markdown": FileType.MD,
    "text/plain": FileType.TXT,
}


def resolve_file_type(content_type: str | None, filename: str | None) -> FileType | None:
    """Determine the declared format from MIME type, falling back to the file extension.

    Args:
        content_type: MIME type reported by the client
        filename: Original filename

    Returns:
        FileType if recognised, None otherwise
    """
    if content_type and content_type in MIME_TYPE_MAP:
        return MIME_TYPE_MAP[content_type]

    if filename and "." in filename:
        extension = filename.rsplit(".", 1)[-1].lower()
        try:
            return FileType(extension)
        except ValueError:
            return None

    return None


class ImportJob(BaseModel):
    """Menu import job.

    Created when a file is accepted; populated with comparison data when READY
    or with an error message when FAILED.
    """

    job_id: str = Field(..., description="Unique job identifier")
    store_id: str = Field(..., description="Store whose menu is being imported")
    original_filename: str = Field(..., description="Filename as uploaded")
    file_type: FileType = Field(..., description="Declared format of the file")
    file_key: str = Field(..., description="Storage key of the uploaded bytes")
    status: ImportJobStatusEnum = Field(ImportJobStatusEnum.PROCESSING, description="Lifecycle status")
    comparison_data: MenuComparisonData | None = Field(None, description="Diff, set when READY")
    error_message: str | None = Field(None, description="Failure reason, set when FAILED")
    created_at: datetime = Field(..., description="Job creation timestamp")
    updated_at: datetime | None = Field(None, description="Last transition timestamp")

    def to_dynamodb_item(self) -> dict[str, Any]:
        """Convert to DynamoDB item format.

        Comparison data is stored as a JSON string: DynamoDB rejects Python
        floats and the payload is only ever read back as a whole.

        Returns:
            dict: DynamoDB-compatible representation
        """
        item: dict[str, Any] = {
            "job_id": self.job_id,
            "store_id": self.store_id,
            "original_filename": self.original_filename,
            "file_type": self.file_type.value,
            "file_key": self.file_key,
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
        }

        if self.comparison_data is not None:
            item["comparison_data"] = self.comparison_data.model_dump_json(by_alias=True)

        if self.error_message is not None:
            item["error_message"] = self.error_message

        if self.updated_at is not None:
            item["updated_at"] = self.updated_at.isoformat()

        return item

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "ImportJob":
        """Create ImportJob from DynamoDB item.

        Args:
            item: DynamoDB item dictionary

        Returns:
            ImportJob: Parsed model instance
        """
        data: dict[str, Any] = {
            "job_id": item["job_id"],
            "store_id": item["store_id"],
            "original_filename": item["original_filename"],
            "file_type": FileType(item["file_type"]),
            "file_key": item["file_key"],
            "status": ImportJobStatusEnum(item["status"]),
            "created_at": datetime.fromisoformat(item["created_at"]),
        }

        if "comparison_data" in item:
            data["comparison_data"] = MenuComparisonData.model_validate_json(item["comparison_data"])

        if "error_message" in item:
            data["error_message"] = item["error_message"]

        if "updated_at" in item:
            data["updated_at"] = datetime.fromisoformat(item["updated_at"])

        return cls(**data)


class SelectionType(str, Enum):
    CATEGORY = "category"
    ITEM = "item"
    OPTION_GROUP = "optionGroup"


class SelectionAction(str, Enum):
    APPLY = "apply"
    SKIP = "skip"


class ImportSelection(BaseModel):
    """A reviewer's decision on one extracted entity.

    Accepts both snake_case and camelCase keys.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    type: SelectionType
    extracted_name: str
    action: SelectionAction = SelectionAction.APPLY
    matched_entity_id: str | None = None


class AppliedCounts(BaseModel):
    categories: int = 0
    items: int = 0
    option_groups: int = 0


class ApplyResult(BaseModel):
    """Outcome of applying selected import changes."""

    success: bool
    applied: AppliedCounts = Field(default_factory=AppliedCounts)


class ImportJobStatusView(BaseModel):
    """Job status as exposed to the review surface."""

    id: str
    store_id: str
    original_filename: str
    file_type: FileType
    status: ImportJobStatusEnum
    message: str | None = None
    error_message: str | None = None
    comparison_data: dict[str, Any] | None = None
    created_at: datetime

    @classmethod
    def from_job(cls, job: ImportJob) -> "ImportJobStatusView":
        return cls(
            id=job.job_id,
            store_id=job.store_id,
            original_filename=job.original_filename,
            file_type=job.file_type,
            status=job.status,
            message=FAILED_JOB_USER_MESSAGE if job.status == ImportJobStatusEnum.FAILED else None,
            error_message=job.error_message,
            comparison_data=(
                job.comparison_data.model_dump(mode="json", by_alias=True)
                if job.comparison_data is not None
                else None
            ),
            created_at=job.created_at,
        )
