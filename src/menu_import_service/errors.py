"""Error taxonomy for the menu import pipeline.

Infrastructure adapters return None/False on expected failures; the
orchestration layer turns those into the typed errors below so that a
failed import job always carries a meaningful message.
"""


class MenuImportError(Exception):
    """Base class for all menu import errors."""


class UnsupportedFormatError(MenuImportError):
    """Raised when a declared file format is not supported.

    Fatal and not retryable.
    """

    def __init__(self, file_type: str) -> None:
        self.file_type = file_type
        super().__init__(f"Unsupported file type: {file_type}")


class FileParseError(MenuImportError):
    """Raised when uploaded bytes cannot be decoded in their declared format."""


class FileNotFoundInStorageError(MenuImportError):
    """Raised when the source file of an import job cannot be fetched."""

    def __init__(self, file_key: str) -> None:
        self.file_key = file_key
        super().__init__(f"Import file not found: {file_key}")


class AIServiceError(MenuImportError):
    """Raised on network, quota or auth failures of the AI completion service.

    Retrying is the caller's responsibility.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class AIResponseParseError(MenuImportError):
    """Raised when model output cannot be parsed after recovery attempts."""

    def __init__(self, message: str, raw_preview: str = "") -> None:
        self.raw_preview = raw_preview
        super().__init__(message)


class ExistingMenuUnavailableError(MenuImportError):
    """Raised when the live menu snapshot for a store cannot be loaded."""

    def __init__(self, store_id: str) -> None:
        self.store_id = store_id
        super().__init__(f"Failed to load existing menu for store {store_id}")


class JobNotFoundError(MenuImportError):
    """Raised when an import job does not exist."""

    def __init__(self, job_id: str) -> None:
        self.job_id = job_id
        super().__init__(f"Import job {job_id} not found")


class JobNotReadyError(MenuImportError):
    """Raised when changes are applied to a job that is not READY."""

    def __init__(self, job_id: str, status: str) -> None:
        self.job_id = job_id
        self.status = status
        super().__init__(
            f"Import job {job_id} is not ready for application. Current status: {status}"
        )


class ApplyChangesError(MenuImportError):
    """Raised when the live menu rejects or cannot receive an import change set."""

    def __init__(self, job_id: str) -> None:
        self.job_id = job_id
        super().__init__(f"Failed to apply changes for import job {job_id}")
