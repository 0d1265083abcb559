"""S3-backed storage for uploaded menu files."""

import logging

from botocore.exceptions import ClientError
from mypy_boto3_s3.client import S3Client

logger = logging.getLogger(__name__)


class FileStorage:
    """Stores and fetches raw import files by key.

    Bytes are opaque here; the declared format travels on the import job.
    """

    def __init__(self, s3_client: S3Client, bucket_name: str) -> None:
        """Initialize storage.

        Args:
            s3_client: Boto3 S3 client
            bucket_name: Bucket holding uploaded files
        """
        self.s3 = s3_client
        self.bucket_name = bucket_name

    def put_file(self, key: str, data: bytes, content_type: str | None = None) -> bool:
        """Upload file bytes.

        Returns:
            bool: True if stored, False otherwise
        """
        try:
            self.s3.put_object(
                Bucket=self.bucket_name,
                Key=key,
                Body=data,
                ContentType=content_type or "application/octet-stream",
            )
            return True

        except ClientError as e:
            logger.error(f"Failed to store file {key}: {e}")
            return False

    def get_file(self, key: str) -> bytes | None:
        """Download file bytes.

        Returns:
            bytes if found, None otherwise
        """
        try:
            response = self.s3.get_object(Bucket=self.bucket_name, Key=key)
            return response["Body"].read()

        except ClientError as e:
            logger.error(f"Failed to fetch file {key}: {e}")
            return None
