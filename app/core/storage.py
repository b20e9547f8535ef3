"""MinIO object storage service"""

import logging
from datetime import datetime, timedelta, timezone
from io import BytesIO
from typing import BinaryIO

from minio import Minio
from minio.error import S3Error

from app.core.config import get_settings
from app.core.constants import (
    ALLOWED_ATTACHMENT_TYPES,
    ATTACHMENT_URL_EXPIRATION,
    BUCKET_CHAT_ATTACHMENTS,
    MAX_ATTACHMENT_SIZE,
)

logger = logging.getLogger(__name__)


class StorageService:
    """MinIO storage service"""

    BUCKET_CHAT_ATTACHMENTS = BUCKET_CHAT_ATTACHMENTS

    def __init__(self):
        self._client: Minio | None = None

    def _get_client(self) -> Minio:
        """Lazy initialization of MinIO client"""
        if self._client is None:
            settings = get_settings()
            self._client = Minio(
                endpoint=settings.minio_endpoint,
                access_key=settings.minio_access_key,
                secret_key=settings.minio_secret_key,
                secure=settings.minio_secure,
            )
            self._ensure_buckets()
        return self._client

    def _ensure_buckets(self) -> None:
        """Create required buckets"""
        try:
            if not self._client.bucket_exists(self.BUCKET_CHAT_ATTACHMENTS):
                self._client.make_bucket(self.BUCKET_CHAT_ATTACHMENTS)
                logger.info(f"Created bucket: {self.BUCKET_CHAT_ATTACHMENTS}")
        except S3Error as e:
            logger.error(f"Failed to create bucket: {e}")
            raise

    @staticmethod
    def validate_attachment(content_type: str | None, size: int) -> None:
        """Reject oversize or disallowed files before any upload is attempted

        Raises:
            ValueError: ATTACHMENT_TOO_LARGE or ATTACHMENT_TYPE_NOT_ALLOWED
        """
        if size > MAX_ATTACHMENT_SIZE:
            raise ValueError("ATTACHMENT_TOO_LARGE")
        if content_type not in ALLOWED_ATTACHMENT_TYPES:
            raise ValueError("ATTACHMENT_TYPE_NOT_ALLOWED")

    def upload_file(
        self,
        bucket: str,
        object_name: str,
        data: BinaryIO,
        length: int,
        content_type: str = "application/octet-stream",
    ) -> str:
        """Upload a file

        Args:
            bucket: bucket name
            object_name: object path
            data: file data stream
            length: data length
            content_type: content type

        Returns:
            Uploaded object path
        """
        client = self._get_client()
        try:
            client.put_object(
                bucket_name=bucket,
                object_name=object_name,
                data=data,
                length=length,
                content_type=content_type,
            )
            logger.info(f"Uploaded: {bucket}/{object_name}")
            return object_name
        except S3Error as e:
            logger.error(f"Upload failed: {e}")
            raise

    def upload_attachment(
        self,
        user_id: str,
        filename: str,
        content_type: str,
        data: bytes,
    ) -> str:
        """Upload a chat attachment

        Args:
            user_id: uploading user ID
            filename: original file name (only the extension is kept)
            content_type: MIME type
            data: file bytes

        Returns:
            Uploaded object path (<user_id>/<timestamp>.<ext>)
        """
        self.validate_attachment(content_type, len(data))

        timestamp = int(datetime.now(timezone.utc).timestamp() * 1000)
        extension = filename.rsplit(".", 1)[-1].lower() if "." in filename else "bin"
        object_name = f"{user_id}/{timestamp}.{extension}"

        return self.upload_file(
            bucket=self.BUCKET_CHAT_ATTACHMENTS,
            object_name=object_name,
            data=BytesIO(data),
            length=len(data),
            content_type=content_type,
        )

    def get_presigned_url(
        self,
        bucket: str,
        object_name: str,
        expires: timedelta = timedelta(hours=1),
    ) -> str:
        """Create a presigned download URL

        Args:
            bucket: bucket name
            object_name: object path
            expires: URL lifetime

        Returns:
            Presigned URL rewritten to the external storage address
        """
        client = self._get_client()
        settings = get_settings()
        try:
            url = client.presigned_get_object(
                bucket_name=bucket,
                object_name=object_name,
                expires=expires,
            )
            # http://minio:9000/bucket/... -> https://domain.com/storage/bucket/...
            scheme = "https" if settings.minio_secure else "http"
            internal_url = f"{scheme}://{settings.minio_endpoint}"
            return url.replace(internal_url, settings.storage_external_url)
        except S3Error as e:
            logger.error(f"Failed to generate presigned URL: {e}")
            raise

    def get_attachment_url(self, object_name: str) -> str:
        """Time-limited retrieval URL for a chat attachment"""
        return self.get_presigned_url(
            self.BUCKET_CHAT_ATTACHMENTS,
            object_name,
            expires=timedelta(seconds=ATTACHMENT_URL_EXPIRATION),
        )


storage_service = StorageService()
