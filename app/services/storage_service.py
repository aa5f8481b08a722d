"""
Object Storage Service for S3-compatible storage (MinIO, AWS S3, DigitalOcean Spaces).

Holds uploaded invoice documents and business logos. Callers store the
returned object key and resolve it to a public URL on read.

Architecture:
- Uses boto3 (AWS SDK for Python)
- Compatible with MinIO (local), AWS S3, DigitalOcean Spaces
- Objects are public-read
- Automatic bucket creation on init
"""
import io
import json
import logging
import mimetypes
from typing import Optional

import boto3
from botocore.client import Config as BotoConfig
from botocore.exceptions import ClientError
from flask import current_app

logger = logging.getLogger(__name__)


class StorageService:
    """
    S3-compatible object storage service.

    Usage:
        storage = StorageService()
        key = storage.upload('42/logo.png', data, 'image/png', overwrite=True)
        url = storage.get_public_url(key)
    """

    def __init__(self):
        """Initialize S3 client from Flask config."""
        self.endpoint = current_app.config['S3_ENDPOINT']
        self.access_key = current_app.config['S3_ACCESS_KEY']
        self.secret_key = current_app.config['S3_SECRET_KEY']
        self.bucket = current_app.config['S3_BUCKET']
        self.region = current_app.config['S3_REGION']
        self.public_url = current_app.config['S3_PUBLIC_URL']

        self.client = boto3.client(
            's3',
            endpoint_url=self.endpoint,
            aws_access_key_id=self.access_key,
            aws_secret_access_key=self.secret_key,
            region_name=self.region,
            config=BotoConfig(signature_version='s3v4')
        )

        self._ensure_bucket_exists()

    def _ensure_bucket_exists(self):
        """Create bucket if it doesn't exist."""
        try:
            self.client.head_bucket(Bucket=self.bucket)
            logger.info(f"[STORAGE] Bucket '{self.bucket}' exists")
        except ClientError as e:
            error_code = e.response.get('Error', {}).get('Code')
            if error_code == '404':
                try:
                    self.client.create_bucket(Bucket=self.bucket)
                    logger.info(f"[STORAGE] ✓ Bucket '{self.bucket}' created")

                    policy = {
                        "Version": "2012-10-17",
                        "Statement": [
                            {
                                "Effect": "Allow",
                                "Principal": {"AWS": "*"},
                                "Action": "s3:GetObject",
                                "Resource": f"arn:aws:s3:::{self.bucket}/*"
                            }
                        ]
                    }
                    self.client.put_bucket_policy(
                        Bucket=self.bucket,
                        Policy=json.dumps(policy)
                    )
                    logger.info(f"[STORAGE] ✓ Bucket '{self.bucket}' policy set to public-read")
                except ClientError as create_error:
                    logger.error(f"[STORAGE] ✗ Failed to create bucket: {create_error}")
                    raise
            else:
                logger.error(f"[STORAGE] ✗ Failed to check bucket: {e}")
                raise

    def upload(
        self,
        object_name: str,
        data: bytes,
        content_type: Optional[str] = None,
        overwrite: bool = False,
        allowed_types_key: Optional[str] = None
    ) -> str:
        """
        Upload bytes to S3-compatible storage.

        Args:
            object_name: S3 object key (e.g., 'invoices/1/7/bill.pdf')
            data: File contents
            content_type: MIME type (guessed from the key if None)
            overwrite: Replace an existing object with the same key
            allowed_types_key: Config key holding the allowed MIME types

        Returns:
            The object key

        Raises:
            ValueError: If validation fails or the key exists and overwrite is False
            ClientError: If upload fails
        """
        if not content_type:
            content_type = mimetypes.guess_type(object_name)[0] or 'application/octet-stream'

        self._validate(object_name, data, content_type, allowed_types_key)

        if not overwrite and self.file_exists(object_name):
            raise ValueError(f"A file already exists at '{object_name}'")

        extra_args = {
            'ContentType': content_type,
            'ACL': 'public-read'
        }

        try:
            logger.info(f"[STORAGE] Uploading '{object_name}' to bucket '{self.bucket}'...")
            self.client.upload_fileobj(
                io.BytesIO(data),
                self.bucket,
                object_name,
                ExtraArgs=extra_args
            )
            logger.info(f"[STORAGE] ✓ File uploaded: {object_name}")
            return object_name

        except ClientError as e:
            logger.exception(f"[STORAGE] ✗ Upload failed: {e}")
            raise

    def delete_file(self, object_name: str) -> bool:
        """
        Delete file from S3-compatible storage.

        Returns:
            True if deleted successfully, False otherwise
        """
        try:
            logger.info(f"[STORAGE] Deleting '{object_name}' from bucket '{self.bucket}'...")
            self.client.delete_object(Bucket=self.bucket, Key=object_name)
            logger.info(f"[STORAGE] ✓ File deleted: {object_name}")
            return True
        except ClientError as e:
            logger.exception(f"[STORAGE] ✗ Delete failed: {e}")
            return False

    def get_public_url(self, object_name: Optional[str]) -> Optional[str]:
        """
        Get public URL for an object.

        Legacy values that are already absolute URLs are returned as is.

        Returns:
            Public URL (e.g., 'http://localhost:9000/business-files/42/logo.png')
        """
        if not object_name:
            return None
        if object_name.startswith(('http://', 'https://')):
            return object_name

        base = self.public_url.rstrip('/')
        bucket = self.bucket.strip('/')
        path = object_name.lstrip('/')
        return f"{base}/{bucket}/{path}"

    def file_exists(self, object_name: str) -> bool:
        """Check if file exists in S3."""
        try:
            self.client.head_object(Bucket=self.bucket, Key=object_name)
            return True
        except ClientError:
            return False

    def _validate(self, object_name: str, data: bytes, content_type: str, allowed_types_key: Optional[str]):
        """
        Validate an upload (size, type).

        Raises:
            ValueError: If validation fails
        """
        if not data:
            raise ValueError("The uploaded file is empty")

        max_size = current_app.config.get('MAX_UPLOAD_SIZE', 10 * 1024 * 1024)
        if len(data) > max_size:
            max_mb = max_size / (1024 * 1024)
            raise ValueError(f"File is too large. Maximum {max_mb:.1f}MB")

        if allowed_types_key:
            allowed_types = current_app.config.get(allowed_types_key, set())
            if allowed_types and content_type not in allowed_types:
                raise ValueError(
                    f"File type not allowed: {content_type}. Allowed: {', '.join(sorted(allowed_types))}"
                )

        logger.info(f"[STORAGE] ✓ File validation passed: {object_name} ({len(data)} bytes, {content_type})")


# Singleton instance
_storage_service = None


def get_storage_service() -> StorageService:
    """
    Get or create StorageService singleton.

    Returns:
        StorageService instance
    """
    global _storage_service
    if _storage_service is None:
        _storage_service = StorageService()
    return _storage_service
