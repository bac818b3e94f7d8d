"""S3 Storage Adapter - Implementation of ObjectStoragePort using boto3.

Provides blob storage for project documents on AWS S3, MinIO and other
S3-compatible services. Read access is granted through presigned URLs.

Architecture: Hexagonal - Adapter implementation in infrastructure layer
"""

import asyncio
import hashlib
import logging
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError, NoCredentialsError

from domain.documents.errors import StorageError
from domain.documents.ports.object_storage_port import ObjectStoragePort, StoredObject

from .storage_config import StorageConfig

logger = logging.getLogger(__name__)


class S3StorageAdapter(ObjectStoragePort):
    """S3-compatible storage adapter using boto3.

    boto3 is blocking; every call runs in the default executor so that
    concurrent uploads of a batch actually overlap.

    Example:
        storage = S3StorageAdapter.from_config(load_storage_config(get_settings()))
        stored = await storage.put(path, content, "application/pdf")
        url = await storage.signed_url(stored.path, ttl_seconds=300)
    """

    def __init__(
        self,
        endpoint_url: Optional[str],
        access_key: Optional[str],
        secret_key: Optional[str],
        bucket_name: str,
        region: str = "us-east-1",
    ):
        """Initialize S3 storage adapter.

        Args:
            endpoint_url: S3 endpoint URL (None for AWS S3, URL for MinIO)
            access_key: S3 access key ID (None to use the default credential chain)
            secret_key: S3 secret access key
            bucket_name: S3 bucket name
            region: AWS region (default: 'us-east-1')

        Raises:
            StorageError: If S3 client initialization fails
        """
        try:
            self.s3_client = boto3.client(
                "s3",
                endpoint_url=endpoint_url,
                aws_access_key_id=access_key,
                aws_secret_access_key=secret_key,
                region_name=region,
            )
        except (NoCredentialsError, BotoCoreError) as e:
            raise StorageError(f"Failed to initialize S3 client: {e}")

        self.bucket_name = bucket_name
        self.region = region
        logger.info(
            f"Initialized S3 storage adapter: bucket={bucket_name}, "
            f"endpoint={endpoint_url or 'AWS S3'}, region={region}"
        )

    @classmethod
    def from_config(cls, config: StorageConfig) -> "S3StorageAdapter":
        return cls(
            endpoint_url=config.endpoint_url,
            access_key=config.access_key,
            secret_key=config.secret_key,
            bucket_name=config.bucket_name,
            region=config.region,
        )

    async def put(self, path: str, data: bytes, mime_type: str) -> StoredObject:
        """Write a blob under `path`.

        Raises:
            StorageError: If the upload fails
        """
        sha256_hex = hashlib.sha256(data).hexdigest()

        def _put():
            self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=path,
                Body=data,
                ContentType=mime_type,
                Metadata={"sha256": sha256_hex},
            )

        try:
            loop = asyncio.get_event_loop()
            await loop.run_in_executor(None, _put)
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            logger.error(f"S3 upload failed: storage_path={path}, error={error_code}")
            raise StorageError(f"Failed to upload file: {error_code}")
        except BotoCoreError as e:
            logger.error(f"S3 upload failed: storage_path={path}, error={e}")
            raise StorageError(f"Failed to upload file: {e}")

        logger.info(
            f"Uploaded blob: storage_path={path}, sha256={sha256_hex}, "
            f"size={len(data)}, mime_type={mime_type}"
        )
        return StoredObject(path=path, sha256=sha256_hex, size_bytes=len(data), mime_type=mime_type)

    async def delete(self, path: str) -> bool:
        """Delete a blob.

        Returns:
            bool: True if deleted, False if it didn't exist

        Raises:
            StorageError: If deletion fails
        """
        if not await self.exists(path):
            logger.info(f"Blob not found for deletion: storage_path={path}")
            return False

        def _delete():
            self.s3_client.delete_object(Bucket=self.bucket_name, Key=path)

        try:
            loop = asyncio.get_event_loop()
            await loop.run_in_executor(None, _delete)
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            logger.error(f"S3 deletion failed: storage_path={path}, error={error_code}")
            raise StorageError(f"Failed to delete file: {error_code}")
        except BotoCoreError as e:
            logger.error(f"S3 deletion failed: storage_path={path}, error={e}")
            raise StorageError(f"Failed to delete file: {e}")

        logger.info(f"Deleted blob: storage_path={path}")
        return True

    async def exists(self, path: str) -> bool:
        """Check if a blob exists (HEAD request).

        Raises:
            StorageError: On any error other than a missing key
        """
        def _head():
            self.s3_client.head_object(Bucket=self.bucket_name, Key=path)

        try:
            loop = asyncio.get_event_loop()
            await loop.run_in_executor(None, _head)
            return True
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            if error_code in ("404", "NoSuchKey", "NotFound"):
                return False
            logger.error(f"S3 head failed: storage_path={path}, error={error_code}")
            raise StorageError(f"Failed to check file: {error_code}")
        except BotoCoreError as e:
            raise StorageError(f"Failed to check file: {e}")

    async def signed_url(self, path: str, ttl_seconds: int) -> str:
        """Generate a presigned GET URL for one blob.

        Raises:
            StorageError: If the blob is missing or URL generation fails
        """
        if not await self.exists(path):
            raise StorageError(f"File not found in storage: {path}")

        try:
            url = self.s3_client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket_name, "Key": path},
                ExpiresIn=ttl_seconds,
            )
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            logger.error(f"Presigned URL generation failed: storage_path={path}, error={error_code}")
            raise StorageError(f"Failed to generate presigned URL: {error_code}")
        except BotoCoreError as e:
            raise StorageError(f"Failed to generate presigned URL: {e}")

        logger.debug(f"Generated presigned URL: storage_path={path}, expires_in={ttl_seconds}s")
        return url

    async def verify_bucket_exists(self) -> bool:
        """Verify that the configured bucket exists.

        Called on application startup to fail fast if the bucket is missing.

        Raises:
            StorageError: If bucket check fails or bucket doesn't exist
        """
        try:
            self.s3_client.head_bucket(Bucket=self.bucket_name)
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            if error_code == "404":
                raise StorageError(
                    f"Bucket '{self.bucket_name}' does not exist. "
                    f"Create it first or update the S3_BUCKET_NAME setting."
                )
            raise StorageError(f"Failed to verify bucket: {error_code}")
        except BotoCoreError as e:
            raise StorageError(f"Failed to verify bucket: {e}")

        logger.info(f"Verified bucket exists: {self.bucket_name}")
        return True
