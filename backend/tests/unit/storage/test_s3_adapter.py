"""Unit tests for S3 Storage Adapter using moto

Covers put, delete, exists, presigned URLs, bucket verification and
configuration loading against a mocked S3.
"""

import hashlib
from urllib.parse import parse_qs, urlparse
from uuid import UUID

import boto3
import pytest
from moto import mock_aws

from config import Settings
from domain.documents.errors import StorageError
from domain.documents.ports.object_storage_port import StoredObject
from infrastructure.storage.s3_storage_adapter import S3StorageAdapter
from infrastructure.storage.storage_config import (
    StorageConfig,
    load_storage_config,
    validate_storage_config,
)


# Test constants
TEST_BUCKET = "test-project-documents"
TEST_REGION = "us-east-1"
TEST_ACCESS_KEY = "test-access-key"
TEST_SECRET_KEY = "test-secret-key"
TEST_PROJECT_ID = UUID("a1b2c3d4-e5f6-7890-abcd-ef1234567890")
TEST_PATH = f"{TEST_PROJECT_ID}/1714554000000_9f86d081884c.pdf"


@pytest.fixture
def s3_client():
    """Mock S3 with the bucket created"""
    with mock_aws():
        client = boto3.client(
            "s3",
            region_name=TEST_REGION,
            aws_access_key_id=TEST_ACCESS_KEY,
            aws_secret_access_key=TEST_SECRET_KEY,
        )
        client.create_bucket(Bucket=TEST_BUCKET)
        yield client


@pytest.fixture
def storage_adapter(s3_client):
    """S3StorageAdapter pointed at the mocked bucket"""
    return S3StorageAdapter(
        endpoint_url=None,  # AWS S3 (moto mocks this)
        access_key=TEST_ACCESS_KEY,
        secret_key=TEST_SECRET_KEY,
        bucket_name=TEST_BUCKET,
        region=TEST_REGION,
    )


class TestS3AdapterInitialization:
    """Test S3 adapter initialization"""

    def test_adapter_creation_success(self):
        with mock_aws():
            adapter = S3StorageAdapter(
                endpoint_url=None,
                access_key=TEST_ACCESS_KEY,
                secret_key=TEST_SECRET_KEY,
                bucket_name=TEST_BUCKET,
                region=TEST_REGION,
            )
            assert adapter.bucket_name == TEST_BUCKET
            assert adapter.region == TEST_REGION

    def test_from_config(self):
        with mock_aws():
            adapter = S3StorageAdapter.from_config(StorageConfig(
                endpoint_url="http://localhost:9000",
                access_key=TEST_ACCESS_KEY,
                secret_key=TEST_SECRET_KEY,
                bucket_name=TEST_BUCKET,
            ))
            assert adapter.bucket_name == TEST_BUCKET
            assert adapter.region == "us-east-1"


class TestPut:
    """Test blob writes"""

    @pytest.mark.asyncio
    async def test_put_success(self, storage_adapter, s3_client):
        content = b"%PDF-1.4 site report"

        stored = await storage_adapter.put(TEST_PATH, content, "application/pdf")

        assert isinstance(stored, StoredObject)
        assert stored.path == TEST_PATH
        assert stored.sha256 == hashlib.sha256(content).hexdigest()
        assert stored.size_bytes == len(content)
        assert stored.mime_type == "application/pdf"

        head = s3_client.head_object(Bucket=TEST_BUCKET, Key=TEST_PATH)
        assert head["ContentType"] == "application/pdf"
        assert head["Metadata"]["sha256"] == stored.sha256

    @pytest.mark.asyncio
    async def test_put_missing_bucket_raises_storage_error(self, s3_client):
        adapter = S3StorageAdapter(
            endpoint_url=None,
            access_key=TEST_ACCESS_KEY,
            secret_key=TEST_SECRET_KEY,
            bucket_name="no-such-bucket",
            region=TEST_REGION,
        )

        with pytest.raises(StorageError, match="Failed to upload file"):
            await adapter.put(TEST_PATH, b"data", "application/pdf")


class TestDeleteAndExists:

    @pytest.mark.asyncio
    async def test_delete_existing(self, storage_adapter):
        await storage_adapter.put(TEST_PATH, b"data", "application/pdf")

        assert await storage_adapter.delete(TEST_PATH) is True
        assert await storage_adapter.exists(TEST_PATH) is False

    @pytest.mark.asyncio
    async def test_delete_missing_returns_false(self, storage_adapter):
        assert await storage_adapter.delete(f"{TEST_PROJECT_ID}/missing.pdf") is False

    @pytest.mark.asyncio
    async def test_exists(self, storage_adapter):
        assert await storage_adapter.exists(TEST_PATH) is False

        await storage_adapter.put(TEST_PATH, b"data", "application/pdf")

        assert await storage_adapter.exists(TEST_PATH) is True


class TestSignedUrl:
    """Test presigned GET URLs"""

    @pytest.mark.asyncio
    async def test_signed_url_carries_ttl(self, storage_adapter):
        await storage_adapter.put(TEST_PATH, b"data", "application/pdf")

        url = await storage_adapter.signed_url(TEST_PATH, ttl_seconds=300)

        parsed = urlparse(url)
        assert parsed.path.endswith(TEST_PATH)
        query = parse_qs(parsed.query)
        expires = query.get("X-Amz-Expires") or query.get("Expires")
        assert expires is not None

    @pytest.mark.asyncio
    async def test_each_call_issues_new_url(self, storage_adapter):
        await storage_adapter.put(TEST_PATH, b"data", "application/pdf")

        first = await storage_adapter.signed_url(TEST_PATH, ttl_seconds=300)
        preview = await storage_adapter.signed_url(TEST_PATH, ttl_seconds=3600)

        assert first != preview

    @pytest.mark.asyncio
    async def test_signed_url_missing_blob(self, storage_adapter):
        with pytest.raises(StorageError, match="not found"):
            await storage_adapter.signed_url(f"{TEST_PROJECT_ID}/missing.pdf", ttl_seconds=300)


class TestVerifyBucket:

    @pytest.mark.asyncio
    async def test_existing_bucket(self, storage_adapter):
        assert await storage_adapter.verify_bucket_exists() is True

    @pytest.mark.asyncio
    async def test_missing_bucket(self, s3_client):
        adapter = S3StorageAdapter(
            endpoint_url=None,
            access_key=TEST_ACCESS_KEY,
            secret_key=TEST_SECRET_KEY,
            bucket_name="no-such-bucket",
            region=TEST_REGION,
        )

        with pytest.raises(StorageError, match="does not exist"):
            await adapter.verify_bucket_exists()


class TestStorageConfig:
    """Test configuration loading and validation"""

    def test_load_from_settings(self):
        settings = Settings(
            S3_ENDPOINT_URL="http://minio:9000",
            S3_ACCESS_KEY_ID="key",
            S3_SECRET_ACCESS_KEY="secret",
            S3_BUCKET_NAME="docs",
        )

        config = load_storage_config(settings)

        assert config.endpoint_url == "http://minio:9000"
        assert config.bucket_name == "docs"

    def test_empty_endpoint_means_aws(self):
        settings = Settings(S3_ENDPOINT_URL="", S3_ACCESS_KEY_ID=None, S3_SECRET_ACCESS_KEY=None)

        config = load_storage_config(settings)

        assert config.endpoint_url is None
        assert config.access_key is None

    def test_half_credentials_rejected(self):
        with pytest.raises(ValueError, match="both"):
            validate_storage_config(StorageConfig(None, "key", None, "docs"))

    def test_bad_endpoint_scheme(self):
        with pytest.raises(ValueError, match="http"):
            validate_storage_config(StorageConfig("minio:9000", "key", "secret", "docs"))

    def test_bucket_required(self):
        with pytest.raises(ValueError, match="bucket_name"):
            validate_storage_config(StorageConfig(None, None, None, ""))
