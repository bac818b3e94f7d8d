"""Unit tests for structured logging, request correlation and health checks"""

import json
import logging

import pytest

from domain.documents.errors import StorageError
from observability.health import (
    ComponentHealth,
    HealthStatus,
    check_database_health,
    check_object_storage_health,
    get_overall_health,
)
from observability.logging_config import JSONFormatter, RequestIDFilter
from observability.request_id import bound_request_id, get_request_id


def make_record(**extra):
    record = logging.LogRecord("domain.documents.workflow", logging.WARNING, __file__, 1, "Orphaned blob", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    RequestIDFilter().filter(record)
    return record


class TestRequestId:

    def test_default_outside_request(self):
        assert get_request_id() == "no-request-id"

    def test_bound_and_restored(self):
        with bound_request_id("req-1") as rid:
            assert rid == "req-1"
            assert get_request_id() == "req-1"
        assert get_request_id() == "no-request-id"

    def test_generated_when_missing(self):
        with bound_request_id() as rid:
            assert len(rid) == 36


class TestJSONFormatter:

    def test_context_fields_included(self):
        with bound_request_id("req-42"):
            record = make_record(event="orphaned_blob", storage_path="p/1_abc.pdf")

        payload = json.loads(JSONFormatter().format(record))

        assert payload["level"] == "WARNING"
        assert payload["request_id"] == "req-42"
        assert payload["message"] == "Orphaned blob"
        assert payload["event"] == "orphaned_blob"
        assert payload["storage_path"] == "p/1_abc.pdf"
        assert "document_id" not in payload


class StubStorage:
    def __init__(self, error=None):
        self.error = error

    async def verify_bucket_exists(self):
        if self.error is not None:
            raise self.error
        return True


class TestHealth:

    def test_database_healthy(self, db_session):
        assert check_database_health(db_session).status == HealthStatus.HEALTHY

    @pytest.mark.asyncio
    async def test_storage_unhealthy(self):
        health = await check_object_storage_health(StubStorage(StorageError("Bucket 'x' does not exist")))

        assert health.status == HealthStatus.UNHEALTHY
        assert "does not exist" in health.message

    @pytest.mark.asyncio
    async def test_storage_healthy(self):
        health = await check_object_storage_health(StubStorage())

        assert health.status == HealthStatus.HEALTHY

    def test_overall(self):
        healthy = ComponentHealth(status=HealthStatus.HEALTHY)
        degraded = ComponentHealth(status=HealthStatus.DEGRADED)
        down = ComponentHealth(status=HealthStatus.UNHEALTHY)

        assert get_overall_health({"a": healthy, "b": healthy}) == HealthStatus.HEALTHY
        assert get_overall_health({"a": healthy, "b": degraded}) == HealthStatus.DEGRADED
        assert get_overall_health({"a": degraded, "b": down}) == HealthStatus.UNHEALTHY
