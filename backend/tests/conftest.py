"""Pytest fixtures for the document workflow tests.

Provides reusable test fixtures for:
- Actors with every role (ADMIN, REVIEWER, MEMBER, CONTRACTOR, CUSTOMER)
- The built-in policy catalog and in-memory port fakes
- A SQLite database session for repository and API tests

Usage:
    @pytest.mark.asyncio
    async def test_approve(engine, reviewer, pending_document):
        approved = await engine.approve(reviewer, pending_document.id)
        assert approved.approval_status == ApprovalStatus.APPROVED
"""

import sys
import os
from pathlib import Path

backend_src = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(backend_src))
sys.path.insert(0, str(Path(__file__).parent))

# Set environment variables BEFORE any imports so cached settings pick them up
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-key-256-bits-minimum-length-required-for-security")
os.environ.setdefault("LOG_JSON", "false")
os.environ.setdefault("ENVIRONMENT", "test")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from uuid import uuid4
from typing import Generator

from auth.roles import Actor, UserRole
from domain.documents.policy import CatalogPolicyProvider
from domain.documents.upload_pipeline import UploadPipeline
from domain.documents.workflow import WorkflowEngine
from models.base import Base
from fixtures.fakes import FixedClock, InMemoryDocumentRepository, InMemoryObjectStorage


@pytest.fixture
def project_id():
    return uuid4()


@pytest.fixture
def admin() -> Actor:
    return Actor(user_id=uuid4(), role=UserRole.ADMIN)


@pytest.fixture
def reviewer() -> Actor:
    return Actor(user_id=uuid4(), role=UserRole.REVIEWER)


@pytest.fixture
def member() -> Actor:
    return Actor(user_id=uuid4(), role=UserRole.MEMBER)


@pytest.fixture
def other_member() -> Actor:
    return Actor(user_id=uuid4(), role=UserRole.MEMBER)


@pytest.fixture
def contractor() -> Actor:
    return Actor(user_id=uuid4(), role=UserRole.CONTRACTOR)


@pytest.fixture
def customer() -> Actor:
    return Actor(user_id=uuid4(), role=UserRole.CUSTOMER)


@pytest.fixture
def policy() -> CatalogPolicyProvider:
    return CatalogPolicyProvider.default()


@pytest.fixture
def storage() -> InMemoryObjectStorage:
    return InMemoryObjectStorage()


@pytest.fixture
def repository() -> InMemoryDocumentRepository:
    return InMemoryDocumentRepository()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def pipeline(storage, repository, policy, clock) -> UploadPipeline:
    return UploadPipeline(storage, repository, policy, clock=clock)


@pytest.fixture
def engine(storage, repository, policy, clock) -> WorkflowEngine:
    return WorkflowEngine(storage, repository, policy, clock=clock)


@pytest.fixture(scope="function")
def db_session(tmp_path) -> Generator[Session, None, None]:
    """Fresh SQLite database per test.

    Creates all tables before the test and drops them after.
    """
    test_engine = create_engine(
        f"sqlite:///{tmp_path / 'documents.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=test_engine)
    session = sessionmaker(autoflush=False, bind=test_engine)()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=test_engine)
        test_engine.dispose()
