"""Unit tests for single-document workflow transitions"""

import logging
from uuid import uuid4

import pytest

from domain.documents.document_status import ApprovalLevel, ApprovalStatus, ReviewStatus, WorkflowStage
from domain.documents.errors import (
    AuthorizationError,
    InvalidTransitionError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from domain.documents.visibility import VisibilityLevel
from fixtures.fakes import make_document, seed


@pytest.fixture
def pending(project_id, member):
    return make_document(
        project_id, member.user_id, name="contract.pdf", type="Contract",
        approval_status=ApprovalStatus.PENDING,
    )


@pytest.fixture
def unreviewed(project_id, member):
    return make_document(
        project_id, member.user_id, name="report.pdf", type="Report",
        review_status=ReviewStatus.UNREVIEWED, visibility_level=VisibilityLevel.CONTRACTORS,
    )


class TestApprove:
    """Test PENDING → APPROVED"""

    @pytest.mark.asyncio
    async def test_approve_releases_at_visibility(self, engine, repository, storage, reviewer, pending):
        await seed(repository, storage, pending)

        approved = await engine.approve(reviewer, pending.id, VisibilityLevel.PUBLIC)

        assert approved.approval_status == ApprovalStatus.APPROVED
        assert approved.workflow_stage == WorkflowStage.APPROVED
        assert approved.visibility_level == VisibilityLevel.PUBLIC
        assert approved.approved_by_user_id == reviewer.user_id
        assert approved.approved_at is not None
        assert repository.rows[pending.id].approval_status == ApprovalStatus.APPROVED

    @pytest.mark.asyncio
    async def test_approval_level_defaults_to_policy(self, engine, repository, storage, admin, pending):
        await seed(repository, storage, pending)

        approved = await engine.approve(admin, pending.id)

        assert approved.approval_level == ApprovalLevel.MANAGER
        assert approved.visibility_level == VisibilityLevel.INTERNAL

    @pytest.mark.asyncio
    async def test_explicit_approval_level_recorded(self, engine, repository, storage, reviewer, pending):
        await seed(repository, storage, pending)

        approved = await engine.approve(reviewer, pending.id, approval_level="director")

        assert approved.approval_level == ApprovalLevel.DIRECTOR

    @pytest.mark.asyncio
    async def test_member_cannot_approve(self, engine, repository, storage, member, pending):
        await seed(repository, storage, pending)

        with pytest.raises(AuthorizationError):
            await engine.approve(member, pending.id)

        assert repository.rows[pending.id].approval_status == ApprovalStatus.PENDING

    @pytest.mark.asyncio
    async def test_approve_twice_is_invalid(self, engine, repository, storage, reviewer, pending):
        await seed(repository, storage, pending)
        await engine.approve(reviewer, pending.id)

        with pytest.raises(InvalidTransitionError):
            await engine.approve(reviewer, pending.id)

    @pytest.mark.asyncio
    async def test_available_document_cannot_be_approved(self, engine, repository, storage, reviewer, unreviewed):
        await seed(repository, storage, unreviewed)

        with pytest.raises(InvalidTransitionError):
            await engine.approve(reviewer, unreviewed.id)

    @pytest.mark.asyncio
    async def test_missing_document(self, engine, reviewer):
        with pytest.raises(NotFoundError):
            await engine.approve(reviewer, uuid4())

    @pytest.mark.asyncio
    async def test_other_project_reported_as_missing(self, engine, repository, storage, reviewer, pending):
        await seed(repository, storage, pending)

        with pytest.raises(NotFoundError):
            await engine.approve(reviewer, pending.id, project_id=uuid4())

    @pytest.mark.asyncio
    async def test_unknown_visibility_is_validation_error(self, engine, repository, storage, reviewer, pending):
        await seed(repository, storage, pending)

        with pytest.raises(ValidationError, match="visibility"):
            await engine.approve(reviewer, pending.id, "everyone")

        assert repository.rows[pending.id].approval_status == ApprovalStatus.PENDING

    @pytest.mark.asyncio
    async def test_unknown_approval_level_is_validation_error(self, engine, repository, storage, reviewer, pending):
        await seed(repository, storage, pending)

        with pytest.raises(ValidationError, match="approval level"):
            await engine.approve(reviewer, pending.id, approval_level="supreme")

        assert repository.rows[pending.id].approval_status == ApprovalStatus.PENDING


class TestReject:
    """Test PENDING → REJECTED"""

    @pytest.mark.asyncio
    async def test_reject_stores_reason_and_stays_internal(self, engine, repository, storage, reviewer, pending):
        await seed(repository, storage, pending)

        rejected = await engine.reject(reviewer, pending.id, "  Wrong counterparty  ")

        assert rejected.approval_status == ApprovalStatus.REJECTED
        assert rejected.workflow_stage == WorkflowStage.REJECTED
        assert rejected.visibility_level == VisibilityLevel.INTERNAL
        assert rejected.rejection_reason == "Wrong counterparty"

    @pytest.mark.parametrize("reason", ["", "   ", None])
    @pytest.mark.asyncio
    async def test_reason_required(self, engine, repository, storage, reviewer, pending, reason):
        await seed(repository, storage, pending)

        with pytest.raises(ValidationError):
            await engine.reject(reviewer, pending.id, reason)

        assert repository.rows[pending.id].approval_status == ApprovalStatus.PENDING

    @pytest.mark.asyncio
    async def test_rejected_is_terminal(self, engine, repository, storage, reviewer, pending):
        await seed(repository, storage, pending)
        await engine.reject(reviewer, pending.id, "Illegible scan")

        with pytest.raises(InvalidTransitionError):
            await engine.approve(reviewer, pending.id)

    @pytest.mark.asyncio
    async def test_contractor_cannot_reject(self, engine, repository, storage, contractor, pending):
        await seed(repository, storage, pending)

        with pytest.raises(AuthorizationError):
            await engine.reject(contractor, pending.id, "no")


class TestReview:
    """Test UNREVIEWED → REVIEWED"""

    @pytest.mark.asyncio
    async def test_review_leaves_approval_and_visibility(self, engine, repository, storage, reviewer, unreviewed):
        await seed(repository, storage, unreviewed)

        reviewed = await engine.review(reviewer, unreviewed.id, "Looks complete")

        assert reviewed.review_status == ReviewStatus.REVIEWED
        assert reviewed.reviewed_by_user_id == reviewer.user_id
        assert reviewed.reviewed_at is not None
        assert reviewed.review_comments == "Looks complete"
        assert reviewed.approval_status == ApprovalStatus.AVAILABLE
        assert reviewed.visibility_level == VisibilityLevel.CONTRACTORS

    @pytest.mark.asyncio
    async def test_empty_comments_stored_as_none(self, engine, repository, storage, reviewer, unreviewed):
        await seed(repository, storage, unreviewed)

        reviewed = await engine.review(reviewer, unreviewed.id, "  ")

        assert reviewed.review_comments is None

    @pytest.mark.asyncio
    async def test_review_twice_is_invalid(self, engine, repository, storage, reviewer, unreviewed):
        await seed(repository, storage, unreviewed)
        await engine.review(reviewer, unreviewed.id)

        with pytest.raises(InvalidTransitionError):
            await engine.review(reviewer, unreviewed.id)

    @pytest.mark.asyncio
    async def test_document_without_review_track(self, engine, repository, storage, reviewer, pending):
        await seed(repository, storage, pending)

        with pytest.raises(InvalidTransitionError):
            await engine.review(reviewer, pending.id)

    @pytest.mark.asyncio
    async def test_member_cannot_review(self, engine, repository, storage, member, unreviewed):
        await seed(repository, storage, unreviewed)

        with pytest.raises(AuthorizationError):
            await engine.review(member, unreviewed.id)


class TestEdit:
    """Test metadata edits by owners and admins"""

    @pytest.mark.asyncio
    async def test_rename_keeps_extension(self, engine, repository, storage, member, unreviewed):
        await seed(repository, storage, unreviewed)

        edited = await engine.edit(member, unreviewed.id, name="site-survey")

        assert edited.name == "site-survey.pdf"
        assert edited.storage_path == unreviewed.storage_path

    @pytest.mark.asyncio
    async def test_type_change_keeps_status(self, engine, repository, storage, member, unreviewed):
        """Test statuses are not recomputed when the type changes"""
        await seed(repository, storage, unreviewed)

        edited = await engine.edit(member, unreviewed.id, document_type="Contract")

        assert edited.type == "Contract"
        assert edited.approval_status == ApprovalStatus.AVAILABLE
        assert edited.review_status == ReviewStatus.UNREVIEWED

    @pytest.mark.asyncio
    async def test_unknown_type_rejected(self, engine, repository, storage, member, unreviewed):
        await seed(repository, storage, unreviewed)

        with pytest.raises(ValidationError):
            await engine.edit(member, unreviewed.id, document_type="Holiday Snaps")

    @pytest.mark.asyncio
    async def test_pending_document_cannot_move_to_non_approval_type(self, engine, repository, storage, member, pending):
        """Test a pending document cannot escape approval by changing type"""
        await seed(repository, storage, pending)

        with pytest.raises(InvalidTransitionError):
            await engine.edit(member, pending.id, document_type="Report")

        row = repository.rows[pending.id]
        assert row.type == "Contract"
        assert row.approval_status == ApprovalStatus.PENDING

    @pytest.mark.asyncio
    async def test_rejected_document_cannot_move_to_non_approval_type(self, engine, repository, storage, project_id, member):
        rejected = make_document(
            project_id, member.user_id, name="quote.pdf", type="Quote",
            approval_status=ApprovalStatus.REJECTED,
        )
        await seed(repository, storage, rejected)

        with pytest.raises(InvalidTransitionError):
            await engine.edit(member, rejected.id, document_type="Other")

    @pytest.mark.asyncio
    async def test_pending_document_may_move_between_approval_types(self, engine, repository, storage, member, pending):
        await seed(repository, storage, pending)

        edited = await engine.edit(member, pending.id, document_type="Quote")

        assert edited.type == "Quote"
        assert edited.approval_status == ApprovalStatus.PENDING

    @pytest.mark.asyncio
    async def test_type_change_limited_to_uploadable_types(self, engine, repository, storage, project_id, contractor):
        """Test a contractor cannot retype their document to a staff-only type"""
        document = make_document(
            project_id, contractor.user_id, name="notes.pdf", type="Report",
        )
        await seed(repository, storage, document)

        with pytest.raises(AuthorizationError):
            await engine.edit(contractor, document.id, document_type="Contract")

        edited = await engine.edit(contractor, document.id, document_type="Quote")
        assert edited.type == "Quote"

    @pytest.mark.asyncio
    async def test_note_set_and_cleared(self, engine, repository, storage, member, unreviewed):
        await seed(repository, storage, unreviewed)

        edited = await engine.edit(member, unreviewed.id, note="Revision B")
        assert edited.note == "Revision B"

        cleared = await engine.edit(member, unreviewed.id, note="")
        assert cleared.note is None

    @pytest.mark.asyncio
    async def test_visibility_change_on_available(self, engine, repository, storage, member, unreviewed):
        await seed(repository, storage, unreviewed)

        edited = await engine.edit(member, unreviewed.id, visibility="public")

        assert edited.visibility_level == VisibilityLevel.PUBLIC

    @pytest.mark.asyncio
    async def test_pending_document_must_stay_internal(self, engine, repository, storage, member, pending):
        await seed(repository, storage, pending)

        with pytest.raises(InvalidTransitionError):
            await engine.edit(member, pending.id, visibility=VisibilityLevel.CUSTOMERS)

        assert repository.rows[pending.id].visibility_level == VisibilityLevel.INTERNAL

    @pytest.mark.asyncio
    async def test_pending_document_other_fields_editable(self, engine, repository, storage, member, pending):
        await seed(repository, storage, pending)

        edited = await engine.edit(member, pending.id, name="msa", visibility=VisibilityLevel.INTERNAL)

        assert edited.name == "msa.pdf"

    @pytest.mark.asyncio
    async def test_admin_may_edit_any(self, engine, repository, storage, admin, unreviewed):
        await seed(repository, storage, unreviewed)

        edited = await engine.edit(admin, unreviewed.id, note="checked")

        assert edited.note == "checked"

    @pytest.mark.asyncio
    async def test_reviewer_cannot_edit_others(self, engine, repository, storage, reviewer, unreviewed):
        """Test moderation rights do not include editing"""
        await seed(repository, storage, unreviewed)

        with pytest.raises(AuthorizationError):
            await engine.edit(reviewer, unreviewed.id, note="hijack")

    @pytest.mark.asyncio
    async def test_invalid_name(self, engine, repository, storage, member, unreviewed):
        await seed(repository, storage, unreviewed)

        with pytest.raises(ValidationError):
            await engine.edit(member, unreviewed.id, name="../escape")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", ["   ", ".pdf", ""])
    async def test_blank_name_rejected(self, engine, repository, storage, member, unreviewed, name):
        """Test a rename must leave a non-empty base name"""
        await seed(repository, storage, unreviewed)

        with pytest.raises(ValidationError):
            await engine.edit(member, unreviewed.id, name=name)

        assert repository.rows[unreviewed.id].name == "report.pdf"

    @pytest.mark.asyncio
    async def test_unknown_visibility_is_validation_error(self, engine, repository, storage, member, unreviewed):
        await seed(repository, storage, unreviewed)

        with pytest.raises(ValidationError):
            await engine.edit(member, unreviewed.id, visibility="everyone")


class TestDelete:
    """Test row-then-blob deletion"""

    @pytest.mark.asyncio
    async def test_owner_deletes_row_and_blob(self, engine, repository, storage, member, unreviewed):
        await seed(repository, storage, unreviewed)

        await engine.delete(member, unreviewed.id)

        assert unreviewed.id not in repository.rows
        assert unreviewed.storage_path not in storage.blobs

    @pytest.mark.asyncio
    async def test_other_member_cannot_delete(self, engine, repository, storage, other_member, unreviewed):
        await seed(repository, storage, unreviewed)

        with pytest.raises(AuthorizationError):
            await engine.delete(other_member, unreviewed.id)

        assert unreviewed.id in repository.rows
        assert unreviewed.storage_path in storage.blobs

    @pytest.mark.asyncio
    async def test_blob_failure_logs_orphan(self, engine, repository, storage, admin, unreviewed, caplog):
        await seed(repository, storage, unreviewed)
        storage.fail_delete = True
        caplog.set_level(logging.WARNING)

        with pytest.raises(StorageError):
            await engine.delete(admin, unreviewed.id)

        assert unreviewed.id not in repository.rows
        orphans = [r for r in caplog.records if getattr(r, "event", None) == "orphaned_blob"]
        assert [r.storage_path for r in orphans] == [unreviewed.storage_path]

    @pytest.mark.asyncio
    async def test_delete_missing(self, engine, admin):
        with pytest.raises(NotFoundError):
            await engine.delete(admin, uuid4())


class TestSignedUrls:
    """Test per-request signed URLs and their lifetimes"""

    @pytest.mark.asyncio
    async def test_download_and_preview_ttls(self, engine, repository, storage, member, unreviewed):
        await seed(repository, storage, unreviewed)

        download = await engine.download_url(member, unreviewed.id)
        preview = await engine.preview_url(member, unreviewed.id)

        assert download.endswith("expires=300")
        assert preview.endswith("expires=3600")

    @pytest.mark.asyncio
    async def test_urls_issued_per_request(self, engine, repository, storage, member, unreviewed):
        await seed(repository, storage, unreviewed)

        await engine.download_url(member, unreviewed.id)
        await engine.download_url(member, unreviewed.id)

        assert len(storage.signed) == 2

    @pytest.mark.asyncio
    async def test_contractor_sees_shared_document(self, engine, repository, storage, contractor, unreviewed):
        await seed(repository, storage, unreviewed)

        url = await engine.download_url(contractor, unreviewed.id)

        assert unreviewed.storage_path in url

    @pytest.mark.asyncio
    async def test_customer_denied_unshared_document(self, engine, repository, storage, customer, unreviewed):
        await seed(repository, storage, unreviewed)

        with pytest.raises(AuthorizationError):
            await engine.preview_url(customer, unreviewed.id)

        assert storage.signed == []

    @pytest.mark.asyncio
    async def test_missing_blob_surfaces_storage_error(self, engine, repository, storage, member, unreviewed):
        await seed(repository, storage, unreviewed)
        storage.blobs.clear()

        with pytest.raises(StorageError):
            await engine.download_url(member, unreviewed.id)
