"""
Unit tests for candidates service layer.

These tests cover:
- Candidate creation (duplicate emails)
- Resolving an onboarding token
- Document upload (type and size limits, storage cleanup)
- Document download lookup
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError

from zorvixe.modules.candidates.models import CandidateStatus, UploadStatus
from zorvixe.modules.candidates.schemas import CandidateCreate
from zorvixe.modules.candidates.service import (
    ONBOARDING_WORKFLOW,
    DuplicateCandidateError,
    FileTooLargeError,
    UnsupportedMediaTypeError,
    UploadNotFoundError,
    create_candidate,
    download_filename,
    get_candidate_details,
    get_document,
    update_candidate_status,
    upload_document,
)
from zorvixe.modules.links.exceptions import (
    AlreadyCompletedError,
    InvalidOrExpiredLinkError,
    StorageFailedError,
    SubjectNotFoundError,
    ValidationFailedError,
)
from zorvixe.modules.links.service import LinkResolution

PDF_BYTES = b"%PDF-1.7\n" + b"0" * 4096 + b"\n%%EOF"


def _stored_files(storage):
    return [p for p in storage.root.iterdir() if p.is_file()] if storage.root.exists() else []


def _staged_files(storage):
    return list(storage.staging_dir.glob("*")) if storage.staging_dir.exists() else []


class TestDownloadFilename:
    """Tests for the download attachment name."""

    def test_uses_candidate_name(self):
        assert download_filename("Asha Rao") == "Asha Rao-certificates.pdf"

    def test_strips_header_breaking_characters(self):
        assert download_filename('Asha "R"\r\n') == "Asha R-certificates.pdf"

    def test_empty_name(self):
        assert download_filename("  ") == "candidate-certificates.pdf"


@pytest.mark.asyncio
class TestCreateCandidate:
    """Tests for create_candidate."""

    @pytest.fixture
    def candidate_data(self):
        return CandidateCreate(
            name="Asha Rao",
            email="asha@example.com",
            phone="9123456780",
            position="Backend Developer",
        )

    async def test_create_success(self, mock_db, candidate_data, sample_candidate):
        with patch("zorvixe.modules.candidates.service.repository") as mock_repo:
            mock_repo.get_by_email = AsyncMock(return_value=None)
            mock_repo.create_candidate = AsyncMock(return_value=sample_candidate)

            result = await create_candidate(mock_db, candidate_data)

        assert result.candidate_code == "CAN-104233-AB12"
        assert result.status == CandidateStatus.PENDING

    async def test_duplicate_email(self, mock_db, candidate_data, sample_candidate):
        with patch("zorvixe.modules.candidates.service.repository") as mock_repo:
            mock_repo.get_by_email = AsyncMock(return_value=sample_candidate)
            mock_repo.create_candidate = AsyncMock()

            with pytest.raises(DuplicateCandidateError) as exc_info:
                await create_candidate(mock_db, candidate_data)

        assert exc_info.value.status_code == 409
        mock_repo.create_candidate.assert_not_called()

    async def test_duplicate_email_race(self, mock_db, candidate_data, sample_candidate):
        with patch("zorvixe.modules.candidates.service.repository") as mock_repo:
            mock_repo.get_by_email = AsyncMock(side_effect=[None, sample_candidate])
            mock_repo.create_candidate = AsyncMock(
                side_effect=IntegrityError("INSERT", {}, Exception("duplicate key value"))
            )

            with pytest.raises(DuplicateCandidateError):
                await create_candidate(mock_db, candidate_data)

        mock_db.rollback.assert_called_once()


@pytest.mark.asyncio
class TestUpdateCandidateStatus:
    """Tests for update_candidate_status."""

    async def test_unknown_candidate(self, mock_db):
        with patch("zorvixe.modules.candidates.service.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=None)

            with pytest.raises(SubjectNotFoundError) as exc_info:
                await update_candidate_status(mock_db, uuid4(), CandidateStatus.APPROVED)

        assert exc_info.value.error_code == "CANDIDATE_NOT_FOUND"


@pytest.mark.asyncio
class TestGetCandidateDetails:
    """Tests for get_candidate_details."""

    async def test_not_yet_uploaded(self, mock_db, sample_candidate, sample_link, now):
        resolution = LinkResolution(link=sample_link, subject=sample_candidate, outcome=None)

        with patch("zorvixe.modules.candidates.service.links") as mock_links:
            mock_links.resolve_link = AsyncMock(return_value=resolution)

            result = await get_candidate_details(mock_db, sample_link.token, now=now)

        assert result.has_uploaded is False
        assert result.upload is None
        assert result.candidate.position == "Backend Developer"
        assert result.link_id == sample_link.id

    async def test_invalid_token(self, mock_db, now):
        with patch("zorvixe.modules.candidates.service.links") as mock_links:
            mock_links.resolve_link = AsyncMock(side_effect=InvalidOrExpiredLinkError())

            with pytest.raises(InvalidOrExpiredLinkError):
                await get_candidate_details(mock_db, "unknown", now=now)


@pytest.mark.asyncio
class TestUploadDocument:
    """Tests for upload_document."""

    @pytest.fixture
    def links_ok(self, sample_candidate, sample_link):
        """Link engine that accepts the token and runs the completion callbacks."""

        async def fake_complete(db, workflow, token, build_outcome, *, before_commit, now):
            record = build_outcome(sample_candidate, sample_link, now)
            await before_commit(record)
            return record

        with patch("zorvixe.modules.candidates.service.links") as mock_links:
            mock_links.resolve_link = AsyncMock(
                return_value=LinkResolution(link=sample_link, subject=sample_candidate, outcome=None)
            )
            mock_links.complete_link = AsyncMock(side_effect=fake_complete)
            yield mock_links

    async def test_upload_success(self, mock_db, storage, make_upload, links_ok, sample_candidate, now):
        result = await upload_document(mock_db, storage, "token", make_upload(), now=now)

        assert result.success is True
        assert result.upload.file_name == "certificates.pdf"
        assert result.upload.file_size == len(PDF_BYTES)
        assert result.upload.content_type == "application/pdf"
        assert result.upload.status == UploadStatus.UPLOADED
        assert links_ok.complete_link.call_args.args[1] is ONBOARDING_WORKFLOW

        stored = _stored_files(storage)
        assert len(stored) == 1
        assert stored[0].read_bytes() == PDF_BYTES
        assert stored[0].name.startswith("candidate-")
        assert _staged_files(storage) == []

    async def test_missing_file(self, mock_db, storage, links_ok, now):
        with pytest.raises(ValidationFailedError) as exc_info:
            await upload_document(mock_db, storage, "token", None, now=now)

        assert "certificate" in exc_info.value.errors
        links_ok.resolve_link.assert_not_called()

    async def test_rejects_non_pdf(self, mock_db, storage, make_upload, links_ok, now):
        upload = make_upload(b"\x89PNG....", filename="scan.png", content_type="image/png")

        with pytest.raises(UnsupportedMediaTypeError) as exc_info:
            await upload_document(mock_db, storage, "token", upload, now=now)

        assert exc_info.value.status_code == 415
        links_ok.complete_link.assert_not_called()
        assert _stored_files(storage) == []

    async def test_rejects_oversized_file(self, mock_db, storage, make_upload, links_ok, now):
        with pytest.raises(FileTooLargeError) as exc_info:
            await upload_document(
                mock_db, storage, "token", make_upload(), max_bytes=1024, now=now
            )

        assert exc_info.value.status_code == 413
        links_ok.complete_link.assert_not_called()
        assert _staged_files(storage) == []
        assert _stored_files(storage) == []

    async def test_invalid_token_writes_nothing(self, mock_db, storage, make_upload, now):
        with patch("zorvixe.modules.candidates.service.links") as mock_links:
            mock_links.resolve_link = AsyncMock(side_effect=InvalidOrExpiredLinkError())

            with pytest.raises(InvalidOrExpiredLinkError):
                await upload_document(mock_db, storage, "token", make_upload(), now=now)

        assert not storage.root.exists()

    async def test_already_uploaded(self, mock_db, storage, make_upload, sample_candidate, sample_link, now):
        sample_link.completed = True
        resolution = LinkResolution(
            link=sample_link, subject=sample_candidate, outcome=SimpleNamespace(id=uuid4())
        )

        with patch("zorvixe.modules.candidates.service.links") as mock_links:
            mock_links.resolve_link = AsyncMock(return_value=resolution)
            mock_links.complete_link = AsyncMock()

            with pytest.raises(AlreadyCompletedError):
                await upload_document(mock_db, storage, "token", make_upload(), now=now)

        mock_links.complete_link.assert_not_called()

    async def test_failed_commit_removes_promoted_file(
        self, mock_db, storage, make_upload, sample_candidate, sample_link, now
    ):
        async def promote_then_fail(db, workflow, token, build_outcome, *, before_commit, now):
            await before_commit(build_outcome(sample_candidate, sample_link, now))
            raise StorageFailedError()

        with patch("zorvixe.modules.candidates.service.links") as mock_links:
            mock_links.resolve_link = AsyncMock(
                return_value=LinkResolution(link=sample_link, subject=sample_candidate, outcome=None)
            )
            mock_links.complete_link = AsyncMock(side_effect=promote_then_fail)

            with pytest.raises(StorageFailedError):
                await upload_document(mock_db, storage, "token", make_upload(), now=now)

        assert _stored_files(storage) == []
        assert _staged_files(storage) == []

    async def test_lost_race_keeps_no_bytes(
        self, mock_db, storage, make_upload, sample_candidate, sample_link, now
    ):
        with patch("zorvixe.modules.candidates.service.links") as mock_links:
            mock_links.resolve_link = AsyncMock(
                return_value=LinkResolution(link=sample_link, subject=sample_candidate, outcome=None)
            )
            mock_links.complete_link = AsyncMock(
                side_effect=AlreadyCompletedError(ONBOARDING_WORKFLOW.already_completed_message)
            )

            with pytest.raises(AlreadyCompletedError):
                await upload_document(mock_db, storage, "token", make_upload(), now=now)

        assert _stored_files(storage) == []
        assert _staged_files(storage) == []


@pytest.mark.asyncio
class TestGetDocument:
    """Tests for get_document."""

    async def test_no_upload(self, mock_db, storage):
        with patch("zorvixe.modules.candidates.service.repository") as mock_repo:
            mock_repo.get_upload_with_candidate = AsyncMock(return_value=None)

            with pytest.raises(UploadNotFoundError) as exc_info:
                await get_document(mock_db, storage, uuid4())

        assert exc_info.value.status_code == 404

    async def test_missing_file(self, mock_db, storage, sample_candidate):
        storage.root.mkdir(parents=True)
        upload = SimpleNamespace(file_path="candidate-1-2.pdf", content_type="application/pdf")

        with patch("zorvixe.modules.candidates.service.repository") as mock_repo:
            mock_repo.get_upload_with_candidate = AsyncMock(return_value=(upload, sample_candidate))

            with pytest.raises(UploadNotFoundError) as exc_info:
                await get_document(mock_db, storage, sample_candidate.id)

        assert exc_info.value.message == "File not found on server"

    async def test_found(self, mock_db, storage, sample_candidate):
        storage.root.mkdir(parents=True)
        (storage.root / "candidate-1-2.pdf").write_bytes(PDF_BYTES)
        upload = SimpleNamespace(file_path="candidate-1-2.pdf", content_type="application/pdf")

        with patch("zorvixe.modules.candidates.service.repository") as mock_repo:
            mock_repo.get_upload_with_candidate = AsyncMock(return_value=(upload, sample_candidate))

            document = await get_document(mock_db, storage, sample_candidate.id)

        assert document.path == storage.root / "candidate-1-2.pdf"
        assert document.filename == "Asha Rao-certificates.pdf"
        assert document.content_type == "application/pdf"
