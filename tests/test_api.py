"""
HTTP-level tests for the public link endpoints.

These tests cover:
- Request validation answers 400 VALIDATION_FAILED with per-field errors
- Service errors map to their status code and {error, message} detail
- Health endpoints

Services are patched and the lifespan is not run; no database or Redis is
needed.
"""

from collections.abc import Generator
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from zorvixe.core import rate_limit
from zorvixe.core.database import get_db
from zorvixe.core.storage import DocumentStorage, get_document_storage
from zorvixe.main import app
from zorvixe.modules.candidates.service import ONBOARDING_WORKFLOW
from zorvixe.modules.links.exceptions import AlreadyCompletedError, InvalidOrExpiredLinkError


@pytest.fixture
def client(tmp_path) -> Generator[TestClient, None, None]:
    """TestClient with the database and document storage overridden."""

    async def override_get_db():
        yield AsyncMock()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_document_storage] = lambda: DocumentStorage(tmp_path)
    rate_limit._memory_store.clear()

    yield TestClient(app)

    app.dependency_overrides.clear()


class TestValidationErrors:
    """Tests for the request validation handler."""

    def test_payment_submit_without_receipt(self, client):
        response = client.post("/api/payment/submit", json={"token": "abc"})

        assert response.status_code == 400
        detail = response.json()["detail"]
        assert detail["error"] == "VALIDATION_FAILED"
        assert "receipt_url" in detail["errors"]

    def test_payment_submit_with_non_http_receipt(self, client):
        response = client.post(
            "/api/payment/submit", json={"token": "abc", "receipt_url": "ftp://files/r.pdf"}
        )

        assert response.status_code == 400
        assert "receipt_url" in response.json()["detail"]["errors"]


class TestServiceErrors:
    """Tests for service error mapping."""

    def test_unknown_payment_token(self, client):
        with patch(
            "zorvixe.modules.clients.service.get_client_details",
            AsyncMock(side_effect=InvalidOrExpiredLinkError()),
        ):
            response = client.get("/api/client-details/nope")

        assert response.status_code == 404
        assert response.json()["detail"] == {
            "error": "INVALID_OR_EXPIRED_LINK",
            "message": "Invalid or expired link",
        }

    def test_second_upload_conflicts(self, client):
        with patch(
            "zorvixe.modules.candidates.service.upload_document",
            AsyncMock(side_effect=AlreadyCompletedError(ONBOARDING_WORKFLOW.already_completed_message)),
        ):
            response = client.post(
                "/api/candidate/upload/tok",
                files={"certificate": ("certs.pdf", b"%PDF-1.7", "application/pdf")},
            )

        assert response.status_code == 409
        assert response.json()["detail"]["error"] == "ALREADY_COMPLETED"

    def test_unexpected_error_is_opaque(self, client):
        with patch(
            "zorvixe.modules.candidates.service.get_candidate_details",
            AsyncMock(side_effect=RuntimeError("secret internals")),
        ):
            response = client.get("/api/candidate-details/tok")

        assert response.status_code == 500
        assert response.json()["detail"]["error"] == "INTERNAL_ERROR"
        assert "secret" not in response.text

    def test_rate_limited_after_five_uploads(self, client):
        with patch(
            "zorvixe.modules.candidates.service.upload_document",
            AsyncMock(side_effect=InvalidOrExpiredLinkError()),
        ):
            statuses = [client.post("/api/candidate/upload/tok").status_code for _ in range(6)]

        assert statuses == [404] * 5 + [429]


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}
