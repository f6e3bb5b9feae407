"""Tests for the draft endpoints."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from app.api.v1.endpoints.consultations import get_consultation_service, get_user_service
from app.core.exceptions import ConsultationStateError, DraftNotFoundError
from app.main import app

BASE_URL = "/api/v1/consultations"


@pytest.fixture
def mock_consultation_service():
    return AsyncMock()


@pytest.fixture(autouse=True)
def override_services(mock_consultation_service, mock_user_service):
    app.dependency_overrides[get_consultation_service] = lambda: mock_consultation_service
    app.dependency_overrides[get_user_service] = lambda: mock_user_service


class TestDraftEndpoints:
    def test_autosave_creates_draft(
        self,
        test_client: TestClient,
        authenticated,
        auth_headers,
        mock_consultation_service,
        draft_factory,
        user_id,
    ) -> None:
        draft = draft_factory(user_id=user_id, contact_info={"business_name": "Acme"})
        mock_consultation_service.save_draft.return_value = draft

        response = test_client.post(
            f"{BASE_URL}/{draft.consultation_id}/drafts",
            json={"contact_info": {"business_name": "Acme"}},
            headers=auth_headers,
        )

        assert response.status_code == 201
        assert response.json()["data"]["draft_notes"] == "Auto-saved at 10:15:00"
        mock_consultation_service.save_draft.assert_awaited_once_with(
            draft.consultation_id,
            user_id,
            {"contact_info": {"business_name": "Acme"}},
            draft_notes=None,
            auto_saved=True,
        )

    def test_manual_save(
        self,
        test_client: TestClient,
        authenticated,
        auth_headers,
        mock_consultation_service,
        draft_factory,
    ) -> None:
        draft = draft_factory(auto_saved=False, draft_notes="before the call")
        mock_consultation_service.save_draft.return_value = draft

        response = test_client.put(
            f"{BASE_URL}/{draft.consultation_id}/drafts",
            json={"auto_saved": False, "draft_notes": "before the call"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        kwargs = mock_consultation_service.save_draft.call_args.kwargs
        assert kwargs == {"draft_notes": "before the call", "auto_saved": False}

    def test_save_on_archived(
        self, test_client: TestClient, authenticated, auth_headers, mock_consultation_service
    ) -> None:
        mock_consultation_service.save_draft.side_effect = ConsultationStateError(
            "cannot save a draft for an archived consultation"
        )

        response = test_client.put(f"{BASE_URL}/{uuid4()}/drafts", json={}, headers=auth_headers)

        assert response.status_code == 409

    def test_get_draft(
        self,
        test_client: TestClient,
        authenticated,
        auth_headers,
        mock_consultation_service,
        draft_factory,
    ) -> None:
        draft = draft_factory(pain_points={"urgency_level": "high"})
        mock_consultation_service.get_draft.return_value = draft

        response = test_client.get(f"{BASE_URL}/{draft.consultation_id}/drafts", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["data"]["pain_points"] == {"urgency_level": "high"}

    def test_get_missing_draft(
        self, test_client: TestClient, authenticated, auth_headers, mock_consultation_service
    ) -> None:
        mock_consultation_service.get_draft.side_effect = DraftNotFoundError("No draft found")

        response = test_client.get(f"{BASE_URL}/{uuid4()}/drafts", headers=auth_headers)

        assert response.status_code == 404

    def test_delete_draft(
        self, test_client: TestClient, authenticated, auth_headers, mock_consultation_service
    ) -> None:
        response = test_client.delete(f"{BASE_URL}/{uuid4()}/drafts", headers=auth_headers)

        assert response.status_code == 204
        mock_consultation_service.delete_draft.assert_awaited_once()

    def test_promote(
        self,
        test_client: TestClient,
        authenticated,
        auth_headers,
        mock_consultation_service,
        consultation_factory,
    ) -> None:
        consultation = consultation_factory(contact_info={"business_name": "Acme"})
        mock_consultation_service.promote_draft.return_value = (consultation, ["contact_info"])

        response = test_client.post(
            f"{BASE_URL}/{consultation.id}/drafts/promote", headers=auth_headers
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Draft promoted successfully"

    def test_conflict_check(
        self, test_client: TestClient, authenticated, auth_headers, mock_consultation_service
    ) -> None:
        updated_at = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
        mock_consultation_service.has_conflicting_draft.return_value = (True, updated_at)

        response = test_client.get(
            f"{BASE_URL}/{uuid4()}/drafts/conflict",
            params={"since": "2026-03-01T11:00:00Z"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["has_conflict"] is True
        assert data["draft_updated_at"] == "2026-03-01T12:00:00Z"

    def test_conflict_check_requires_since(
        self, test_client: TestClient, authenticated, auth_headers
    ) -> None:
        response = test_client.get(f"{BASE_URL}/{uuid4()}/drafts/conflict", headers=auth_headers)

        assert response.status_code == 422
