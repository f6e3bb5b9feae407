"""Tests for the version history endpoints."""

from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from app.api.v1.endpoints.consultations import get_consultation_service, get_user_service
from app.core.exceptions import ConsultationStateError, VersionNotFoundError
from app.main import app

BASE_URL = "/api/v1/consultations"


@pytest.fixture
def mock_consultation_service():
    return AsyncMock()


@pytest.fixture(autouse=True)
def override_services(mock_consultation_service, mock_user_service):
    app.dependency_overrides[get_consultation_service] = lambda: mock_consultation_service
    app.dependency_overrides[get_user_service] = lambda: mock_user_service


class TestVersionEndpoints:
    def test_list_versions(
        self,
        test_client: TestClient,
        authenticated,
        auth_headers,
        mock_consultation_service,
        version_factory,
    ) -> None:
        consultation_id = uuid4()
        mock_consultation_service.get_version_history.return_value = {
            "total": 2,
            "versions": [
                version_factory(consultation_id=consultation_id, version_number=2),
                version_factory(consultation_id=consultation_id, version_number=1),
            ],
            "page": 1,
            "limit": 10,
            "total_pages": 1,
        }

        response = test_client.get(f"{BASE_URL}/{consultation_id}/versions", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["total"] == 2
        assert [v["version_number"] for v in data["versions"]] == [2, 1]

    def test_get_version(
        self,
        test_client: TestClient,
        authenticated,
        auth_headers,
        mock_consultation_service,
        version_factory,
    ) -> None:
        version = version_factory(version_number=3, change_summary="Consultation completed")
        mock_consultation_service.get_version.return_value = version

        response = test_client.get(
            f"{BASE_URL}/{version.consultation_id}/versions/3", headers=auth_headers
        )

        assert response.status_code == 200
        assert response.json()["data"]["change_summary"] == "Consultation completed"

    def test_get_missing_version(
        self, test_client: TestClient, authenticated, auth_headers, mock_consultation_service
    ) -> None:
        mock_consultation_service.get_version.side_effect = VersionNotFoundError("Version 9 not found")

        response = test_client.get(f"{BASE_URL}/{uuid4()}/versions/9", headers=auth_headers)

        assert response.status_code == 404

    def test_compare(
        self, test_client: TestClient, authenticated, auth_headers, mock_consultation_service
    ) -> None:
        consultation_id = uuid4()
        mock_consultation_service.compare_versions.return_value = {
            "consultation_id": consultation_id,
            "from_version": 1,
            "to_version": 2,
            "changed_fields": ["status"],
            "changes": {"status": {"from": "draft", "to": "completed"}},
        }

        response = test_client.get(
            f"{BASE_URL}/{consultation_id}/versions/compare",
            params={"v1": 1, "v2": 2},
            headers=auth_headers,
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["changes"]["status"] == {"from": "draft", "to": "completed"}
        mock_consultation_service.compare_versions.assert_awaited_once()

    def test_compare_requires_both_versions(
        self, test_client: TestClient, authenticated, auth_headers
    ) -> None:
        response = test_client.get(
            f"{BASE_URL}/{uuid4()}/versions/compare", params={"v1": 1}, headers=auth_headers
        )

        assert response.status_code == 422

    def test_rollback(
        self,
        test_client: TestClient,
        authenticated,
        auth_headers,
        mock_consultation_service,
        consultation_factory,
    ) -> None:
        consultation = consultation_factory(contact_info={"business_name": "Original"})
        mock_consultation_service.rollback_to_version.return_value = (consultation, ["contact_info"])

        response = test_client.post(
            f"{BASE_URL}/{consultation.id}/versions/1/rollback", headers=auth_headers
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Consultation rolled back to version 1"

    def test_rollback_archived(
        self, test_client: TestClient, authenticated, auth_headers, mock_consultation_service
    ) -> None:
        mock_consultation_service.rollback_to_version.side_effect = ConsultationStateError(
            "restore the consultation before rolling back"
        )

        response = test_client.post(f"{BASE_URL}/{uuid4()}/versions/1/rollback", headers=auth_headers)

        assert response.status_code == 409
