"""Tests for admin and service health endpoints."""

import pytest
from fastapi.testclient import TestClient


@pytest.mark.integration
class TestIntegrityReport:
    def test_healthy_ledger(self, client: TestClient, make_member, make_token):
        make_member(folder_id=1, name="Ana", email="ana@example.com")
        make_token(status="accepted")
        make_token()

        response = client.get("/v1/admin/integrity")

        assert response.status_code == 200
        report = response.json()
        assert report["healthy"] is True
        assert report["issues"] == []
        assert report["totals"] == {"members": 1, "tokens": 2, "pending": 1, "accepted": 1}

    def test_reports_problems_without_fixing_them(
        self, client: TestClient, make_member, make_token
    ):
        make_member(folder_id=1, name="Kim", email="kim-at-example")
        make_member(folder_id=1, name="Kim")
        token = make_token(receiver_name="   ")

        report = client.get("/v1/admin/integrity").json()

        assert report["healthy"] is False
        assert report["error_count"] == 2
        assert report["warning_count"] == 2
        assert sorted(issue["type"] for issue in report["issues"]) == [
            "duplicate_member_name",
            "empty_receiver_name",
            "invalid_member_email",
            "no_receiver_info",
        ]
        assert client.get(f"/v1/tokens/{token.id}").json()["receiver_name"] == "   "


@pytest.mark.integration
class TestServiceEndpoints:
    def test_health(self, client: TestClient):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["service"] == "value-ledger"

    def test_ready(self, client: TestClient):
        response = client.get("/ready")
        assert response.status_code == 200
        assert response.json()["checks"] == {"database": True, "config": True}

    def test_unknown_route_is_problem_details(self, client: TestClient):
        response = client.get("/v1/nothing-here")
        assert response.status_code == 404
        assert response.headers["content-type"].startswith("application/problem+json")
