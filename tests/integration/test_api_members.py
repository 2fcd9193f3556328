"""Tests for the batch roster API endpoints."""

import pytest
from fastapi.testclient import TestClient


@pytest.mark.integration
class TestRosterAPI:
    def test_add_and_list_members(self, client: TestClient):
        created = client.post(
            "/v1/batches/4/members", json={"name": " Kim ", "email": "KIM@example.com"}
        )
        client.post("/v1/batches/4/members", json={"name": "Lee"})
        client.post("/v1/batches/5/members", json={"name": "Elsewhere"})

        assert created.status_code == 201
        assert created.json()["name"] == "Kim"
        assert created.json()["email"] == "kim@example.com"
        assert created.json()["user_id"] is None

        response = client.get("/v1/batches/4/members")
        assert response.status_code == 200
        assert [m["name"] for m in response.json()] == ["Kim", "Lee"]

    @pytest.mark.parametrize(
        "payload", [{"name": ""}, {"name": "Kim", "email": "nope"}, {}]
    )
    def test_add_member_rejected(self, client: TestClient, payload):
        assert client.post("/v1/batches/4/members", json=payload).status_code == 400

    def test_rename_member_cascades_to_tokens(self, client: TestClient, make_member, make_token):
        member = make_member(folder_id=1, name="Kim", email="kim@example.com", user_id="user-kim")
        by_reference = make_token(receiver_name="Kim", to_user_id=str(member.id))
        by_email = make_token(receiver_name="Kim", receiver_email="kim@example.com")
        by_account = make_token(receiver_name="Kim", to_user_id="user-kim")
        legacy = make_token(receiver_name="Kim", to_user_id="user-kim", batch_id=None)
        other_batch = make_token(receiver_name="Kim", to_user_id="user-kim", batch_id=2)
        other_kim = make_token(receiver_name="Kim", to_user_id="Kim")

        response = client.put(f"/v1/batch-members/{member.id}", json={"name": "Kimberly"})

        assert response.status_code == 200
        assert response.json()["name"] == "Kimberly"
        assert response.json()["email"] == "kim@example.com"

        def name_of(token):
            return client.get(f"/v1/tokens/{token.id}").json()["receiver_name"]

        for token in (by_reference, by_email, by_account, legacy):
            assert name_of(token) == "Kimberly"
        assert name_of(other_batch) == "Kim"
        assert name_of(other_kim) == "Kim"

    def test_update_email_only(self, client: TestClient, make_member, make_token):
        member = make_member(folder_id=1, name="Kim")
        token = make_token(receiver_name="Kim", to_user_id=str(member.id))

        response = client.put(f"/v1/batch-members/{member.id}", json={"email": "kim@example.com"})

        assert response.status_code == 200
        assert response.json()["email"] == "kim@example.com"
        assert client.get(f"/v1/tokens/{token.id}").json()["receiver_name"] == "Kim"

    def test_rename_and_new_email_in_one_request(
        self, client: TestClient, make_member, make_token
    ):
        member = make_member(folder_id=1, name="Kim", email="kim@old.com")
        sent_to_old = make_token(receiver_name="Kim", receiver_email="kim@old.com")

        response = client.put(
            f"/v1/batch-members/{member.id}",
            json={"name": "Kimberly", "email": "kim@new.com"},
        )

        assert response.status_code == 200
        assert response.json()["email"] == "kim@new.com"
        assert client.get(f"/v1/tokens/{sent_to_old.id}").json()["receiver_name"] == "Kimberly"

    def test_empty_email_clears_it(self, client: TestClient, make_member):
        member = make_member(folder_id=1, name="Kim", email="kim@example.com")

        response = client.put(f"/v1/batch-members/{member.id}", json={"email": ""})

        assert response.status_code == 200
        assert response.json()["email"] is None
        assert response.json()["name"] == "Kim"

    def test_update_unknown_member(self, client: TestClient):
        response = client.put("/v1/batch-members/404", json={"name": "Nobody"})
        assert response.status_code == 404
        assert response.json()["member_id"] == 404

    def test_delete_member_keeps_tokens(self, client: TestClient, make_member, make_token):
        member = make_member(folder_id=1, name="Kim")
        token = make_token(receiver_name="Kim", to_user_id=str(member.id))

        assert client.delete(f"/v1/batch-members/{member.id}").status_code == 204
        assert client.get("/v1/batches/1/members").json() == []
        assert client.get(f"/v1/tokens/{token.id}").status_code == 200
        assert client.delete(f"/v1/batch-members/{member.id}").status_code == 404


@pytest.mark.integration
class TestClaimMember:
    def test_claim_links_account(self, auth_client: TestClient, make_member, identity):
        member = make_member(folder_id=1, name="Ana", email=identity.email)

        response = auth_client.post(f"/v1/batch-members/{member.id}/claim")

        assert response.status_code == 200
        assert response.json()["user_id"] == identity.id
        assert response.json()["joined_at"] is not None

    def test_claim_other_email_forbidden(self, auth_client: TestClient, make_member):
        member = make_member(folder_id=1, name="Kim", email="kim@example.com")
        assert auth_client.post(f"/v1/batch-members/{member.id}/claim").status_code == 403

    def test_claim_linked_to_someone_else(self, auth_client: TestClient, make_member, identity):
        member = make_member(folder_id=1, name="Ana", email=identity.email, user_id="user-other")

        response = auth_client.post(f"/v1/batch-members/{member.id}/claim")

        assert response.status_code == 409
        assert response.json()["title"] == "Conflict"

    def test_claim_requires_auth(self, client: TestClient, make_member):
        member = make_member(folder_id=1, name="Ana", email="ana@example.com")
        assert client.post(f"/v1/batch-members/{member.id}/claim").status_code == 401
