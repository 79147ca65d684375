"""
HTTP tests for the v1 API.

Drive the FastAPI application through ``TestClient`` with tokens for
three identities, mirroring how a browser or the ``ContactsAPI`` client
talks to the server.
"""

from contacts_api.app.core.security import create_access_token

A, B, C = "identity-a", "identity-b", "identity-c"
BOB = {"name": "Bob", "email": "bob@x.com", "phone": "555-1000"}


class TestAuthentication:
    def test_missing_token(self, client):
        response = client.get("/api/v1/contacts/")
        assert response.status_code == 401

    def test_garbage_token(self, client):
        response = client.get("/api/v1/contacts/", headers={"Authorization": "Bearer not.a.token"})
        assert response.status_code == 401

    def test_token_signed_with_other_key(self, client):
        token = create_access_token(A, secret_key="someone-else")
        response = client.get("/api/v1/account/whoami", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    def test_whoami(self, client, auth):
        response = client.get("/api/v1/account/whoami", headers=auth(A))
        assert response.status_code == 200
        assert response.json() == {"identity": A}


class TestAccountEndpoints:
    def test_create_and_read_account(self, client, auth):
        response = client.post("/api/v1/account/", json={"username": "alice"}, headers=auth(A))
        assert response.status_code == 201
        assert response.json() == {
            "identity": A,
            "username": "alice",
            "owned_contact_ids": [],
            "shared_contact_ids": [],
        }
        response = client.get("/api/v1/account/", headers=auth(A))
        assert response.json()["username"] == "alice"

    def test_conflicts(self, client, auth):
        client.post("/api/v1/account/", json={"username": "alice"}, headers=auth(A))

        response = client.post("/api/v1/account/", json={"username": "alice"}, headers=auth(B))
        assert response.status_code == 409
        assert response.json()["code"] == "username_taken"

        response = client.post("/api/v1/account/", json={"username": "other"}, headers=auth(A))
        assert response.status_code == 409
        assert response.json()["code"] == "already_has_account"

    def test_blank_username_rejected(self, client, auth):
        response = client.post("/api/v1/account/", json={"username": "   "}, headers=auth(A))
        assert response.status_code == 422

    def test_slash_in_username_rejected(self, client, auth):
        response = client.post("/api/v1/account/", json={"username": "c/d"}, headers=auth(A))
        assert response.status_code == 422
        assert client.get("/api/v1/account/", headers=auth(A)).status_code == 401

    def test_no_account(self, client, auth):
        response = client.get("/api/v1/account/", headers=auth(A))
        assert response.status_code == 401
        assert response.json()["code"] == "no_account"


class TestContactEndpoints:
    def _register(self, client, auth):
        client.post("/api/v1/account/", json={"username": "alice"}, headers=auth(A))
        client.post("/api/v1/account/", json={"username": "bob"}, headers=auth(B))
        client.post("/api/v1/account/", json={"username": "carol"}, headers=auth(C))

    def test_create_and_list(self, client, auth):
        self._register(client, auth)
        response = client.post("/api/v1/contacts/", json=BOB, headers=auth(A))
        assert response.status_code == 201
        assert response.json() == {"id": 0, **BOB}

        response = client.get("/api/v1/contacts/", headers=auth(A))
        assert response.json() == [{"id": 0, **BOB}]

    def test_create_without_account(self, client, auth):
        response = client.post("/api/v1/contacts/", json=BOB, headers=auth(B))
        assert response.status_code == 401
        assert response.json()["code"] == "no_account"

    def test_empty_fields_rejected(self, client, auth):
        self._register(client, auth)
        response = client.post("/api/v1/contacts/", json={**BOB, "email": ""}, headers=auth(A))
        assert response.status_code == 422

    def test_share_edit_and_delete(self, client, auth):
        self._register(client, auth)
        client.post("/api/v1/contacts/", json=BOB, headers=auth(A))

        response = client.post("/api/v1/contacts/0/shares", json={"username": "carol"}, headers=auth(A))
        assert response.status_code == 204
        assert client.get("/api/v1/account/", headers=auth(C)).json()["shared_contact_ids"] == [0]
        assert client.get("/api/v1/contacts/shared", headers=auth(C)).json() == [{"id": 0, **BOB}]
        assert client.get("/api/v1/contacts/0", headers=auth(C)).status_code == 200
        assert client.get("/api/v1/contacts/0", headers=auth(B)).status_code == 403

        response = client.put("/api/v1/contacts/0", json={"name": "Robert"}, headers=auth(C))
        assert response.status_code == 403
        assert response.json()["code"] == "forbidden"

        response = client.put("/api/v1/contacts/0", json={"name": "Robert"}, headers=auth(A))
        assert response.status_code == 200
        assert response.json() == {"id": 0, "name": "Robert", "email": "bob@x.com", "phone": "555-1000"}

        response = client.delete("/api/v1/contacts/0", headers=auth(A))
        assert response.status_code == 204
        assert client.get("/api/v1/contacts/shared", headers=auth(C)).json() == []
        assert client.get("/api/v1/contacts/0", headers=auth(A)).status_code == 404

    def test_revoke(self, client, auth):
        self._register(client, auth)
        client.post("/api/v1/contacts/", json=BOB, headers=auth(A))
        client.post("/api/v1/contacts/0/shares", json={"username": "carol"}, headers=auth(A))

        response = client.delete("/api/v1/contacts/0/shares/carol", headers=auth(A))
        assert response.status_code == 204
        response = client.delete("/api/v1/contacts/0/shares/carol", headers=auth(A))
        assert response.status_code == 409
        assert response.json()["code"] == "not_shared"

    def test_not_found_codes(self, client, auth):
        self._register(client, auth)
        client.post("/api/v1/contacts/", json=BOB, headers=auth(A))

        response = client.delete("/api/v1/contacts/9", headers=auth(A))
        assert response.status_code == 404
        assert response.json()["code"] == "contact_not_found"

        response = client.post("/api/v1/contacts/0/shares", json={"username": "zed"}, headers=auth(A))
        assert response.status_code == 404
        assert response.json()["code"] == "recipient_not_found"

    def test_id_beyond_integer_range_is_not_found(self, client, auth):
        self._register(client, auth)
        huge = 2**64

        response = client.get(f"/api/v1/contacts/{huge}", headers=auth(A))
        assert response.status_code == 404
        assert response.json()["code"] == "contact_not_found"

        response = client.delete(f"/api/v1/contacts/{huge}", headers=auth(A))
        assert response.status_code == 404

        response = client.post(f"/api/v1/contacts/{huge}/shares", json={"username": "carol"}, headers=auth(A))
        assert response.status_code == 404
        assert response.json()["code"] == "contact_not_found"

    def test_revoke_round_trip_for_any_valid_username(self, client, auth):
        client.post("/api/v1/account/", json={"username": "alice"}, headers=auth(A))
        response = client.post("/api/v1/account/", json={"username": "carol smith"}, headers=auth(C))
        assert response.status_code == 201
        client.post("/api/v1/contacts/", json=BOB, headers=auth(A))

        client.post("/api/v1/contacts/0/shares", json={"username": "carol smith"}, headers=auth(A))
        response = client.delete("/api/v1/contacts/0/shares/carol%20smith", headers=auth(A))
        assert response.status_code == 204
        assert client.get("/api/v1/account/", headers=auth(C)).json()["shared_contact_ids"] == []

    def test_info(self, client, auth):
        self._register(client, auth)
        client.post("/api/v1/contacts/", json=BOB, headers=auth(A))
        response = client.get("/api/v1/info/")
        assert response.status_code == 200
        body = response.json()
        assert body["users"] == 3
        assert body["contacts"] == 1
        assert body["project_name"]
