"""
HTTP tests for /api/v1/auth
"""

TEST_PASSWORD = "Budget!Saver2026"


class TestRegister:
    def test_register(self, client):
        response = client.post(
            "/api/v1/auth/register",
            json={"email": "Bob@FinTrack.io", "password": TEST_PASSWORD, "name": "Bob"},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["email"] == "bob@fintrack.io"
        assert data["name"] == "Bob"
        assert data["role"] == "user"
        assert "password_hash" not in data

    def test_duplicate_email(self, client, register_and_login):
        register_and_login(client)
        response = client.post(
            "/api/v1/auth/register",
            json={"email": "alice@fintrack.io", "password": TEST_PASSWORD},
        )
        assert response.status_code == 400
        assert "already exists" in response.json()["detail"]

    def test_weak_password(self, client):
        response = client.post(
            "/api/v1/auth/register", json={"email": "weak@fintrack.io", "password": "password"}
        )
        assert response.status_code == 400

    def test_disposable_email(self, client):
        response = client.post(
            "/api/v1/auth/register",
            json={"email": "spam@mailinator.com", "password": TEST_PASSWORD},
        )
        assert response.status_code == 400


class TestLogin:
    def test_login_returns_token_pair(self, client, register_and_login):
        tokens = register_and_login(client)

        assert tokens["token_type"] == "bearer"
        assert tokens["access_token"]
        assert tokens["refresh_token"]
        assert tokens["expires_in"] > 0

    def test_wrong_password(self, client, register_and_login):
        register_and_login(client)
        response = client.post(
            "/api/v1/auth/login",
            data={"username": "alice@fintrack.io", "password": "Wrong!Password99"},
        )
        assert response.status_code == 401

    def test_me(self, client, auth_headers):
        response = client.get("/api/v1/auth/me", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["email"] == "alice@fintrack.io"
        assert data["last_login_at"] is not None

    def test_me_without_token(self, client):
        assert client.get("/api/v1/auth/me").status_code == 401


class TestRefresh:
    def test_refresh(self, client, register_and_login):
        tokens = register_and_login(client)

        response = client.post(
            "/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]}
        )

        assert response.status_code == 200
        new_access = response.json()["access_token"]
        me = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {new_access}"})
        assert me.status_code == 200

    def test_access_token_cannot_refresh(self, client, register_and_login):
        tokens = register_and_login(client)
        response = client.post(
            "/api/v1/auth/refresh", json={"refresh_token": tokens["access_token"]}
        )
        assert response.status_code == 401

    def test_refresh_token_cannot_authenticate(self, client, register_and_login):
        tokens = register_and_login(client)
        response = client.get(
            "/api/v1/auth/me", headers={"Authorization": f"Bearer {tokens['refresh_token']}"}
        )
        assert response.status_code == 401

    def test_invalid_refresh_token(self, client):
        response = client.post("/api/v1/auth/refresh", json={"refresh_token": "garbage"})
        assert response.status_code == 401
