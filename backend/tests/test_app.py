def test_root(client):
    response = client.get("/")

    assert response.status_code == 200
    data = response.json()
    assert "FinTrack Quiz" in data["message"]
    assert data["timestamp"]


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["database"] == "connected"
    assert data["database_ping"] == 1
