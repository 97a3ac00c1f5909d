"""
Tests for the main application endpoints.
"""


def test_root_endpoint(client):
    """
    Test the root endpoint returns a welcome message.
    """
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert data["ok"] is True
    assert "message" in data
    assert "version" in data


def test_health_check(client):
    """
    Test both health check paths return a healthy status.
    """
    for path in ("/health", "/api/health"):
        response = client.get(path)
        assert response.status_code == 200
        assert response.json() == {"ok": True, "status": "healthy"}


def test_request_id_header(client):
    response = client.get("/health", headers={"X-Request-ID": "abc-123"})
    assert response.headers["X-Request-ID"] == "abc-123"
    assert "X-Process-Time" in response.headers

    generated = client.get("/health")
    assert generated.headers["X-Request-ID"]


def test_unknown_route_uses_error_envelope(client):
    response = client.get("/api/does-not-exist")
    assert response.status_code == 404
    assert response.json() == {"ok": False, "error": "not_found"}
