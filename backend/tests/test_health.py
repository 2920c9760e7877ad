def test_liveness_endpoints(client):
    for path in ("/health", "/healthz", "/api/health"):
        res = client.get(path)
        assert res.status_code == 200
        assert res.json()["status"] == "ok"


def test_root_and_api_liveness_share_one_payload(client):
    root = client.get("/health").json()
    api = client.get("/api/health").json()
    assert set(root) == set(api) == {
        "status",
        "service",
        "environment",
        "time",
        "uptime_seconds",
        "version",
    }
    assert root["service"] == api["service"]


def test_db_readiness(client):
    res = client.get("/api/health/db")
    assert res.status_code == 200
    assert res.json() == {"status": "ok", "database": "reachable"}


def test_request_id_is_echoed(client):
    res = client.get("/api/health", headers={"X-Request-ID": "abc-123"})
    assert res.headers.get("X-Request-ID") == "abc-123"
