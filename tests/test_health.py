from taskboard.routes import health

def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}

def test_ready_reports_each_dependency(client, monkeypatch):
    monkeypatch.setattr(health, "db_ping", lambda: True)
    monkeypatch.setattr(health, "redis_ping", lambda: True)
    r = client.get("/ready")
    assert r.status_code == 200
    assert r.json()["checks"] == {"db": True, "redis": True}

    def boom():
        raise RuntimeError("connection refused")

    monkeypatch.setattr(health, "redis_ping", boom)
    r = client.get("/ready")
    assert r.status_code == 503
    body = r.json()
    assert body["status"] == "unready"
    assert body["errors"]["redis"] == "RuntimeError: connection refused"
