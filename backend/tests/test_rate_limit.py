"""Tests for the database-backed fixed-window rate limiter."""
import asyncio

from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.main import RateLimitMiddleware
from app.models.rate_limit import RateLimitCounter
from app.services import rate_limiter
from app.services.rate_limiter import hit, window_start_for


def test_window_start_alignment():
    assert window_start_for(125.7, 60) == 120
    assert window_start_for(120.0, 60) == 120


def test_counts_within_window(db):
    now = 1_000_020.0
    results = [hit(db, "api:1.2.3.4", limit=3, window_seconds=60, now=now) for _ in range(4)]

    assert [r.count for r in results] == [1, 2, 3, 4]
    assert [r.allowed for r in results] == [True, True, True, False]
    # 1_000_020 is itself a window boundary
    assert results[-1].retry_after == 60


def test_keys_are_independent(db):
    now = 1_000_020.0
    hit(db, "api:1.1.1.1", limit=1, now=now)
    assert hit(db, "api:2.2.2.2", limit=1, now=now).allowed is True
    assert hit(db, "api:1.1.1.1", limit=1, now=now).allowed is False


def test_new_window_resets_and_prunes(db):
    hit(db, "api:1.2.3.4", limit=1, window_seconds=60, now=1_000_020.0)
    hit(db, "api:1.2.3.4", limit=1, window_seconds=60, now=1_000_030.0)

    result = hit(db, "api:1.2.3.4", limit=1, window_seconds=60, now=1_000_090.0)

    assert result.allowed is True
    assert result.count == 1
    rows = db.query(RateLimitCounter).filter(RateLimitCounter.bucket_key == "api:1.2.3.4").all()
    assert [row.window_start for row in rows] == [1_000_080]


def limited_app(monkeypatch, limit=2):
    monkeypatch.setenv("RATE_LIMIT_DISABLED", "0")
    monkeypatch.setenv("RATE_LIMIT_PER_MINUTE", str(limit))
    monkeypatch.setenv("RATE_LIMIT_ANALYZE_PER_MINUTE", "1")
    app = FastAPI()
    app.add_middleware(RateLimitMiddleware)

    @app.get("/api/ping")
    def ping():
        return {"ok": True}

    @app.post("/api/analyze-image")
    def analyze():
        return {"ok": True}

    @app.post("/api/payment/webhook")
    def webhook():
        return {"received": True}

    @app.get("/healthz")
    def healthz():
        return {"status": "ok"}

    return TestClient(app)


def test_middleware_returns_429(db, monkeypatch):
    client = limited_app(monkeypatch, limit=2)

    assert client.get("/api/ping").status_code == 200
    assert client.get("/api/ping").status_code == 200
    response = client.get("/api/ping")

    assert response.status_code == 429
    assert response.json() == {"error": "Too many requests. Please try again later."}
    assert int(response.headers["Retry-After"]) >= 1


def test_analyze_has_its_own_budget(db, monkeypatch):
    client = limited_app(monkeypatch, limit=5)

    assert client.post("/api/analyze-image").status_code == 200
    assert client.post("/api/analyze-image").status_code == 429
    assert client.get("/api/ping").status_code == 200


def test_webhook_and_non_api_paths_not_limited(db, monkeypatch):
    client = limited_app(monkeypatch, limit=1)

    for _ in range(3):
        assert client.post("/api/payment/webhook").status_code == 200
        assert client.get("/healthz").status_code == 200


def on_event_loop() -> bool:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True


def test_counter_update_runs_in_worker_thread(db, monkeypatch):
    client = limited_app(monkeypatch, limit=5)
    seen = []

    def recording_hit(*args, **kwargs):
        seen.append(on_event_loop())
        return hit(*args, **kwargs)

    monkeypatch.setattr(rate_limiter, "hit", recording_hit)

    assert client.get("/api/ping").status_code == 200
    assert seen == [False]


def test_security_headers(client):
    response = client.get("/")
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"
    assert "no-store" in response.headers["Cache-Control"]


def test_healthz(client):
    assert client.get("/healthz").json() == {"status": "ok", "database": "connected"}
