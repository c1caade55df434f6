"""Tests for CORS, response header and write throttling middleware."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from toilet_spotter.api.middleware import (
    SecurityHeadersMiddleware,
    SlidingWindowCounter,
    WriteRateLimitMiddleware,
    setup_cors,
)
from toilet_spotter.core.config import Settings


def _create_test_app() -> FastAPI:
    """Create a minimal FastAPI app for middleware testing."""
    app = FastAPI()

    @app.get("/test")
    async def read_route() -> dict:
        return {"ok": True}

    @app.post("/test")
    async def write_route() -> dict:
        return {"ok": True}

    return app


class TestSecurityHeadersMiddleware:
    """Tests for SecurityHeadersMiddleware."""

    @pytest.fixture
    def client(self) -> TestClient:
        app = _create_test_app()
        app.add_middleware(SecurityHeadersMiddleware)
        return TestClient(app)

    def test_headers_present(self, client: TestClient) -> None:
        response = client.get("/test")
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["Referrer-Policy"] == "no-referrer"
        assert response.headers["Cache-Control"] == "no-store"
        assert "max-age=31536000" in response.headers["Strict-Transport-Security"]


class TestWriteRateLimitMiddleware:
    """Tests for WriteRateLimitMiddleware."""

    @pytest.fixture
    def client(self) -> TestClient:
        app = _create_test_app()
        app.add_middleware(WriteRateLimitMiddleware, writes_per_minute=2)
        return TestClient(app)

    def test_third_write_from_device_rejected(self, client: TestClient) -> None:
        headers = {"X-Device-Id": "device_a"}
        assert client.post("/test", headers=headers).status_code == 200
        assert client.post("/test", headers=headers).status_code == 200

        response = client.post("/test", headers=headers)

        assert response.status_code == 429
        assert "Too many" in response.json()["detail"]

    def test_devices_counted_separately(self, client: TestClient) -> None:
        for _ in range(2):
            client.post("/test", headers={"X-Device-Id": "device_a"})
        assert client.post("/test", headers={"X-Device-Id": "device_b"}).status_code == 200

    def test_reads_not_limited(self, client: TestClient) -> None:
        for _ in range(5):
            assert client.get("/test", headers={"X-Device-Id": "device_a"}).status_code == 200

    def test_anonymous_writes_limited_by_address(self, client: TestClient) -> None:
        statuses = [client.post("/test").status_code for _ in range(9)]
        assert statuses == [200] * 8 + [429]

    def test_rotating_device_header_hits_address_limit(self, client: TestClient) -> None:
        statuses = [client.post("/test", headers={"X-Device-Id": f"device_{i}"}).status_code for i in range(50)]
        assert statuses.count(200) == 8
        assert statuses.count(429) == 42

    def test_addresses_behind_proxy_counted_separately(self, client: TestClient) -> None:
        for _ in range(8):
            client.post("/test", headers={"X-Forwarded-For": "203.0.113.7, 10.0.0.1"})
        assert client.post("/test", headers={"X-Forwarded-For": "203.0.113.7"}).status_code == 429
        assert client.post("/test", headers={"X-Forwarded-For": "198.51.100.2"}).status_code == 200


class TestSlidingWindowCounter:
    """Tests for SlidingWindowCounter."""

    def test_rejects_when_any_key_full(self) -> None:
        counter = SlidingWindowCounter()
        assert counter.try_acquire({"ip:a": 5, "device:x": 1}, now=100.0)
        assert not counter.try_acquire({"ip:a": 5, "device:x": 1}, now=101.0)
        assert counter.try_acquire({"ip:a": 5, "device:y": 1}, now=102.0)

    def test_rejected_request_does_not_create_keys(self) -> None:
        counter = SlidingWindowCounter()
        counter.try_acquire({"ip:a": 1}, now=100.0)
        assert not counter.try_acquire({"ip:a": 1, "device:new": 5}, now=101.0)
        assert len(counter) == 1

    def test_window_slides(self) -> None:
        counter = SlidingWindowCounter(window_seconds=60.0)
        counter.try_acquire({"ip:a": 1}, now=100.0)
        assert not counter.try_acquire({"ip:a": 1}, now=159.0)
        assert counter.try_acquire({"ip:a": 1}, now=160.0)

    def test_idle_keys_are_evicted(self) -> None:
        counter = SlidingWindowCounter(window_seconds=60.0)
        for i in range(50):
            counter.try_acquire({f"device:{i}": 2}, now=100.0)
        assert len(counter) == 50

        counter.try_acquire({"device:late": 2}, now=200.0)

        assert len(counter) == 1


class TestCors:
    """Tests for setup_cors."""

    def test_configured_origin_allowed(self) -> None:
        app = _create_test_app()
        setup_cors(app, Settings(cors_origins="https://spotter.example.com"))
        client = TestClient(app)

        response = client.get("/test", headers={"Origin": "https://spotter.example.com"})

        assert response.headers["access-control-allow-origin"] == "https://spotter.example.com"

    def test_unknown_origin_not_echoed(self) -> None:
        app = _create_test_app()
        setup_cors(app, Settings(cors_origins="https://spotter.example.com"))
        client = TestClient(app)

        response = client.get("/test", headers={"Origin": "https://evil.example.com"})

        assert "access-control-allow-origin" not in response.headers

    def test_preflight_allows_device_header(self) -> None:
        app = _create_test_app()
        setup_cors(app, Settings(cors_origins="https://spotter.example.com"))
        client = TestClient(app)

        response = client.options(
            "/test",
            headers={
                "Origin": "https://spotter.example.com",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "X-Device-Id",
            },
        )

        assert response.status_code == 200
        assert "x-device-id" in response.headers["access-control-allow-headers"].lower()
