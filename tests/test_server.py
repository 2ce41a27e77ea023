"""Tests for the webhook HTTP server."""

import json
from unittest.mock import AsyncMock

import pytest
from aiohttp.test_utils import TestClient, TestServer

from releasehook.config import Settings, WebhookConfig
from releasehook.core.rate_limit import RateLimiter
from releasehook.core.signature import SignatureValidator, generate_signature
from releasehook.webhooks.handlers import ReleaseEventHandler
from releasehook.webhooks.server import SECURITY_HEADERS, WebhookServer

SECRET = "gh-secret"

RELEASE_EVENT = {
    "action": "published",
    "release": {
        "id": 7,
        "name": "Mobile App",
        "tag_name": "v1.2.0",
        "draft": False,
        "prerelease": False,
    },
    "repository": {"id": 1, "name": "repo", "full_name": "org/repo"},
    "sender": {"login": "alice"},
}


def signed_headers(body: bytes, event: str = "release", secret: str = SECRET) -> dict[str, str]:
    return {
        "Content-Type": "application/json",
        "X-Hub-Signature-256": generate_signature(secret, body),
        "X-GitHub-Event": event,
        "X-GitHub-Delivery": "delivery-1",
    }


@pytest.fixture
def settings():
    return Settings(webhook=WebhookConfig(secret=SECRET, base_url="https://hooks.example.com"))


@pytest.fixture
def handler():
    return AsyncMock(spec=ReleaseEventHandler)


@pytest.fixture
def limiter():
    return RateLimiter(window_seconds=60.0, max_requests=100)


@pytest.fixture
def server(settings, handler, limiter):
    return WebhookServer(settings, handler, SignatureValidator(SECRET), limiter)


@pytest.fixture
async def client(server):
    app = server._build_app()
    async with TestClient(TestServer(app)) as c:
        yield c


class TestWebhookEndpoint:
    async def test_valid_release_event_processed(self, client, handler):
        body = json.dumps(RELEASE_EVENT).encode()
        resp = await client.post("/webhook", data=body, headers=signed_headers(body))

        assert resp.status == 200
        assert await resp.json() == {"status": "processed"}
        handler.handle.assert_awaited_once()
        payload = handler.handle.call_args.args[0]
        assert payload.action == "published"
        assert payload.release.tag_name == "v1.2.0"
        assert payload.repository.full_name == "org/repo"

    async def test_missing_signature_returns_401(self, client, handler):
        body = json.dumps(RELEASE_EVENT).encode()
        headers = signed_headers(body)
        del headers["X-Hub-Signature-256"]
        resp = await client.post("/webhook", data=body, headers=headers)

        assert resp.status == 401
        assert await resp.json() == {"error": "Missing signature"}
        handler.handle.assert_not_awaited()

    async def test_invalid_signature_returns_401(self, client, handler):
        body = json.dumps(RELEASE_EVENT).encode()
        resp = await client.post(
            "/webhook", data=body, headers=signed_headers(body, secret="wrong")
        )
        assert resp.status == 401
        assert await resp.json() == {"error": "Invalid signature"}
        handler.handle.assert_not_awaited()

    async def test_signature_checked_against_raw_bytes(self, client, handler):
        body = json.dumps(RELEASE_EVENT).encode()
        reformatted = json.dumps(RELEASE_EVENT, indent=2).encode()
        resp = await client.post("/webhook", data=reformatted, headers=signed_headers(body))
        assert resp.status == 401
        handler.handle.assert_not_awaited()

    async def test_missing_event_header_returns_401(self, client, handler):
        body = json.dumps(RELEASE_EVENT).encode()
        headers = signed_headers(body)
        del headers["X-GitHub-Event"]
        resp = await client.post("/webhook", data=body, headers=headers)
        assert resp.status == 401
        assert await resp.json() == {"error": "Missing event header"}
        handler.handle.assert_not_awaited()

    async def test_malformed_json_returns_400(self, client, handler):
        body = b"not json"
        resp = await client.post("/webhook", data=body, headers=signed_headers(body))
        assert resp.status == 400
        assert await resp.json() == {"error": "Invalid JSON"}
        handler.handle.assert_not_awaited()

    async def test_non_object_json_returns_400(self, client):
        body = b"[1, 2, 3]"
        resp = await client.post("/webhook", data=body, headers=signed_headers(body))
        assert resp.status == 400

    async def test_wrong_content_type_returns_400(self, client, handler):
        body = json.dumps(RELEASE_EVENT).encode()
        headers = signed_headers(body)
        headers["Content-Type"] = "application/x-www-form-urlencoded"
        resp = await client.post("/webhook", data=body, headers=headers)
        assert resp.status == 400
        handler.handle.assert_not_awaited()

    async def test_incomplete_release_payload_returns_400(self, client, handler):
        body = json.dumps({"action": "published", "release": {"id": 1}}).encode()
        resp = await client.post("/webhook", data=body, headers=signed_headers(body))
        assert resp.status == 400
        assert await resp.json() == {"error": "Invalid release payload"}
        handler.handle.assert_not_awaited()

    async def test_handler_failure_returns_500(self, client, handler):
        handler.handle.side_effect = RuntimeError("dispatch exploded")
        body = json.dumps(RELEASE_EVENT).encode()
        resp = await client.post("/webhook", data=body, headers=signed_headers(body))

        assert resp.status == 500
        data = await resp.json()
        assert data == {"error": "Internal server error"}
        assert "exploded" not in json.dumps(data)

    async def test_ping_event_acknowledged(self, client, handler):
        body = json.dumps({"zen": "Keep it logically awesome.", "hook_id": 1}).encode()
        resp = await client.post("/webhook", data=body, headers=signed_headers(body, event="ping"))
        assert resp.status == 200
        handler.handle.assert_not_awaited()

    async def test_other_event_types_ignored(self, client, handler):
        body = json.dumps({"ref": "refs/heads/main"}).encode()
        resp = await client.post("/webhook", data=body, headers=signed_headers(body, event="push"))
        assert resp.status == 200
        handler.handle.assert_not_awaited()

    async def test_unknown_path_returns_404(self, client):
        resp = await client.post("/elsewhere", json={"test": True})
        assert resp.status == 404


class TestNoSecretConfigured:
    async def test_every_delivery_rejected(self, handler, limiter):
        server = WebhookServer(Settings(), handler, SignatureValidator(""), limiter)
        async with TestClient(TestServer(server._build_app())) as client:
            body = json.dumps(RELEASE_EVENT).encode()
            resp = await client.post("/webhook", data=body, headers=signed_headers(body, secret=""))
            assert resp.status == 401
        handler.handle.assert_not_awaited()


class TestMiddlewares:
    async def test_security_headers_on_success(self, client):
        resp = await client.get("/health")
        for name, value in SECURITY_HEADERS.items():
            assert resp.headers[name] == value

    async def test_security_headers_on_errors(self, client):
        resp = await client.post("/webhook", data=b"{}")
        assert resp.status == 401
        assert resp.headers["X-Frame-Options"] == "DENY"

        resp = await client.get("/missing")
        assert resp.status == 404
        assert resp.headers["X-Content-Type-Options"] == "nosniff"

    async def test_rate_limit_returns_429(self, settings, handler):
        limiter = RateLimiter(window_seconds=60.0, max_requests=1)
        server = WebhookServer(settings, handler, SignatureValidator(SECRET), limiter)
        async with TestClient(TestServer(server._build_app())) as client:
            body = json.dumps(RELEASE_EVENT).encode()
            first = await client.post("/webhook", data=body, headers=signed_headers(body))
            second = await client.post("/webhook", data=body, headers=signed_headers(body))

            assert first.status == 200
            assert second.status == 429
            assert await second.json() == {"error": "Too many requests"}
            assert second.headers["X-Frame-Options"] == "DENY"
        handler.handle.assert_awaited_once()

    async def test_forwarded_for_identifies_client(self, settings, handler):
        limiter = RateLimiter(window_seconds=60.0, max_requests=1)
        server = WebhookServer(settings, handler, SignatureValidator(SECRET), limiter)
        async with TestClient(TestServer(server._build_app())) as client:
            first = await client.get("/health", headers={"X-Forwarded-For": "10.0.0.1, 172.16.0.1"})
            second = await client.get("/health", headers={"X-Forwarded-For": "10.0.0.2"})
            third = await client.get("/health", headers={"X-Forwarded-For": "10.0.0.1"})
            assert first.status == 200
            assert second.status == 200
            assert third.status == 429


class TestInfoEndpoints:
    async def test_health(self, client):
        resp = await client.get("/health")
        assert resp.status == 200
        data = await resp.json()
        assert data["status"] == "healthy"
        assert data["version"]
        assert "timestamp" in data
        assert data["rate_limit"]["tracked_identifiers"] >= 1

    async def test_webhook_config_never_leaks_secret(self, client):
        resp = await client.get("/webhook/config")
        assert resp.status == 200
        data = await resp.json()
        assert data == {
            "url": "https://hooks.example.com/webhook",
            "content_type": "json",
            "insecure_ssl": "0",
            "secret": "configured",
        }
        assert SECRET not in await resp.text()

    async def test_webhook_config_without_secret(self, handler, limiter):
        server = WebhookServer(Settings(), handler, SignatureValidator(""), limiter)
        async with TestClient(TestServer(server._build_app())) as client:
            data = await (await client.get("/webhook/config")).json()
            assert data["secret"] == "not_configured"

    async def test_app_info(self, client):
        data = await (await client.get("/app/info")).json()
        assert data["name"] == "releasehook"
        assert "Multi-target releases" in data["features"]
