# ============================================================================
# GATEWAY ROUTE TESTS
# ============================================================================
# EPOCH: 1 - MESSAGE ROUTING
# STATUS: Tests - /handle submission and error envelopes
# PURPOSE: Verify action routing, publish contract and error mapping
# CREATED: 18 OCT 2026
# ============================================================================
"""
Gateway Route Tests

Uses FastAPI TestClient against the gateway router, a real EventEmitter on
the in-memory broker, and a ServiceClient on httpx.MockTransport.

Run with:
    pytest tests/test_gateway_routes.py -v
"""

import asyncio
import json

import pytest
from unittest.mock import AsyncMock, MagicMock

from fastapi import FastAPI
from fastapi.testclient import TestClient

from core.config import GatewayConfig
from core.errors import PublishError, RequestDecodeError
from gateway.dispatcher import GatewayDispatcher
from gateway.routes import read_envelope, router, set_gateway_services
from messaging.publisher import EventEmitter


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture(autouse=True)
def reset_services():
    yield
    set_gateway_services(dispatcher=None, config=GatewayConfig())


@pytest.fixture
def emitter(broker):
    return EventEmitter(broker.connection())


@pytest.fixture
def client(emitter, downstream):
    app = FastAPI()
    app.include_router(router)
    set_gateway_services(GatewayDispatcher(emitter, downstream.service_client()))
    return TestClient(app)


def _published(broker):
    exchange = broker.exchanges.get("exchange")
    return exchange.published if exchange else []


# ============================================================================
# PUBLISH PATH
# ============================================================================

class TestPublishActions:

    def test_auth_publishes_auth_info(self, client, broker, downstream):
        resp = client.post("/handle", json={
            "action": "auth",
            "auth": {"email": "a@x.com", "password": "secret"},
        })

        assert resp.status_code == 202
        assert resp.json() == {"error": False, "message": "authenticated via RabbitMQ"}

        published = _published(broker)
        assert len(published) == 1
        routing_key, body = published[0]
        assert routing_key == "auth.INFO"
        assert json.loads(body) == {"email": "a@x.com", "password": "secret"}
        assert downstream.requests == []

    def test_log_publishes_log_info(self, client, broker, downstream):
        resp = client.post("/handle", json={
            "action": "log",
            "log": {"name": "test", "data": "hello"},
        })

        assert resp.status_code == 202
        assert resp.json()["message"] == "logged via RabbitMQ"

        published = _published(broker)
        assert [key for key, _ in published] == ["log.INFO"]
        assert json.loads(published[0][1]) == {"name": "test", "data": "hello"}
        assert downstream.requests == []

    @pytest.mark.parametrize("action,body", [
        ("log", {"name": "", "data": ""}),
        ("auth", {"email": "", "password": ""}),
    ])
    def test_absent_payload_published_empty(self, client, broker, downstream, action, body):
        resp = client.post("/handle", json={"action": action})

        assert resp.status_code == 202
        published = _published(broker)
        assert [key for key, _ in published] == [f"{action}.INFO"]
        assert json.loads(published[0][1]) == body
        assert downstream.requests == []

    def test_exchange_declared_durable_topic(self, client, broker):
        client.post("/handle", json={"action": "log", "log": {"name": "n", "data": "d"}})

        exchange = broker.exchanges["exchange"]
        assert exchange.type == "topic"
        assert exchange.durable is True
        assert exchange.auto_delete is False

    def test_publish_failure_returns_error_envelope(self, downstream):
        failing = MagicMock()
        failing.push = AsyncMock(side_effect=PublishError("failed to publish message: channel closed"))
        app = FastAPI()
        app.include_router(router)
        set_gateway_services(GatewayDispatcher(failing, downstream.service_client()))

        resp = TestClient(app).post("/handle", json={
            "action": "log",
            "log": {"name": "n", "data": "d"},
        })

        assert resp.status_code == 503
        assert resp.json() == {"error": True, "message": "failed to publish message: channel closed"}


# ============================================================================
# MAIL PATH
# ============================================================================

class TestMailAction:

    def test_mail_sent(self, client, broker, downstream, endpoints):
        mail = {"from": "a@x.com", "to": "b@x.com", "subject": "s", "message": "m"}

        resp = client.post("/handle", json={"action": "mail", "mail": mail})

        assert resp.status_code == 202
        assert resp.json() == {"error": False, "message": "message sent to b@x.com"}
        assert downstream.bodies_for(endpoints.mailer_url) == [mail]
        assert len(downstream.requests) == 1
        assert _published(broker) == []

    def test_mailer_failure(self, client, downstream, endpoints):
        downstream.respond(endpoints.mailer_url, 500)

        resp = client.post("/handle", json={
            "action": "mail",
            "mail": {"from": "a@x.com", "to": "b@x.com", "subject": "s", "message": "m"},
        })

        assert resp.status_code == 502
        assert resp.json() == {"error": True, "message": "error calling mail service"}


# ============================================================================
# REJECTED REQUESTS
# ============================================================================

class TestRejectedRequests:

    def test_unknown_action(self, client, broker, downstream):
        resp = client.post("/handle", json={"action": "delete", "log": {"name": "n", "data": "d"}})

        assert resp.status_code == 400
        assert resp.json() == {"error": True, "message": "unknown action"}
        assert _published(broker) == []
        assert downstream.requests == []

    def test_malformed_json(self, client, broker):
        resp = client.post(
            "/handle",
            content=b'{"action": "log", ',
            headers={"Content-Type": "application/json"},
        )

        assert resp.status_code == 400
        assert resp.json()["error"] is True
        assert _published(broker) == []

    def test_empty_body(self, client):
        resp = client.post("/handle", content=b"")

        assert resp.status_code == 400
        assert resp.json()["message"] == "request body must not be empty"

    def test_body_too_large(self, client):
        set_gateway_services(
            GatewayDispatcher(MagicMock(), MagicMock()),
            config=GatewayConfig(max_body_bytes=32),
        )

        resp = client.post("/handle", json={"action": "log", "log": {"name": "n" * 64, "data": "d"}})

        assert resp.status_code == 400
        assert "larger than 32 bytes" in resp.json()["message"]

    def test_not_initialized(self):
        app = FastAPI()
        app.include_router(router)
        set_gateway_services(dispatcher=None)

        resp = TestClient(app).post("/handle", json={"action": "log", "log": {"name": "n", "data": "d"}})

        assert resp.status_code == 503
        assert resp.json() == {"error": True, "message": "gateway not initialized"}


# ============================================================================
# NO-OP AND HEALTH
# ============================================================================

class TestHealth:

    @pytest.mark.parametrize("method", ["GET", "POST"])
    def test_hit_the_broker(self, client, broker, method):
        resp = client.request(method, "/")

        assert resp.status_code == 200
        assert resp.json() == {"error": False, "message": "Hit the broker"}
        assert _published(broker) == []

    def test_livez_reports_publisher_state(self, client):
        before = client.get("/livez").json()
        client.post("/handle", json={"action": "log", "log": {"name": "n", "data": "d"}})
        after = client.get("/livez").json()

        assert before["status"] == "alive"
        assert before["publisher_ready"] is False
        assert after["publisher_ready"] is True


# ============================================================================
# BODY LIMIT
# ============================================================================

class _StreamedRequest:
    """Request stand-in that streams chunks without a Content-Length."""

    def __init__(self, chunks):
        self.headers = {}
        self._chunks = chunks
        self.chunks_read = 0

    async def stream(self):
        for chunk in self._chunks:
            self.chunks_read += 1
            yield chunk


class TestBodyLimit:

    def test_stream_stops_once_limit_passed(self):
        request = _StreamedRequest([b"x" * 16] * 100)

        with pytest.raises(RequestDecodeError, match="larger than 32 bytes"):
            asyncio.run(read_envelope(request, max_bytes=32))

        assert request.chunks_read == 3

    def test_chunked_body_within_limit(self):
        request = _StreamedRequest([b'{"action": "log", ', b'"log": {"name": "n", "data": "d"}}'])

        envelope = asyncio.run(read_envelope(request, max_bytes=1024))

        assert envelope.action == "log"
        assert envelope.log.name == "n"

    def test_declared_length_rejected_before_reading(self):
        request = _StreamedRequest([b"{}"])
        request.headers = {"content-length": "4096"}

        with pytest.raises(RequestDecodeError):
            asyncio.run(read_envelope(request, max_bytes=1024))

        assert request.chunks_read == 0
