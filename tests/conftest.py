# ============================================================================
# TEST FIXTURES
# ============================================================================
# EPOCH: 1 - MESSAGE ROUTING
# STATUS: Tests - Shared fixtures
# PURPOSE: In-memory topic broker and recorded downstream HTTP services
# CREATED: 18 OCT 2026
# ============================================================================
"""
Shared Test Fixtures

- broker: in-memory stand-in for RabbitMQ implementing the slice of the
  aio-pika API the emitter and consumer use (channel, declare_exchange,
  declare_queue, bind, consume, cancel, publish) with topic-exchange routing.
- downstream: records outbound HTTP requests through httpx.MockTransport
  and answers with configurable status codes per URL.
"""

import itertools
import json
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx
import pytest

from core.config import ServiceEndpoints
from messaging.topics import matches_binding
from services.forwarder import ServiceClient


# ============================================================================
# IN-MEMORY BROKER
# ============================================================================

class FakeIncomingMessage:
    """What a consumer callback receives."""

    def __init__(self, body: bytes, routing_key: str, message_id: Optional[str] = None):
        self.body = body
        self.routing_key = routing_key
        self.message_id = message_id


class FakeExchange:
    def __init__(self, broker: "InMemoryBroker", name: str, type_: Any, durable: bool, auto_delete: bool):
        self.broker = broker
        self.name = name
        self.type = type_
        self.durable = durable
        self.auto_delete = auto_delete
        self.published: List[Tuple[str, bytes]] = []
        self.fail_with: Optional[Exception] = None

    async def publish(self, message, routing_key: str):
        if self.fail_with is not None:
            raise self.fail_with
        self.published.append((routing_key, message.body))
        await self.broker.route(self.name, message, routing_key)


class FakeQueue:
    def __init__(self, broker: "InMemoryBroker", name: str, durable: bool, exclusive: bool, auto_delete: bool):
        self.broker = broker
        self.name = name
        self.durable = durable
        self.exclusive = exclusive
        self.auto_delete = auto_delete
        self.bindings: List[Tuple[str, str]] = []
        self.consumers: Dict[str, Tuple[Callable, bool]] = {}

    async def bind(self, exchange, routing_key: str):
        self.bindings.append((exchange.name, routing_key))

    async def consume(self, callback, no_ack: bool = False):
        tag = f"ctag-{next(self.broker._ids)}"
        self.consumers[tag] = (callback, no_ack)
        return tag

    async def cancel(self, consumer_tag: str):
        self.consumers.pop(consumer_tag, None)

    def accepts(self, exchange_name: str, routing_key: str) -> bool:
        return any(
            name == exchange_name and matches_binding(pattern, routing_key)
            for name, pattern in self.bindings
        )

    async def deliver(self, message, routing_key: str):
        # One consumer per queue receives each message
        for callback, _no_ack in list(self.consumers.values()):
            await callback(FakeIncomingMessage(message.body, routing_key, message.message_id))
            return


class FakeChannel:
    def __init__(self, broker: "InMemoryBroker", connection: "FakeConnection"):
        self.broker = broker
        self.connection = connection
        self.is_closed = False

    async def declare_exchange(self, name, type_=None, durable=False, auto_delete=False, internal=False, **kwargs):
        return self.broker.declare_exchange(name, type_, durable, auto_delete)

    async def declare_queue(self, name=None, *, durable=False, exclusive=False, auto_delete=False, **kwargs):
        queue = FakeQueue(
            self.broker,
            name or f"amq.gen-{next(self.broker._ids)}",
            durable,
            exclusive,
            auto_delete,
        )
        self.broker.queues[queue.name] = queue
        if exclusive:
            self.connection.exclusive_queues.append(queue.name)
        return queue

    async def close(self):
        self.is_closed = True


class FakeConnection:
    def __init__(self, broker: "InMemoryBroker"):
        self.broker = broker
        self.is_closed = False
        self.channels: List[FakeChannel] = []
        self.exclusive_queues: List[str] = []

    async def channel(self):
        channel = FakeChannel(self.broker, self)
        self.channels.append(channel)
        return channel

    async def close(self):
        self.is_closed = True
        for name in self.exclusive_queues:
            self.broker.queues.pop(name, None)


class InMemoryBroker:
    """Topic-exchange routing over in-memory queues."""

    def __init__(self):
        self.exchanges: Dict[str, FakeExchange] = {}
        self.queues: Dict[str, FakeQueue] = {}
        self._ids = itertools.count(1)

    def connection(self) -> FakeConnection:
        return FakeConnection(self)

    def declare_exchange(self, name, type_, durable, auto_delete) -> FakeExchange:
        existing = self.exchanges.get(name)
        if existing is not None:
            if existing.durable != durable or existing.type != type_:
                raise RuntimeError(f"PRECONDITION_FAILED - inequivalent arg for exchange '{name}'")
            return existing
        exchange = FakeExchange(self, name, type_, durable, auto_delete)
        self.exchanges[name] = exchange
        return exchange

    async def route(self, exchange_name: str, message, routing_key: str):
        for queue in list(self.queues.values()):
            if queue.accepts(exchange_name, routing_key):
                await queue.deliver(message, routing_key)


@pytest.fixture
def broker():
    return InMemoryBroker()


# ============================================================================
# DOWNSTREAM SERVICES
# ============================================================================

ENDPOINTS = ServiceEndpoints()


class DownstreamRecorder:
    """Records outbound requests and answers per URL (202 by default)."""

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self._responses: Dict[str, Tuple[int, Any]] = {}
        self._errors: Dict[str, Exception] = {}

    def respond(self, url: str, status_code: int, body: Any = None):
        self._responses[url] = (status_code, body)

    def fail(self, url: str, error: Exception):
        self._errors[url] = error

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = str(request.url)
        if url in self._errors:
            raise self._errors[url]
        status_code, body = self._responses.get(url, (202, {"error": False, "message": "ok"}))
        if isinstance(body, (bytes, str)):
            return httpx.Response(status_code, content=body)
        return httpx.Response(status_code, json=body if body is not None else {})

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))

    def service_client(self) -> ServiceClient:
        return ServiceClient(ENDPOINTS, http_client=self.client())

    def bodies_for(self, url: str) -> List[Dict[str, Any]]:
        return [json.loads(r.content) for r in self.requests if str(r.url) == url]


@pytest.fixture
def downstream():
    return DownstreamRecorder()


@pytest.fixture
def endpoints():
    return ENDPOINTS
