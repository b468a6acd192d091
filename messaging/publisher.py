# ============================================================================
# EVENT EMITTER
# ============================================================================
# EPOCH: 1 - MESSAGE ROUTING
# STATUS: Core - Topic exchange publishing
# PURPOSE: Publish JSON payloads under a routing key
# CREATED: 18 OCT 2026
# ============================================================================
"""
Event Emitter

Owns one channel on the shared broker connection, makes sure the topic
exchange exists, and publishes message bodies under a routing key.

Failures (channel unavailable, exchange declaration, publish) are raised
as PublishError and never retried here; the gateway turns them into an
error response.
"""

from typing import Optional

import aio_pika
from aio_pika.abc import AbstractChannel, AbstractConnection, AbstractExchange
from pydantic import BaseModel

from core.contracts import encode_payload
from core.errors import PublishError
from core.logging import ComponentType, get_logger
from messaging.exchange import DEFAULT_EXCHANGE, declare_exchange

logger = get_logger(__name__, ComponentType.MESSAGING)


class EventEmitter:
    """Publisher for the topic exchange."""

    def __init__(
        self,
        connection: AbstractConnection,
        exchange_name: str = DEFAULT_EXCHANGE,
    ):
        """
        Initialize the emitter.

        Args:
            connection: Open broker connection (owned by the caller)
            exchange_name: Topic exchange to publish to
        """
        self.exchange_name = exchange_name
        self._connection = connection
        self._channel: Optional[AbstractChannel] = None
        self._exchange: Optional[AbstractExchange] = None

    @property
    def ready(self) -> bool:
        return self._exchange is not None

    async def setup(self) -> None:
        """Open the channel and declare the exchange (no-op once done)."""
        if self._exchange is not None:
            return

        try:
            if self._channel is None or self._channel.is_closed:
                self._channel = await self._connection.channel()
            self._exchange = await declare_exchange(self._channel, self.exchange_name)
        except Exception as e:
            logger.error(f"Failed to declare exchange {self.exchange_name}: {e}")
            raise PublishError(f"failed to declare exchange {self.exchange_name}: {e}") from e

        logger.info(f"Event emitter ready on exchange: {self.exchange_name}")

    async def publish(self, body: bytes, routing_key: str) -> None:
        """
        Publish a message body under `routing_key`.

        Args:
            body: JSON-encoded payload
            routing_key: Routing key (e.g. "auth.INFO")

        Raises:
            PublishError: channel, declaration or publish failure
        """
        await self.setup()

        message = aio_pika.Message(
            body=body,
            content_type="application/json",
        )

        try:
            await self._exchange.publish(message, routing_key=routing_key)
        except Exception as e:
            logger.error(f"Failed to publish to {self.exchange_name} with key {routing_key}: {e}")
            raise PublishError(f"failed to publish message: {e}", routing_key=routing_key) from e

        logger.info(f"Published {len(body)} bytes to {self.exchange_name} with key {routing_key}")

    async def push(self, payload: BaseModel, routing_key: str) -> None:
        """JSON-encode `payload` and publish it under `routing_key`."""
        await self.publish(encode_payload(payload), routing_key)

    async def close(self) -> None:
        """Close the emitter's channel. The connection stays open."""
        if self._channel is not None and not self._channel.is_closed:
            await self._channel.close()
        self._channel = None
        self._exchange = None
        logger.info("Event emitter closed")

    async def __aenter__(self) -> "EventEmitter":
        await self.setup()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


__all__ = ["EventEmitter"]
