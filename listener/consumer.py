# ============================================================================
# TOPIC CONSUMER
# ============================================================================
# EPOCH: 1 - MESSAGE ROUTING
# STATUS: Core - RabbitMQ topic consumer
# PURPOSE: Bind an exclusive queue to topics and dispatch every delivery
# CREATED: 18 OCT 2026
# ============================================================================
"""
Topic Consumer

Subscribes to the topic exchange and hands each message to the dispatch
pool.

Lifecycle:
    IDLE -> CONSUMING -> STOPPED

    setup()        open a channel, declare the exchange
    start(topics)  declare an exclusive queue, bind each topic, subscribe
    listen(topics) start() and block until stop() is called
    stop()         request shutdown (safe from a signal handler)
    close()        cancel the subscription, stop the pool, close the channel

Deliveries are auto-acknowledged: a message counts as delivered as soon as
the broker hands it over, so a failed forward is never redelivered.
"""

import asyncio
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple

from aio_pika.abc import (
    AbstractChannel,
    AbstractConnection,
    AbstractExchange,
    AbstractIncomingMessage,
    AbstractQueue,
)

from core.config import ListenerConfig
from core.contracts import RequestEnvelope, decode_delivery
from core.errors import RequestDecodeError
from core.logging import ComponentType, get_logger
from listener.dispatch import Delivery, Dispatcher
from listener.pool import DispatchPool
from messaging.exchange import DEFAULT_EXCHANGE, bind_topics, declare_exchange, declare_random_queue
from messaging.topics import first_matching, normalize_topics

logger = get_logger(__name__, ComponentType.LISTENER)


class ConsumerState(str, Enum):
    """Consumer lifecycle states."""
    IDLE = "idle"
    CONSUMING = "consuming"
    STOPPED = "stopped"


class Consumer:
    """
    Consumes messages from an exclusive queue bound to topic patterns.

    Every running Consumer gets its own queue, so each one receives a copy
    of every matching message.
    """

    def __init__(
        self,
        connection: AbstractConnection,
        dispatcher: Dispatcher,
        config: Optional[ListenerConfig] = None,
        exchange_name: str = DEFAULT_EXCHANGE,
    ):
        """
        Initialize consumer.

        Args:
            connection: Open broker connection (owned by the caller)
            dispatcher: Forwards decoded messages downstream
            config: Listener configuration
            exchange_name: Topic exchange to bind to
        """
        self.config = config or ListenerConfig()
        self.exchange_name = exchange_name
        self._connection = connection
        self._dispatcher = dispatcher

        self._channel: Optional[AbstractChannel] = None
        self._exchange: Optional[AbstractExchange] = None
        self._queue: Optional[AbstractQueue] = None
        self._consumer_tag: Optional[str] = None
        self._topics: Tuple[str, ...] = ()

        self._pool: DispatchPool[Delivery] = DispatchPool(
            dispatcher.dispatch,
            max_workers=self.config.max_workers,
            queue_size=self.config.queue_size,
        )

        # State
        self.state = ConsumerState.IDLE
        self._shutdown_event = asyncio.Event()

        # Stats
        self._messages_received = 0
        self._messages_dropped = 0

    @property
    def pool(self) -> DispatchPool:
        return self._pool

    @property
    def queue_name(self) -> Optional[str]:
        return self._queue.name if self._queue else None

    @property
    def topics(self) -> Tuple[str, ...]:
        return self._topics

    async def setup(self) -> None:
        """Open a channel and declare the exchange."""
        if self._exchange is not None:
            return
        self._channel = await self._connection.channel()
        self._exchange = await declare_exchange(self._channel, self.exchange_name)

    async def start(self, topics: Optional[Iterable[str]] = None) -> None:
        """
        Bind a fresh exclusive queue to `topics` and begin consuming.

        Args:
            topics: Binding patterns; defaults to the configured topics

        Raises:
            ValueError: no topics, or an invalid pattern
        """
        if self.state is ConsumerState.CONSUMING:
            logger.warning("Consumer already running")
            return

        patterns = normalize_topics(topics if topics is not None else self.config.topics)
        if not patterns:
            raise ValueError("at least one topic is required")

        await self.setup()

        self._queue = await declare_random_queue(self._channel)
        self._topics = tuple(await bind_topics(self._queue, self._exchange, patterns))

        await self._pool.start()
        self._consumer_tag = await self._queue.consume(self._on_message, no_ack=True)

        self._shutdown_event.clear()
        self.state = ConsumerState.CONSUMING
        logger.info(
            f"Waiting for messages [exchange={self.exchange_name}, "
            f"queue={self._queue.name}, topics={list(self._topics)}]"
        )

    async def listen(self, topics: Optional[Iterable[str]] = None) -> None:
        """
        Consume until stop() is called.

        Args:
            topics: Binding patterns; defaults to the configured topics
        """
        await self.start(topics)
        try:
            await self._shutdown_event.wait()
        finally:
            await self.close()

    def stop(self) -> None:
        """Request shutdown of a running listen()."""
        logger.info("Stop requested")
        self._shutdown_event.set()

    async def close(self) -> None:
        """Cancel the subscription and release the channel; in-flight work is dropped."""
        if self.state is ConsumerState.STOPPED:
            return
        self.state = ConsumerState.STOPPED

        if self._queue is not None and self._consumer_tag is not None:
            try:
                await self._queue.cancel(self._consumer_tag)
            except Exception as e:
                logger.warning(f"Failed to cancel consumer {self._consumer_tag}: {e}")
        self._consumer_tag = None

        await self._pool.stop()

        if self._channel is not None and not self._channel.is_closed:
            await self._channel.close()
        self._channel = None
        self._exchange = None

        logger.info(
            f"Consumer stopped. Stats: received={self._messages_received}, "
            f"dropped={self._messages_dropped}"
        )

    async def _on_message(self, message: AbstractIncomingMessage) -> None:
        """Decode one delivery and hand it to the pool; never waits on dispatch."""
        self._messages_received += 1
        routing_key = message.routing_key or ""

        try:
            envelope = decode_delivery(message.body, routing_key)
        except RequestDecodeError as e:
            if self.config.drop_malformed:
                self._messages_dropped += 1
                logger.warning(f"Dropping malformed message on {routing_key}: {e.message}")
                return
            logger.debug(f"Malformed message on {routing_key}, dispatching empty envelope: {e.message}")
            envelope = RequestEnvelope()

        delivery = Delivery(
            envelope=envelope,
            routing_key=routing_key,
            message_id=message.message_id,
            queue=self.queue_name,
            binding=first_matching(self._topics, routing_key),
        )
        if not self._pool.offer(delivery):
            self._messages_dropped += 1
            logger.warning(f"Dispatch buffer full, dropping message on {routing_key}")

    def stats(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "queue": self.queue_name,
            "topics": list(self._topics),
            "messages_received": self._messages_received,
            "messages_dropped": self._messages_dropped,
            "pool": self._pool.stats(),
            "dispatch": self._dispatcher.stats(),
        }


__all__ = ["ConsumerState", "Consumer"]
