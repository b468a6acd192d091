# ============================================================================
# EXCHANGE AND QUEUE SETUP
# ============================================================================
# EPOCH: 1 - MESSAGE ROUTING
# STATUS: Core - Topic exchange declaration and queue binding
# PURPOSE: Shared declare/bind protocol for the emitter and the listener
# CREATED: 18 OCT 2026
# ============================================================================
"""
Exchange and Queue Setup

Both processes declare the same exchange so that whichever starts first
creates it; the declaration is idempotent as long as the arguments agree.

- Exchange: topic, durable, not auto-deleted
- Listener queue: server-named, exclusive, auto-deleted

An exclusive queue per listener process means every listener replica gets
its own copy of each matching message (broadcast, not work sharing), and
nothing queued survives a listener restart.
"""

from typing import Iterable, List

from aio_pika import ExchangeType
from aio_pika.abc import AbstractChannel, AbstractExchange, AbstractQueue

from core.logging import ComponentType, get_logger
from messaging.topics import normalize_topics

logger = get_logger(__name__, ComponentType.MESSAGING)

DEFAULT_EXCHANGE = "exchange"


async def declare_exchange(
    channel: AbstractChannel,
    name: str = DEFAULT_EXCHANGE,
) -> AbstractExchange:
    """
    Declare the durable topic exchange.

    Args:
        channel: Open channel
        name: Exchange name

    Returns:
        The declared exchange
    """
    exchange = await channel.declare_exchange(
        name,
        ExchangeType.TOPIC,
        durable=True,
        auto_delete=False,
        internal=False,
    )
    logger.debug(f"Declared topic exchange: {name}")
    return exchange


async def declare_random_queue(channel: AbstractChannel) -> AbstractQueue:
    """Declare a server-named exclusive queue that goes away with its connection."""
    queue = await channel.declare_queue(
        durable=False,
        exclusive=True,
        auto_delete=True,
    )
    logger.debug(f"Declared exclusive queue: {queue.name}")
    return queue


async def bind_topics(
    queue: AbstractQueue,
    exchange: AbstractExchange,
    topics: Iterable[str],
) -> List[str]:
    """
    Bind `queue` to `exchange` once per binding pattern.

    Args:
        queue: Queue to bind
        exchange: Topic exchange
        topics: Binding patterns (`*` one word, `#` zero or more)

    Returns:
        The patterns that were bound

    Raises:
        ValueError: a pattern is invalid (nothing is bound in that case)
    """
    patterns = normalize_topics(topics)
    for pattern in patterns:
        await queue.bind(exchange, routing_key=pattern)
        logger.info(f"Bound queue {queue.name} to {exchange.name} with {pattern}")
    return patterns


__all__ = [
    "DEFAULT_EXCHANGE",
    "declare_exchange",
    "declare_random_queue",
    "bind_topics",
]
