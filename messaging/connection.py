# ============================================================================
# BROKER CONNECTION
# ============================================================================
# EPOCH: 1 - MESSAGE ROUTING
# STATUS: Core - RabbitMQ connection lifecycle
# PURPOSE: Open and close the process-wide broker connection
# CREATED: 18 OCT 2026
# ============================================================================
"""
Broker Connection

The connection is opened once at process startup and handed explicitly to
the EventEmitter (gateway) or Consumer (listener). connect_robust restores
the connection and its channels after a drop; the startup attempts below
only cover the broker not being up yet when the process starts.
"""

import asyncio
import logging
from typing import Optional

import aio_pika
from aio_pika.abc import AbstractRobustConnection
from aio_pika.exceptions import AMQPConnectionError

from core.config import BrokerConfig
from core.errors import BrokerConnectionError

logger = logging.getLogger(__name__)


async def connect(config: Optional[BrokerConfig] = None) -> AbstractRobustConnection:
    """
    Connect to RabbitMQ.

    Args:
        config: Broker configuration (from environment if not provided)

    Returns:
        Robust connection

    Raises:
        BrokerConnectionError: broker unreachable after all attempts
    """
    config = config or BrokerConfig.from_env()
    attempts = max(1, config.connect_attempts)

    for attempt in range(1, attempts + 1):
        try:
            connection = await aio_pika.connect_robust(config.url)
            logger.info(f"Connected to RabbitMQ (attempt {attempt}/{attempts})")
            return connection
        except (AMQPConnectionError, OSError) as e:
            logger.warning(f"RabbitMQ not ready (attempt {attempt}/{attempts}): {e}")
            if attempt < attempts:
                await asyncio.sleep(config.connect_delay_seconds)

    raise BrokerConnectionError(f"could not connect to RabbitMQ after {attempts} attempts")


async def close_connection(connection: Optional[AbstractRobustConnection]) -> None:
    """Close the broker connection if it is open."""
    if connection is None or connection.is_closed:
        return
    await connection.close()
    logger.info("RabbitMQ connection closed")


__all__ = ["connect", "close_connection"]
