# ============================================================================
# MESSAGING MODULE
# ============================================================================
# EPOCH: 1 - MESSAGE ROUTING
# STATUS: Core - RabbitMQ integration
# PURPOSE: Topic exchange setup, publishing and broker connection
# CREATED: 18 OCT 2026
# ============================================================================
"""
Messaging Module

Provides RabbitMQ (aio-pika) integration for the gateway and the listener.

Usage:
    from messaging import connect, EventEmitter

    connection = await connect()
    emitter = EventEmitter(connection)
    await emitter.publish(b'{"name": "n", "data": "d"}', "log.INFO")
"""

from .connection import connect, close_connection
from .exchange import DEFAULT_EXCHANGE, declare_exchange, declare_random_queue, bind_topics
from .publisher import EventEmitter
from .topics import validate_binding_pattern, matches_binding, first_matching

__all__ = [
    "connect",
    "close_connection",
    "DEFAULT_EXCHANGE",
    "declare_exchange",
    "declare_random_queue",
    "bind_topics",
    "EventEmitter",
    "validate_binding_pattern",
    "matches_binding",
    "first_matching",
]
