# ============================================================================
# LISTENER MODULE
# ============================================================================
# EPOCH: 1 - MESSAGE ROUTING
# STATUS: Core - Topic listener components
# PURPOSE: Consume the exchange and forward messages downstream
# CREATED: 18 OCT 2026
# ============================================================================
"""
Listener Module

Components of the listener process:
- consumer: exclusive queue, topic bindings, subscription
- pool: bounded concurrent dispatch
- dispatch: per-message routing to the logger or auth service
- main: listener entry point
"""

from listener.pool import DispatchPool
from listener.dispatch import Delivery, Dispatcher
from listener.consumer import Consumer, ConsumerState

__all__ = [
    "DispatchPool",
    "Delivery",
    "Dispatcher",
    "Consumer",
    "ConsumerState",
]
