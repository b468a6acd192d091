# ============================================================================
# GATEWAY MODULE
# ============================================================================
# EPOCH: 1 - MESSAGE ROUTING
# STATUS: Gateway - Request submission interface for clients
# PURPOSE: Provides the /handle endpoint and action dispatcher
# CREATED: 18 OCT 2026
# ============================================================================
"""
Gateway Module

The gateway receives request envelopes, validates the action, and either
publishes the payload to the topic exchange (auth, log) or forwards it
straight to the mailer service (mail).
"""

from gateway.dispatcher import GatewayDispatcher
from gateway.routes import router as gateway_router, set_gateway_services

__all__ = [
    "GatewayDispatcher",
    "gateway_router",
    "set_gateway_services",
]
