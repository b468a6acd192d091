# ============================================================================
# SERVICES MODULE
# ============================================================================
# EPOCH: 1 - MESSAGE ROUTING
# STATUS: Core - Downstream service clients
# PURPOSE: HTTP forwarding to mailer, logger and authentication services
# CREATED: 18 OCT 2026
# ============================================================================
"""
Services Module

Usage:
    from services import ServiceClient

    services = ServiceClient()
    await services.log_event(LogPayload(name="test", data="hello"))
"""

from .forwarder import ServiceClient

__all__ = [
    "ServiceClient",
]
