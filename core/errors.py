# ============================================================================
# ERROR TAXONOMY
# ============================================================================
# EPOCH: 1 - MESSAGE ROUTING
# STATUS: Core - Exceptions shared by gateway, emitter and listener
# PURPOSE: One hierarchy for decode, routing, transport and service errors
# CREATED: 18 OCT 2026
# ============================================================================
"""
Error Taxonomy

Every failure the gateway can surface is a GatewayError carrying the HTTP
status the gateway answers with. The listener raises the same types but
only ever logs them.

    GatewayError
    ├── RequestDecodeError       400  malformed body / missing payload
    ├── UnknownActionError       400  action outside {auth, log, mail}
    ├── TransportError           502  HTTP client could not reach a service
    ├── ServiceCallError         502  unexpected status or error flag
    │   └── InvalidCredentialsError  401
    ├── PublishError             503  channel / declare / publish failure
    └── BrokerConnectionError    503  no broker connection at startup
"""

from typing import Any, Dict, Optional


class GatewayError(Exception):
    """Base error with the HTTP status the gateway maps it to."""

    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> Dict[str, Any]:
        return {"error": True, "message": self.message}


class RequestDecodeError(GatewayError):
    """Inbound JSON could not be decoded into a request envelope."""

    status_code = 400


class UnknownActionError(GatewayError):
    """Action is not one the gateway knows how to route."""

    status_code = 400

    def __init__(self, action: str = ""):
        super().__init__("unknown action")
        self.action = action


class TransportError(GatewayError):
    """HTTP client failure reaching a downstream service."""

    status_code = 502


class ServiceCallError(GatewayError):
    """Downstream service answered with an unexpected status."""

    status_code = 502

    def __init__(
        self,
        message: str,
        service: str = "",
        response_status: Optional[int] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message, status_code)
        self.service = service
        self.response_status = response_status


class InvalidCredentialsError(ServiceCallError):
    """Authentication service rejected the credentials (401)."""

    status_code = 401

    def __init__(self, service: str = "auth"):
        super().__init__("invalid credentials", service=service, response_status=401)


class PublishError(GatewayError):
    """Message could not be published to the exchange."""

    status_code = 503

    def __init__(self, message: str, routing_key: str = ""):
        super().__init__(message)
        self.routing_key = routing_key


class BrokerConnectionError(GatewayError):
    """Broker was unreachable after all startup attempts."""

    status_code = 503


__all__ = [
    "GatewayError",
    "RequestDecodeError",
    "UnknownActionError",
    "TransportError",
    "ServiceCallError",
    "InvalidCredentialsError",
    "PublishError",
    "BrokerConnectionError",
]
