# ============================================================================
# CORE MODULE
# ============================================================================
# EPOCH: 1 - MESSAGE ROUTING
# STATUS: Core module initialization
# PURPOSE: Export message contracts and error types
# CREATED: 18 OCT 2026
# ============================================================================

from core.contracts import (
    Action,
    AuthPayload,
    LogPayload,
    MailPayload,
    RequestEnvelope,
    JsonResponse,
    routing_key_for,
)
from core.errors import (
    GatewayError,
    RequestDecodeError,
    UnknownActionError,
    TransportError,
    ServiceCallError,
    InvalidCredentialsError,
    PublishError,
    BrokerConnectionError,
)

__all__ = [
    # Contracts
    "Action",
    "AuthPayload",
    "LogPayload",
    "MailPayload",
    "RequestEnvelope",
    "JsonResponse",
    "routing_key_for",
    # Errors
    "GatewayError",
    "RequestDecodeError",
    "UnknownActionError",
    "TransportError",
    "ServiceCallError",
    "InvalidCredentialsError",
    "PublishError",
    "BrokerConnectionError",
]
