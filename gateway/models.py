# ============================================================================
# GATEWAY MODELS
# ============================================================================
# EPOCH: 1 - MESSAGE ROUTING
# STATUS: Gateway - Response messages and health model
# PURPOSE: Pydantic models and fixed messages for the gateway API
# CREATED: 18 OCT 2026
# ============================================================================
"""
Gateway Models

The request and response envelopes live in core.contracts because the
listener decodes the same shapes. This module holds what only the HTTP
gateway needs.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from __version__ import __version__

BROKER_HIT_MESSAGE = "Hit the broker"
AUTH_QUEUED_MESSAGE = "authenticated via RabbitMQ"
LOG_QUEUED_MESSAGE = "logged via RabbitMQ"


def mail_sent_message(to: str) -> str:
    return f"message sent to {to}"


class HealthResponse(BaseModel):
    """Liveness response."""

    status: str = Field(default="alive")
    service: str = Field(default="broker-gateway")
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    version: str = Field(default=__version__)
    publisher_ready: bool = Field(default=False)


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "BROKER_HIT_MESSAGE",
    "AUTH_QUEUED_MESSAGE",
    "LOG_QUEUED_MESSAGE",
    "mail_sent_message",
    "HealthResponse",
]
