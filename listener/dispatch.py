# ============================================================================
# LISTENER DISPATCH
# ============================================================================
# EPOCH: 1 - MESSAGE ROUTING
# STATUS: Core - Per-message forwarding for the listener
# PURPOSE: Route a decoded message to the logger or auth service
# CREATED: 18 OCT 2026
# ============================================================================
"""
Listener Dispatch

Each delivery taken off the queue is routed by action:

    log   -> logger service
    auth  -> authentication service
    other -> logger service

Nobody is waiting for the outcome (the gateway already answered 202 when
it published), so failures are logged here and go no further.
"""

from dataclasses import dataclass
from typing import Dict, Optional

from core.contracts import Action, AuthPayload, LogPayload, RequestEnvelope
from core.errors import GatewayError, InvalidCredentialsError
from core.logging import ComponentType, get_logger, log_context
from services.forwarder import ServiceClient

logger = get_logger(__name__, ComponentType.LISTENER)


@dataclass(frozen=True)
class Delivery:
    """A decoded message plus the delivery details used for logging."""
    envelope: RequestEnvelope
    routing_key: str = ""
    message_id: Optional[str] = None
    queue: Optional[str] = None
    binding: Optional[str] = None


class Dispatcher:
    """Forwards decoded messages to downstream services."""

    def __init__(self, services: ServiceClient):
        self._services = services
        self._forwarded = 0
        self._failed = 0

    async def dispatch(self, delivery: Delivery) -> None:
        """Handle one delivery, logging (never raising) forwarding failures."""
        envelope = delivery.envelope
        with log_context(
            action=envelope.action or None,
            routing_key=delivery.routing_key or None,
            message_id=delivery.message_id,
            queue=delivery.queue,
            component=ComponentType.LISTENER.value,
            extra={"binding": delivery.binding} if delivery.binding else {},
        ):
            try:
                await self.handle(envelope)
                self._forwarded += 1
            except InvalidCredentialsError as e:
                self._failed += 1
                logger.warning(f"Authentication rejected for {delivery.routing_key}: {e.message}")
            except GatewayError as e:
                self._failed += 1
                logger.error(f"Failed to forward {delivery.routing_key or 'message'}: {e.message}")

    async def handle(self, envelope: RequestEnvelope) -> None:
        """
        Forward one envelope to the service its action names.

        Raises:
            GatewayError: transport or service failure
        """
        action = envelope.resolve_action()

        if action is Action.AUTH:
            await self._services.auth_event(envelope.auth or AuthPayload())
            return

        if action is not Action.LOG:
            logger.debug(f"No listener route for action '{envelope.action}', forwarding as log")
        await self._services.log_event(envelope.log or LogPayload())

    def stats(self) -> Dict[str, int]:
        return {"forwarded": self._forwarded, "failed": self._failed}


__all__ = ["Delivery", "Dispatcher"]
