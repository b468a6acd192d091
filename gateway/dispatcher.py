# ============================================================================
# GATEWAY DISPATCHER
# ============================================================================
# EPOCH: 1 - MESSAGE ROUTING
# STATUS: Gateway - Action routing for inbound requests
# PURPOSE: Publish auth/log payloads, forward mail, reject unknown actions
# CREATED: 18 OCT 2026
# ============================================================================
"""
Gateway Dispatcher

Resolves a RequestEnvelope to exactly one outbound call:

    auth  -> publish AuthPayload with key auth.INFO
    log   -> publish LogPayload with key log.INFO
    mail  -> POST MailPayload to the mailer service (synchronous)
    other -> UnknownActionError, nothing sent

Publishing returns as soon as the broker has the message; the listener
does the actual forwarding later.
"""

from core.contracts import (
    Action,
    AuthCommand,
    JsonResponse,
    LogCommand,
    RequestEnvelope,
    routing_key_for,
)
from core.logging import ComponentType, get_logger, log_context
from gateway.models import AUTH_QUEUED_MESSAGE, LOG_QUEUED_MESSAGE, mail_sent_message
from messaging.publisher import EventEmitter
from services.forwarder import ServiceClient

logger = get_logger(__name__, ComponentType.GATEWAY)


class GatewayDispatcher:
    """Routes request envelopes to the exchange or the mailer."""

    def __init__(self, emitter: EventEmitter, services: ServiceClient):
        self._emitter = emitter
        self._services = services

    @property
    def emitter(self) -> EventEmitter:
        return self._emitter

    async def submit(self, envelope: RequestEnvelope) -> JsonResponse:
        """
        Dispatch one envelope.

        Returns:
            Success envelope for the caller (sent with 202)

        Raises:
            GatewayError: decode, routing, publish or downstream failure
        """
        command = envelope.to_command()

        with log_context(action=command.action, component=ComponentType.GATEWAY.value):
            if isinstance(command, AuthCommand):
                key = routing_key_for(Action.AUTH)
                await self._emitter.push(command.payload, key)
                logger.info(f"Queued auth request for {command.payload.email} on {key}")
                return JsonResponse(message=AUTH_QUEUED_MESSAGE)

            if isinstance(command, LogCommand):
                key = routing_key_for(Action.LOG)
                await self._emitter.push(command.payload, key)
                logger.info(f"Queued log entry '{command.payload.name}' on {key}")
                return JsonResponse(message=LOG_QUEUED_MESSAGE)

            await self._services.send_mail(command.payload)
            return JsonResponse(message=mail_sent_message(command.payload.to))


__all__ = ["GatewayDispatcher"]
