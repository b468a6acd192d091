# ============================================================================
# MESSAGE CONTRACTS
# ============================================================================
# EPOCH: 1 - MESSAGE ROUTING
# STATUS: Foundation - Request envelope, payloads and wire helpers
# PURPOSE: Define the data crossing HTTP and exchange boundaries
# CREATED: 18 OCT 2026
# EXPORTS: Action, AuthPayload, LogPayload, MailPayload, RequestEnvelope,
#          AuthCommand, LogCommand, MailCommand, JsonResponse
# DEPENDENCIES: enum, json, pydantic
# ============================================================================
"""
Message contracts for the routing gateway.

The same payload models cross three boundaries:
- Inbound HTTP (RequestEnvelope posted to the gateway)
- Exchange (AuthPayload / LogPayload JSON under `<action>.INFO`)
- Outbound HTTP (payload JSON posted to a downstream service)

Envelope shape:
{
    "action": "log",
    "log": {"name": "test", "data": "hello"}
}

Only the payload named by `action` is relevant. `to_command()` turns the
envelope into a tagged variant that carries just that payload; an absent
payload is sent as its empty form (all fields "").
"""

import json
from enum import Enum
from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from core.errors import RequestDecodeError, UnknownActionError


# ============================================================================
# ACTIONS AND ROUTING KEYS
# ============================================================================

class Action(str, Enum):
    """Actions the gateway knows how to route."""
    AUTH = "auth"
    LOG = "log"
    MAIL = "mail"

    @classmethod
    def parse(cls, value: str) -> Optional["Action"]:
        """Return the matching Action, or None for an unknown value."""
        try:
            return cls(value)
        except ValueError:
            return None


DEFAULT_SEVERITY = "INFO"


def routing_key_for(action: Union[Action, str], severity: str = DEFAULT_SEVERITY) -> str:
    """
    Build the routing key a payload is published under.

    Example:
        routing_key_for(Action.AUTH) -> "auth.INFO"
    """
    value = action.value if isinstance(action, Action) else action
    return f"{value}.{severity}"


# ============================================================================
# PAYLOADS
# ============================================================================

class AuthPayload(BaseModel):
    """Credentials to verify with the authentication service."""
    email: str = ""
    password: str = ""


class LogPayload(BaseModel):
    """A named log entry for the logger service."""
    name: str = ""
    data: str = ""


class MailPayload(BaseModel):
    """An email for the mailer service."""

    model_config = ConfigDict(populate_by_name=True)

    from_: str = Field(default="", alias="from")
    to: str = ""
    subject: str = ""
    message: str = ""


Payload = Union[AuthPayload, LogPayload, MailPayload]

PAYLOAD_TYPES = {
    Action.AUTH: AuthPayload,
    Action.LOG: LogPayload,
    Action.MAIL: MailPayload,
}


def encode_payload(payload: BaseModel) -> bytes:
    """JSON-encode a payload exactly as it goes on the wire."""
    return payload.model_dump_json(by_alias=True).encode("utf-8")


# ============================================================================
# TAGGED VARIANTS
# ============================================================================

class AuthCommand(BaseModel):
    action: Literal["auth"] = "auth"
    payload: AuthPayload


class LogCommand(BaseModel):
    action: Literal["log"] = "log"
    payload: LogPayload


class MailCommand(BaseModel):
    action: Literal["mail"] = "mail"
    payload: MailPayload


Command = Annotated[
    Union[AuthCommand, LogCommand, MailCommand],
    Field(discriminator="action"),
]


# ============================================================================
# REQUEST ENVELOPE
# ============================================================================

class RequestEnvelope(BaseModel):
    """
    Generic request received by the gateway and decoded by the listener.

    `action` is kept as a free string so an unknown value reaches routing
    (and becomes "unknown action") instead of failing validation.
    """
    action: str = ""
    auth: Optional[AuthPayload] = None
    log: Optional[LogPayload] = None
    mail: Optional[MailPayload] = None

    def resolve_action(self) -> Optional[Action]:
        return Action.parse(self.action)

    def payload_for(self, action: Action) -> Optional[Payload]:
        return {
            Action.AUTH: self.auth,
            Action.LOG: self.log,
            Action.MAIL: self.mail,
        }[action]

    def to_command(self) -> Union[AuthCommand, LogCommand, MailCommand]:
        """
        Convert to the tagged variant for this envelope's action.

        Raises:
            UnknownActionError: action is not auth, log or mail
        """
        action = self.resolve_action()
        if action is None:
            raise UnknownActionError(self.action)

        payload = self.payload_for(action)
        if payload is None:
            payload = PAYLOAD_TYPES[action]()

        if action is Action.AUTH:
            return AuthCommand(payload=payload)
        if action is Action.LOG:
            return LogCommand(payload=payload)
        return MailCommand(payload=payload)


def decode_delivery(body: bytes, routing_key: str) -> RequestEnvelope:
    """
    Decode a message taken off the exchange into a RequestEnvelope.

    Bodies that carry an `action` field are read as full envelopes. Bare
    payloads (what the gateway publishes) take their action from the first
    word of the routing key, so `auth.INFO` yields an auth envelope. Keys
    for any other action are read as log payloads.

    Raises:
        RequestDecodeError: body is not a JSON object matching the payload
    """
    try:
        data = json.loads(body)
    except (ValueError, UnicodeDecodeError) as e:
        raise RequestDecodeError(f"invalid JSON in message: {e}")

    if not isinstance(data, dict):
        raise RequestDecodeError("message body must be a JSON object")

    try:
        if "action" in data:
            return RequestEnvelope.model_validate(data)

        action = routing_key.split(".", 1)[0]
        if action == Action.AUTH.value:
            return RequestEnvelope(action=action, auth=AuthPayload.model_validate(data))
        return RequestEnvelope(action=action, log=LogPayload.model_validate(data))
    except ValueError as e:
        raise RequestDecodeError(f"message does not match payload schema: {e}")


# ============================================================================
# RESPONSE ENVELOPE
# ============================================================================

class JsonResponse(BaseModel):
    """Uniform response envelope returned by the gateway and auth service."""
    error: bool = False
    message: str = ""
    data: Optional[Any] = None

    def to_wire(self) -> Dict[str, Any]:
        """Dict form with `data` omitted when unset."""
        wire: Dict[str, Any] = {"error": self.error, "message": self.message}
        if self.data is not None:
            wire["data"] = self.data
        return wire


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "Action",
    "DEFAULT_SEVERITY",
    "routing_key_for",
    "AuthPayload",
    "LogPayload",
    "MailPayload",
    "Payload",
    "encode_payload",
    "AuthCommand",
    "LogCommand",
    "MailCommand",
    "Command",
    "RequestEnvelope",
    "decode_delivery",
    "JsonResponse",
]
