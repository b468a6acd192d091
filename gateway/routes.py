# ============================================================================
# GATEWAY ROUTES
# ============================================================================
# EPOCH: 1 - MESSAGE ROUTING
# STATUS: Gateway - FastAPI routes for request submission
# PURPOSE: HTTP endpoints of the broker gateway
# CREATED: 18 OCT 2026
# ============================================================================
"""
Gateway Routes

FastAPI router for the broker gateway.
Provides endpoints for:
- POST /handle - Submit a RequestEnvelope (auth, log or mail)
- GET|POST /   - No-op "Hit the broker" response
- GET /livez   - Liveness check

Every answer is a JsonResponse envelope: {error, message, data?}.
Failures go through error_json() with the status their GatewayError
carries (400 decode/unknown action, 401 invalid credentials, 502
downstream, 503 publish).
"""

import logging
from typing import Optional

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from core.config import GatewayConfig
from core.contracts import JsonResponse, RequestEnvelope
from core.errors import GatewayError, RequestDecodeError
from gateway.dispatcher import GatewayDispatcher
from gateway.models import BROKER_HIT_MESSAGE, HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Gateway"])


# ============================================================================
# DEPENDENCY INJECTION
# ============================================================================

_dispatcher: Optional[GatewayDispatcher] = None
_config: GatewayConfig = GatewayConfig()


def set_gateway_services(
    dispatcher: Optional[GatewayDispatcher],
    config: Optional[GatewayConfig] = None,
):
    """Called by main.py at startup to inject the dispatcher."""
    global _dispatcher, _config
    _dispatcher = dispatcher
    if config is not None:
        _config = config


def _get_dispatcher() -> GatewayDispatcher:
    """Get the dispatcher, raising 503 if not initialized."""
    if _dispatcher is None:
        raise GatewayError("gateway not initialized", status_code=503)
    return _dispatcher


# ============================================================================
# JSON HELPERS
# ============================================================================

def write_json(payload: JsonResponse, status_code: int = status.HTTP_200_OK) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=payload.to_wire())


def error_json(error: GatewayError) -> JSONResponse:
    """Render any GatewayError as an error envelope."""
    return write_json(JsonResponse(error=True, message=error.message), error.status_code)


async def read_envelope(request: Request, max_bytes: int) -> RequestEnvelope:
    """
    Decode the request body into a RequestEnvelope.

    At most `max_bytes` are read: a larger declared Content-Length is
    rejected up front, and streaming stops once the limit is passed.

    Raises:
        RequestDecodeError: body too large, not a single JSON object,
            or does not match the envelope schema
    """
    too_large = RequestDecodeError(f"request body must not be larger than {max_bytes} bytes")

    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > max_bytes:
        raise too_large

    raw = bytearray()
    async for chunk in request.stream():
        raw.extend(chunk)
        if len(raw) > max_bytes:
            raise too_large

    if not raw.strip():
        raise RequestDecodeError("request body must not be empty")

    try:
        return RequestEnvelope.model_validate_json(raw)
    except ValueError as e:
        raise RequestDecodeError(f"invalid request body: {_first_error(e)}")


def _first_error(error: ValueError) -> str:
    errors = getattr(error, "errors", None)
    if callable(errors):
        details = errors()
        if details:
            return details[0].get("msg", str(error))
    return str(error)


# ============================================================================
# ROUTES
# ============================================================================

@router.api_route(
    "/",
    methods=["GET", "POST"],
    summary="Broker no-op",
    description="Returns a fixed message without touching the broker.",
)
async def broker() -> JSONResponse:
    return write_json(JsonResponse(message=BROKER_HIT_MESSAGE))


@router.post(
    "/handle",
    status_code=status.HTTP_202_ACCEPTED,
    summary="Submit a request",
    description="""
    Route a request by its `action`:

    - **auth**: publish credentials with routing key `auth.INFO`
    - **log**: publish the log entry with routing key `log.INFO`
    - **mail**: send the mail through the mailer service

    Returns 202 once the message is published (auth, log) or the mailer
    has accepted the mail. Any other action is rejected.
    """,
)
async def handle_submission(request: Request) -> JSONResponse:
    """
    Submit one RequestEnvelope.

    Flow:
    1. Decode the body
    2. Resolve the action
    3. Publish or forward
    4. Return the JsonResponse with 202
    """
    try:
        envelope = await read_envelope(request, _config.max_body_bytes)
        dispatcher = _get_dispatcher()
        result = await dispatcher.submit(envelope)
        return write_json(result, status.HTTP_202_ACCEPTED)

    except GatewayError as e:
        logger.warning(f"Request failed ({e.status_code}): {e.message}")
        return error_json(e)
    except Exception as e:
        logger.exception(f"Unexpected error handling request: {e}")
        return error_json(GatewayError("internal error handling request"))


@router.get(
    "/livez",
    response_model=HealthResponse,
    summary="Liveness check",
    description="Does not publish anything; reports whether the emitter has declared its exchange.",
)
async def liveness() -> HealthResponse:
    ready = _dispatcher is not None and _dispatcher.emitter.ready
    return HealthResponse(publisher_ready=ready)


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "router",
    "set_gateway_services",
    "write_json",
    "error_json",
    "read_envelope",
]
