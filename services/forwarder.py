# ============================================================================
# DOWNSTREAM FORWARDER
# ============================================================================
# EPOCH: 1 - MESSAGE ROUTING
# STATUS: Core - Async HTTP client for mailer, logger and auth services
# PURPOSE: POST payloads to downstream services and classify the answer
# CREATED: 18 OCT 2026
# ============================================================================
"""
Downstream Forwarder

Async httpx client shared by the gateway (mail path) and the listener
(auth and log paths). Every call has the same shape:

1. JSON-encode the payload
2. POST it with Content-Type: application/json to the service's fixed URL
3. Classify the response:
   - 202 Accepted          -> success
   - 401 (auth path only)  -> InvalidCredentialsError
   - anything else         -> ServiceCallError
   Client failures (connect, timeout) become TransportError.

On auth success the body is decoded as a JsonResponse and its `error` flag
is raised as a failure.
"""

from typing import Optional

import httpx
from pydantic import BaseModel

from core.config import ServiceEndpoints
from core.contracts import AuthPayload, JsonResponse, LogPayload, MailPayload, encode_payload
from core.errors import InvalidCredentialsError, ServiceCallError, TransportError
from core.logging import ComponentType, get_logger

logger = get_logger(__name__, ComponentType.FORWARDER)

JSON_HEADERS = {"Content-Type": "application/json"}


class ServiceClient:
    """Async HTTP client for the downstream services."""

    def __init__(
        self,
        endpoints: Optional[ServiceEndpoints] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Args:
            endpoints: Service URLs and timeout (from environment if not provided)
            http_client: Client to use; created lazily and owned here if not provided
        """
        self.endpoints = endpoints or ServiceEndpoints.from_env()
        self._client = http_client
        self._owns_client = http_client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.endpoints.timeout_seconds),
            )
            self._owns_client = True
        return self._client

    async def close(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _post(self, service: str, url: str, payload: BaseModel) -> httpx.Response:
        """POST `payload` as JSON, turning client failures into TransportError."""
        body = encode_payload(payload)
        try:
            response = await self._get_client().post(url, content=body, headers=JSON_HEADERS)
        except httpx.TimeoutException as e:
            logger.error(f"Timeout calling {service} service at {url}: {e}")
            raise TransportError(f"timeout calling {service} service") from e
        except httpx.HTTPError as e:
            logger.error(f"Cannot reach {service} service at {url}: {e}")
            raise TransportError(f"cannot reach {service} service: {e}") from e

        logger.debug(f"{service} service answered {response.status_code}")
        return response

    @staticmethod
    def _require_accepted(service: str, response: httpx.Response) -> None:
        if response.status_code != httpx.codes.ACCEPTED:
            raise ServiceCallError(
                f"error calling {service} service",
                service=service,
                response_status=response.status_code,
            )

    # ------------------------------------------------------------------
    # MAIL
    # ------------------------------------------------------------------

    async def send_mail(self, payload: MailPayload) -> None:
        """POST the mail to the mailer service."""
        response = await self._post("mail", self.endpoints.mailer_url, payload)
        self._require_accepted("mail", response)
        logger.info(f"Mail accepted for {payload.to}")

    # ------------------------------------------------------------------
    # LOG
    # ------------------------------------------------------------------

    async def log_event(self, payload: LogPayload) -> None:
        """POST the log entry to the logger service."""
        response = await self._post("logger", self.endpoints.logger_url, payload)
        self._require_accepted("logger", response)
        logger.info(f"Log entry '{payload.name}' accepted")

    # ------------------------------------------------------------------
    # AUTH
    # ------------------------------------------------------------------

    async def auth_event(self, payload: AuthPayload) -> JsonResponse:
        """
        POST credentials to the authentication service.

        Returns:
            The service's JsonResponse

        Raises:
            InvalidCredentialsError: service answered 401
            ServiceCallError: any other non-202, undecodable body, or error flag set
            TransportError: service unreachable
        """
        response = await self._post("auth", self.endpoints.auth_url, payload)

        if response.status_code == httpx.codes.UNAUTHORIZED:
            raise InvalidCredentialsError()
        self._require_accepted("auth", response)

        try:
            result = JsonResponse.model_validate_json(response.content)
        except ValueError as e:
            raise ServiceCallError(
                "invalid response from auth service",
                service="auth",
                response_status=response.status_code,
            ) from e

        if result.error:
            raise ServiceCallError(
                result.message or "auth service reported an error",
                service="auth",
                response_status=response.status_code,
                status_code=401,
            )

        logger.info(f"Authenticated {payload.email}")
        return result

    async def __aenter__(self) -> "ServiceClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


__all__ = ["ServiceClient"]
