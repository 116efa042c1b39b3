from __future__ import annotations

import logging
from typing import Any, NoReturn

import httpx
from pydantic import ValidationError

from detailing_booking.application.exceptions import TransportFailure
from detailing_booking.domain.entities.booking import ApiEnvelope


class EnvelopeClient:
    """
    Async JSON client for services that wrap every response in
    `{success, data?, error?: {message, code}}`.

    Network errors, non-JSON bodies, HTTP errors, `success=false` and missing
    `data` all surface as TransportFailure.
    """

    def __init__(
        self,
        base_url: str,
        service_name: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        self._service_name = service_name
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
            headers={"Content-Type": "application/json", **(headers or {})},
        )
        self._logger = logging.getLogger(__name__)

    async def request(
        self,
        method: str,
        path: str,
        data_type: Any,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Send a request and return the envelope's `data` parsed as `data_type`."""
        envelope = await self.request_envelope(method, path, data_type, json=json, params=params)
        if envelope.data is None:
            self._fail(f"{self._service_name} returned no data", "MISSING_DATA", path)
        return envelope.data

    async def request_envelope(
        self,
        method: str,
        path: str,
        data_type: Any = Any,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
    ) -> ApiEnvelope:
        try:
            resp = await self._client.request(method, path, json=json, params=params)
        except httpx.HTTPError as e:
            self._fail(f"{self._service_name} request failed: {e}", "NETWORK_ERROR", path, cause=e)

        try:
            body = resp.json()
        except ValueError as e:
            self._fail(
                f"{self._service_name} returned an invalid response",
                "INVALID_RESPONSE",
                path,
                status_code=resp.status_code,
                cause=e,
            )

        try:
            envelope = ApiEnvelope[data_type].model_validate(body)
        except ValidationError as e:
            self._fail(
                f"{self._service_name} returned an unexpected payload",
                "INVALID_RESPONSE",
                path,
                status_code=resp.status_code,
                cause=e,
            )

        if not envelope.success:
            error = envelope.error
            self._fail(
                error.message if error else f"{self._service_name} request failed",
                error.code if error else "API_ERROR",
                path,
                status_code=resp.status_code,
            )
        if resp.status_code >= 400:
            self._fail(
                f"{self._service_name} responded with HTTP {resp.status_code}",
                "HTTP_ERROR",
                path,
                status_code=resp.status_code,
            )
        return envelope

    async def aclose(self) -> None:
        await self._client.aclose()

    def _fail(
        self,
        message: str,
        code: str,
        path: str,
        status_code: int | None = None,
        cause: Exception | None = None,
    ) -> NoReturn:
        self._logger.error(
            "Upstream call failed",
            extra={"error": message, "reason": f"{code} {path}".strip(), "channel": self._service_name},
        )
        raise TransportFailure(message, code=code, status_code=status_code) from cause
