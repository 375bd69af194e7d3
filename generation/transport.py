"""
Outbound transport to the local generation proxy.

Adapters never talk to httpx directly. Each call here issues exactly one
HTTP request, attaches the credential header, and turns failures into the
generation error taxonomy:

- connectivity / timeout   -> TransportError
- non-2xx HTTP status      -> ProviderError (body kept for diagnosis)
- body is not a JSON object -> DataExtractionError
"""

import logging
from typing import Any, Optional

import httpx

from .errors import DataExtractionError, ProviderError, TransportError

logger = logging.getLogger(__name__)

CREDENTIAL_HEADER = "X-API-Key"


class ProxyTransport:
    """
    Thin JSON client bound to the proxy base address.

    Usage:
        transport = ProxyTransport("http://localhost:3001")
        data = await transport.post_json("sutu", "/api/sora/generations", body, api_key)
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        if base_url is None or timeout is None:
            from core.config import get_config

            api = get_config().api
            base_url = base_url or api.proxy_base
            timeout = timeout if timeout is not None else api.request_timeout

        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def close(self):
        """Close the HTTP client if this transport created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    async def request_json(
        self,
        provider: str,
        method: str,
        path: str,
        credential: str,
        json_body: Optional[dict[str, Any]] = None,
        params: Optional[dict[str, Any]] = None,
    ) -> Any:
        """Issue one request and return the decoded JSON body."""
        client = await self._get_client()
        headers = {CREDENTIAL_HEADER: credential}
        if json_body is not None:
            headers["Content-Type"] = "application/json"

        try:
            response = await client.request(
                method,
                self.url(path),
                json=json_body,
                params=params,
                headers=headers,
            )
        except httpx.TimeoutException as e:
            raise TransportError(
                f"{provider} request timeout: {type(e).__name__}",
                provider=provider,
                cause=e,
                error_code="TIMEOUT",
            ) from e
        except httpx.RequestError as e:
            raise TransportError(
                f"{provider} request failed: {type(e).__name__}: {e}",
                provider=provider,
                cause=e,
            ) from e

        if not response.is_success:
            body = response.text
            logger.error(f"{provider} returned HTTP {response.status_code}: {body[:500]}")
            raise ProviderError(
                provider,
                response.status_code,
                f"{method} {path} failed: {body}",
                raw={"error_text": body},
            )

        try:
            return response.json()
        except ValueError as e:
            raise DataExtractionError(
                provider=provider,
                field_name="json body",
                raw=response.text,
            ) from e

    async def post_json(
        self,
        provider: str,
        path: str,
        body: dict[str, Any],
        credential: str,
    ) -> Any:
        return await self.request_json(provider, "POST", path, credential, json_body=body)

    async def get_json(
        self,
        provider: str,
        path: str,
        credential: str,
        params: Optional[dict[str, Any]] = None,
    ) -> Any:
        return await self.request_json(provider, "GET", path, credential, params=params)
