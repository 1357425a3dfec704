"""Thin asynchronous HTTP transport for the e-commerce REST API.

Every request goes through :meth:`ApiClient.request`, which attaches the JSON
headers, optionally the bearer token of the signed-in user, and converts
transport failures and non-2xx answers into :class:`ApiRequestError` so that
callers only need to handle a single exception family.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any

import httpx

from storefront.errors import ApiRequestError, ErrorType

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Awaitable[str | None]]

_DEFAULT_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}


class ApiClient:
    """Wrap a single :class:`httpx.AsyncClient` bound to the API base URL."""

    def __init__(
        self,
        base_url: str,
        *,
        token_provider: TokenProvider | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._token_provider = token_provider
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers=_DEFAULT_HEADERS,
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> ApiClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _auth_headers(self) -> dict[str, str]:
        if self._token_provider is None:
            return {}
        token = await self._token_provider()
        if not token:
            logger.debug("No access token available; sending request unauthenticated")
            return {}
        return {"Authorization": f"Bearer {token}"}

    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
        include_auth: bool = False,
    ) -> Any:
        """Issue ``method endpoint`` and return the decoded JSON body."""

        headers = await self._auth_headers() if include_auth else {}
        logger.debug("API request %s %s (auth=%s)", method, endpoint, bool(headers))

        try:
            response = await self._client.request(
                method, endpoint, json=json, params=params, headers=headers
            )
        except httpx.TimeoutException as exc:
            raise ApiRequestError(
                f"API request timed out: {method} {endpoint}",
                error_type=ErrorType.TIMEOUT_ERROR,
                detail=str(exc),
            ) from exc
        except httpx.TransportError as exc:
            raise ApiRequestError(
                f"API request failed: {method} {endpoint}: {exc}",
                error_type=ErrorType.NETWORK_ERROR,
                detail=str(exc),
            ) from exc

        if response.is_error:
            detail: Any
            try:
                detail = response.json()
            except ValueError:
                detail = None
            logger.debug(
                "API request failed: %s %s -> %s", method, endpoint, response.status_code
            )
            raise ApiRequestError(
                f"API request failed: {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
                detail=detail,
            )

        if response.status_code == 204 or not response.content:
            return {"success": True}

        try:
            return response.json()
        except ValueError as exc:
            raise ApiRequestError(
                f"API returned a non-JSON body for {method} {endpoint}",
                status_code=response.status_code,
                error_type=ErrorType.SERVER_ERROR,
            ) from exc

    async def get(
        self,
        endpoint: str,
        *,
        params: dict[str, Any] | None = None,
        include_auth: bool = False,
    ) -> Any:
        return await self.request("GET", endpoint, params=params, include_auth=include_auth)

    async def post(self, endpoint: str, data: Any, *, include_auth: bool = False) -> Any:
        return await self.request("POST", endpoint, json=data, include_auth=include_auth)

    async def delete(
        self,
        endpoint: str,
        *,
        params: dict[str, Any] | None = None,
        include_auth: bool = False,
    ) -> Any:
        return await self.request(
            "DELETE", endpoint, params=params, include_auth=include_auth
        )


__all__ = ["ApiClient", "TokenProvider"]
