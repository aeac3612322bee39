"""Async HTTP client for the remote scoring API."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from photonscore.errors import TransportError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


def _server_message(resp: httpx.Response) -> str | None:
    """Pull a `message` field out of an error body, if there is one."""
    try:
        data = resp.json()
    except ValueError:
        return None
    if isinstance(data, dict) and isinstance(data.get("message"), str) and data["message"]:
        return data["message"]
    return None


class PhotonClient:
    """Bearer-authenticated client. Every failure is raised as TransportError."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> PhotonClient:
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _get_json(self, path: str, fallback: str) -> Any:
        try:
            resp = await self._client.get(path)
        except httpx.TimeoutException as e:
            logger.error(f"GET {path} timed out: {e}")
            raise TransportError(fallback) from e
        except httpx.HTTPError as e:
            logger.error(f"GET {path} failed: {e}")
            raise TransportError(fallback) from e

        if resp.is_error:
            message = _server_message(resp)
            logger.error(f"GET {path} returned {resp.status_code}: {message or resp.text[:200]}")
            raise TransportError(message or fallback, status_code=resp.status_code)

        try:
            return resp.json()
        except ValueError as e:
            logger.error(f"GET {path} returned a non-JSON body")
            raise TransportError(fallback, status_code=resp.status_code) from e

    async def get_score(self, wallet_address: str) -> Any:
        return await self._get_json(f"/score/{wallet_address}", "Failed to fetch score")

    async def get_crypto_profile(self, wallet_address: str) -> Any:
        return await self._get_json(
            f"/crypto-profile/{wallet_address}", "Failed to fetch crypto profile"
        )
