"""Async HTTP client for the instance API.

Provides the status query and the stop request used by status pages.
Auth uses the caller's bearer token, passed per call because tokens are
fetched fresh from the token provider for every request.

There is no retry or per-request timeout here: the poller's next
interval is the retry, and a slow response only delays its own result.
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

from ..errors import NetworkFailureError, RemoteRejectedError

logger = logging.getLogger(__name__)


# ── Module-level shared client ───────────────────────────────────

_shared_async_client: httpx.AsyncClient | None = None


def _get_shared_async_client() -> httpx.AsyncClient:
    global _shared_async_client
    if _shared_async_client is None:
        _shared_async_client = httpx.AsyncClient(timeout=None)
    return _shared_async_client


async def close_shared_async_client() -> None:
    """Close the shared client, if one was created. Called on app shutdown."""
    global _shared_async_client
    client, _shared_async_client = _shared_async_client, None
    if client is not None:
        await client.aclose()


# ── Client ───────────────────────────────────────────────────────


class InstancesClient:
    """Async HTTP client for the instance status and control endpoints."""

    def __init__(
        self,
        *,
        base_url: str,
        status_path: str = "/instances/{instance_id}",
        stop_path: str = "/instances/{instance_id}",
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        if not base_url:
            raise ValueError("base_url is required")

        self._base_url = base_url.rstrip("/")
        self._status_path = status_path
        self._stop_path = stop_path
        self._client = http_client or _get_shared_async_client()

    @classmethod
    def from_settings(cls, settings: Any, **kwargs: Any) -> InstancesClient:
        return cls(
            base_url=settings.api_base_url,
            status_path=settings.status_path,
            stop_path=settings.stop_path,
            **kwargs,
        )

    def _url(self, template: str, instance_id: str) -> str:
        # Instance ids are opaque; keep them inside a single path segment.
        path = template.format(instance_id=quote(instance_id, safe=""))
        return f"{self._base_url}{path}"

    def _raise_for_status(self, resp: httpx.Response) -> None:
        if resp.is_success:
            return

        body = resp.text
        message: str | None = None

        try:
            payload = resp.json()
            if isinstance(payload, dict) and payload.get("message"):
                message = str(payload["message"])
        except ValueError:
            pass

        raise RemoteRejectedError(
            status_code=resp.status_code,
            message=message,
            response_body=body[:500],
        )

    async def _request(
        self, method: str, url: str, *, token: str
    ) -> httpx.Response:
        try:
            return await self._client.request(
                method,
                url,
                headers={"Authorization": f"Bearer {token}"},
                timeout=None,
            )
        except httpx.HTTPError as e:
            raise NetworkFailureError(f"{method} {url} failed: {e}") from e

    # ── Public API ───────────────────────────────────────────────

    async def get_instance(self, instance_id: str, *, token: str) -> Any:
        """Fetch the instance status document.

        Raises NetworkFailureError on transport failure or an undecodable
        body, RemoteRejectedError on a non-2xx response.
        """
        resp = await self._request(
            "GET", self._url(self._status_path, instance_id), token=token
        )
        self._raise_for_status(resp)
        try:
            return resp.json()
        except ValueError as e:
            raise NetworkFailureError(
                f"status response for {instance_id} is not JSON"
            ) from e

    async def stop_instance(self, instance_id: str, *, token: str) -> None:
        """Ask the instance API to stop an instance."""
        resp = await self._request(
            "DELETE", self._url(self._stop_path, instance_id), token=token
        )
        self._raise_for_status(resp)
        logger.info(
            "Instance stop accepted: instance=%s",
            instance_id,
            extra={"instance_id": instance_id},
        )
