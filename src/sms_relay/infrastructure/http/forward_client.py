from __future__ import annotations

import logging
from typing import Any

import httpx

from sms_relay.application.exceptions import ForwardTransientError

logger = logging.getLogger(__name__)


class HttpxForwardClient:
    """Implements application.ports.forward.ForwardClient.

    Each attempt is bounded by ``timeout`` seconds; a timeout counts as a
    transient failure like any other transport error.
    """

    def __init__(
        self,
        endpoint: str,
        *,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._endpoint = endpoint
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def post(self, payload: dict[str, Any]) -> int:
        try:
            response = await self._client.post(
                self._endpoint,
                json=payload,
                headers={"Content-Type": "application/json"},
            )
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise ForwardTransientError(f"{type(exc).__name__}: {exc}") from exc
        logger.debug("POST %s -> %d", self._endpoint, response.status_code)
        return response.status_code

    async def aclose(self) -> None:
        await self._client.aclose()
