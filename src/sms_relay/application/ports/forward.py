from __future__ import annotations

from typing import Any, Protocol


class ForwardClient(Protocol):
    async def post(self, payload: dict[str, Any]) -> int:
        """POST ``payload`` downstream and return the HTTP status code.

        Transport failures (connect errors, timeouts) raise
        ForwardTransientError.
        """
        ...
