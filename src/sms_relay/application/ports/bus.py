from __future__ import annotations

from typing import Any, Protocol


class MessagePublisher(Protocol):
    async def enqueue(self, payload: dict[str, Any]) -> None:
        """Append ``payload`` to the durable queue or raise BrokerSendError."""
        ...
