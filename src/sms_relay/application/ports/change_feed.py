from __future__ import annotations

from typing import AsyncIterator, Protocol
from uuid import UUID


class ChangeFeed(Protocol):
    def inserts(self) -> AsyncIterator[UUID]:
        """Yield the id of every newly inserted incoming message.

        Raises ChangeFeedError when the subscription breaks.
        """
        ...
