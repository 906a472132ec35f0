from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, StrictStr


class InboundEvent(BaseModel):
    """Webhook payload as accepted by the ingress gate."""

    event_type: Literal["message"]
    number: StrictStr
    sender: StrictStr = Field(alias="from")
    text: StrictStr
    ts: StrictStr

    model_config = ConfigDict(extra="ignore")

    def identity(self) -> dict[str, str]:
        return {
            "event_type": self.event_type,
            "number": self.number,
            "from": self.sender,
            "text": self.text,
            "ts": self.ts,
        }
