from __future__ import annotations

from pydantic import BaseModel

from sms_relay.domain.value_objects.enums import IngressStatus


class IngressResponse(BaseModel):
    status: IngressStatus
