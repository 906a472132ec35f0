from __future__ import annotations

import json
from typing import Any

from sms_relay.application.exceptions import MessageParseError

INBOUND_EVENT = "sms.inbound"


def serialize_message(payload: dict[str, Any]) -> dict[str, str]:
    """Stream entry fields for one queued inbound SMS."""
    return {
        "event_type": INBOUND_EVENT,
        "data": json.dumps(payload, ensure_ascii=False),
    }


def deserialize_message(fields: dict[str, Any]) -> dict[str, Any]:
    raw = fields.get("data")
    if raw is None:
        raise MessageParseError("stream entry has no data field")
    try:
        document = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise MessageParseError(f"malformed JSON: {exc}") from exc
    if not isinstance(document, dict):
        raise MessageParseError(f"expected a JSON object, got {type(document).__name__}")
    return document
