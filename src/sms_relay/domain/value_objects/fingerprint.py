"""Deterministic dedup key for inbound SMS events."""
from __future__ import annotations

import hashlib
import json

FINGERPRINT_FIELDS = ("event_type", "number", "from", "text", "ts")


def fingerprint(event: dict[str, str]) -> str:
    """SHA-256 hex digest over the identifying fields of ``event``.

    Fields are encoded as a JSON array so a separator inside one field can
    never shift a boundary into the next one.
    """
    parts = [event[name] for name in FINGERPRINT_FIELDS]
    raw = json.dumps(parts, ensure_ascii=False, separators=(",", ":"))
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()
