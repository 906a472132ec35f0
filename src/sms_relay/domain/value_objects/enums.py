from __future__ import annotations

from enum import StrEnum


class IngressStatus(StrEnum):
    RECEIVED = "received"
    DUPLICATE = "duplicate"
    IGNORED_INVALID = "ignored-invalid"
    ERROR_SENDING = "error-sending"


class ForwardStatus(StrEnum):
    SUCCESS = "success"
    FAIL = "fail"
