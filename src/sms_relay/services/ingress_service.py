from __future__ import annotations

import logging
from typing import Any

import pydantic

from sms_relay.application.dto.inbound import InboundEvent
from sms_relay.application.exceptions import BrokerSendError, ValidationError
from sms_relay.application.ports.bus import MessagePublisher
from sms_relay.domain.value_objects.enums import IngressStatus
from sms_relay.domain.value_objects.fingerprint import fingerprint
from sms_relay.infrastructure.cache.dedup import DedupCache

logger = logging.getLogger(__name__)


def validate_inbound(payload: Any) -> InboundEvent:
    try:
        return InboundEvent.model_validate(payload)
    except pydantic.ValidationError as exc:
        raise ValidationError(f"{exc.error_count()} invalid field(s)") from exc


async def handle_inbound(
    payload: Any,
    cache: DedupCache,
    publisher: MessagePublisher,
) -> IngressStatus:
    """Validate, deduplicate and enqueue one webhook payload.

    Never raises: every outcome is reported through the returned status so
    the caller can always answer the sender with a success response.
    """
    try:
        event = validate_inbound(payload)
    except ValidationError as exc:
        logger.warning("Invalid payload ignored (%s): %r", exc.detail, payload)
        return IngressStatus.IGNORED_INVALID

    key = fingerprint(event.identity())
    if not cache.claim(key):
        logger.warning("Duplicate within TTL ignored: %s", key)
        return IngressStatus.DUPLICATE

    try:
        await publisher.enqueue(payload)
    except BrokerSendError as exc:
        logger.error("Failed to enqueue %s: %s", key, exc.detail)
        return IngressStatus.ERROR_SENDING

    logger.info("Enqueued %s (from=%s number=%s)", key, event.sender, event.number)
    return IngressStatus.RECEIVED
