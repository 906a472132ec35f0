from __future__ import annotations

import logging
from typing import Any

from sms_relay.application.exceptions import MessageParseError, StoreWriteError
from sms_relay.application.uow import UnitOfWork
from sms_relay.domain.entities.sms import StoredMessage
from sms_relay.infrastructure.bus.serializer import deserialize_message

logger = logging.getLogger(__name__)


async def persist_message(document: dict[str, Any], uow: UnitOfWork) -> StoredMessage:
    """Insert one accepted event into the primary store. Raises StoreWriteError."""
    try:
        stored = await uow.incoming_w.insert(document)
        await uow.commit()
    except StoreWriteError:
        await uow.rollback()
        raise
    return stored


async def consume_entry(
    entry_id: str,
    fields: dict[str, Any],
    uow: UnitOfWork,
) -> StoredMessage | None:
    """Parse and store one queue entry.

    Returns None when the entry has to be dropped: unparseable entries and
    failed writes are not retried here, the caller acknowledges either way.
    """
    try:
        document = deserialize_message(fields)
    except MessageParseError as exc:
        logger.error("Poison entry %s dropped: %s", entry_id, exc.detail)
        return None

    try:
        stored = await persist_message(document, uow)
    except StoreWriteError as exc:
        logger.error(
            "Store write failed for entry %s, dropping: %s (payload=%r)",
            entry_id, exc.detail, document,
        )
        return None

    logger.info("Stored entry %s as message %s", entry_id, stored.id)
    return stored
