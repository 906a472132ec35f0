from __future__ import annotations

from sms_relay.domain.entities.sms import OutgoingRecord, StoredMessage
from sms_relay.domain.value_objects.enums import ForwardStatus
from sms_relay.infrastructure.db.models.incoming import IncomingMessageModel


def incoming_to_entity(model: IncomingMessageModel) -> StoredMessage:
    return StoredMessage(
        id=model.id,
        document=model.document,
        created_at=model.created_at,
    )


def outgoing_to_values(record: OutgoingRecord) -> dict:
    succeeded = record.status is ForwardStatus.SUCCESS
    return {
        "message_id": record.message_id,
        "status": record.status.value,
        "payload": record.payload,
        "attempts": record.attempts,
        "error": record.error,
        "forwarded_at": record.recorded_at if succeeded else None,
        "failed_at": None if succeeded else record.recorded_at,
    }
