"""Import all models so create_all sees them via Base.metadata."""
from sms_relay.infrastructure.db.models.incoming import IncomingMessageModel
from sms_relay.infrastructure.db.models.outgoing import OutgoingRecordModel

__all__ = [
    "IncomingMessageModel",
    "OutgoingRecordModel",
]
