from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import DDL, event, text
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column

from sms_relay.infrastructure.db.base import Base

INSERT_CHANNEL = "sms_incoming_inserted"


class IncomingMessageModel(Base):
    __tablename__ = "sms_incoming"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=text("gen_random_uuid()"),
    )
    document: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )


# Every insert publishes the new row id on INSERT_CHANNEL for the forwarder.
_notify_function = DDL(
    "CREATE OR REPLACE FUNCTION notify_sms_incoming_inserted() RETURNS trigger AS $$ "
    "BEGIN "
    f"PERFORM pg_notify('{INSERT_CHANNEL}', NEW.id::text); "
    "RETURN NEW; "
    "END; "
    "$$ LANGUAGE plpgsql"
)
_drop_trigger = DDL("DROP TRIGGER IF EXISTS trg_sms_incoming_inserted ON sms_incoming")
_create_trigger = DDL(
    "CREATE TRIGGER trg_sms_incoming_inserted "
    "AFTER INSERT ON sms_incoming "
    "FOR EACH ROW EXECUTE FUNCTION notify_sms_incoming_inserted()"
)

for _ddl in (_notify_function, _drop_trigger, _create_trigger):
    event.listen(IncomingMessageModel.__table__, "after_create", _ddl)
