from __future__ import annotations

import logging

from fastapi import APIRouter, Request

from sms_relay.api.deps import DedupCacheDep, PublisherDep
from sms_relay.api.v1.schemas.sms import IngressResponse
from sms_relay.services import ingress_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["sms"])


@router.post("/sms", response_model=IngressResponse)
async def receive_sms(
    request: Request,
    cache: DedupCacheDep,
    publisher: PublisherDep,
) -> IngressResponse:
    """Webhook for inbound SMS events.

    Always answers 200 so the sender never retries; the outcome is carried
    in ``status`` only.
    """
    try:
        payload = await request.json()
    except ValueError:
        logger.warning("Request body is not valid JSON")
        payload = None

    status = await ingress_service.handle_inbound(payload, cache, publisher)
    return IngressResponse(status=status)
