# craftworks/api/routes_webhooks.py
"""
GitHub webhook ingress.

Verifies the delivery signature over the raw body, then dispatches by
event type. Only pull_request events drive handoffs.
"""

import json
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request

from ..errors import CraftworksError
from ..logging import get_api_logger
from ..webhooks import WebhookSecretMissing, handle_pull_request_event, verify_webhook_signature
from .deps import ServiceRegistry, get_services, http_error

router = APIRouter(prefix="/api/webhook", tags=["webhooks"])
logger = get_api_logger()


@router.post("")
async def receive_webhook(
    request: Request,
    x_github_event: Optional[str] = Header(None),
    x_github_delivery: Optional[str] = Header(None),
    x_hub_signature_256: Optional[str] = Header(None),
    services: ServiceRegistry = Depends(get_services),
) -> Dict[str, Any]:
    """
    Receive a GitHub webhook delivery.

    Returns:
        Event name plus the handler result
    """
    body = await request.body()
    if not body:
        raise HTTPException(status_code=400, detail="Empty request body")

    try:
        valid = verify_webhook_signature(body, x_hub_signature_256, services.settings.webhook_secret)
    except WebhookSecretMissing:
        logger.error("webhook_secret_missing")
        raise HTTPException(status_code=500, detail="Webhook secret not configured")

    if not valid:
        logger.warning(
            "webhook_signature_rejected",
            delivery_id=x_github_delivery,
            event=x_github_event,
        )
        raise HTTPException(status_code=401, detail="Invalid webhook signature")

    if not x_github_event:
        raise HTTPException(status_code=400, detail="Missing X-GitHub-Event header")

    try:
        payload = json.loads(body)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid JSON payload")

    logger.info("webhook_received", event=x_github_event, delivery_id=x_github_delivery)

    if x_github_event == "ping":
        return {"event": "ping", "message": "pong"}

    if x_github_event == "pull_request":
        try:
            result = handle_pull_request_event(payload, services.handoffs)
        except CraftworksError as e:
            raise http_error(e)
        return {"event": x_github_event, **result}

    return {
        "event": x_github_event,
        "handled": False,
        "message": f"Event {x_github_event} not handled",
    }
