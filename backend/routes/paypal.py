# backend/routes/paypal.py
import json
import logging
import httpx
from fastapi import APIRouter, Request, Depends, HTTPException
from sqlalchemy.orm import Session

from database import get_db
from services.errors import InvalidStatusTransition
from services.payments import apply_provider_event
from utils.audit import client_ip
from utils.paypal_client import paypal_client

router = APIRouter(prefix="/paypal", tags=["PayPal"])
logger = logging.getLogger(__name__)

# PayPal webhook event type -> payment status
PAYPAL_EVENT_STATUS = {
    "PAYMENT.CAPTURE.COMPLETED": "completed",
    "PAYMENT.CAPTURE.DENIED": "failed",
    "PAYMENT.CAPTURE.REFUNDED": "refunded",
}

def paypal_references(resource: dict):
    """Ids a stored payment may have been recorded under: capture, PayPal order, or refunded capture."""
    refs = [resource.get("id")]
    related = (resource.get("supplementary_data") or {}).get("related_ids") or {}
    refs.append(related.get("order_id"))
    refs.append(related.get("capture_id"))
    for link in resource.get("links") or []:
        if link.get("rel") == "up" and link.get("href"):
            refs.append(link["href"].rstrip("/").rsplit("/", 1)[-1])
    return [r for r in refs if r]

@router.post("/webhook")
async def paypal_webhook(
    request: Request,
    db: Session = Depends(get_db),
):
    body = await request.body()
    try:
        event = json.loads(body)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid JSON payload")

    try:
        verified = await paypal_client.verify_webhook_signature(request.headers, event)
    except httpx.HTTPError as e:
        logger.exception("PayPal webhook verification unavailable: %s", e)
        raise HTTPException(status_code=502, detail="Could not verify webhook")

    if not verified:
        logger.warning("PayPal webhook %s failed verification", event.get("id"))
        raise HTTPException(status_code=403, detail="Signature verification failed")

    event_type = event.get("event_type")
    new_status = PAYPAL_EVENT_STATUS.get(event_type)
    if new_status is None:
        return {"status": "ignored"}

    resource = event.get("resource") or {}
    logger.info("PayPal event %s (%s) received", event.get("id"), event_type)

    details = {
        "paypal_event_id": event.get("id"),
        "paypal_event_type": event_type,
        "resource_id": resource.get("id"),
        "resource_status": resource.get("status"),
    }
    payer_email = (resource.get("payer") or {}).get("email_address")
    if payer_email:
        details["payer_email"] = payer_email

    try:
        payment = apply_provider_event(
            db, paypal_references(resource), new_status,
            provider_details=details, ip=client_ip(request),
        )
    except InvalidStatusTransition as e:
        logger.warning("PayPal event %s not applied: %s", event.get("id"), e)
        return {"status": "ignored"}

    if payment is None:
        return {"status": "ignored"}
    return {"status": "ok", "payment_id": payment.id}
