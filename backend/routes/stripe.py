# backend/routes/stripe.py
import hashlib
import hmac
import json
import logging
import time
from fastapi import APIRouter, Request, Depends, HTTPException, Header
from sqlalchemy.orm import Session

from database import get_db
from config import settings
from services.errors import InvalidStatusTransition
from services.payments import apply_provider_event
from utils.audit import client_ip

router = APIRouter(prefix="/stripe", tags=["Stripe"])
logger = logging.getLogger(__name__)

# Stripe event type -> payment status
STRIPE_EVENT_STATUS = {
    "payment_intent.succeeded": "completed",
    "payment_intent.payment_failed": "failed",
    "charge.refunded": "refunded",
}

def verify_stripe_signature(header_signature: str, request_body: bytes, now: float = None) -> bool:
    """Verifies the Stripe-Signature header (t=<timestamp>,v1=<hmac>)."""
    secret = settings.STRIPE_WEBHOOK_SECRET
    if not secret:
        return False

    timestamp, signatures = None, []
    for part in header_signature.split(","):
        key, sep, value = part.strip().partition("=")
        if not sep:
            return False
        if key == "t":
            timestamp = value
        elif key == "v1":
            signatures.append(value)

    if not timestamp or not signatures:
        return False
    try:
        signed_at = int(timestamp)
    except ValueError:
        return False

    now = time.time() if now is None else now
    if abs(now - signed_at) > settings.STRIPE_SIGNATURE_TOLERANCE:
        return False

    signed_payload = timestamp.encode("utf-8") + b"." + request_body
    expected_signature = hmac.new(secret.encode("utf-8"), signed_payload, hashlib.sha256).hexdigest()

    return any(hmac.compare_digest(expected_signature, s) for s in signatures)

def _event_references(event_type: str, obj: dict):
    # Payments store the PaymentIntent id; refunds arrive on the charge
    if event_type == "charge.refunded":
        return [obj.get("payment_intent"), obj.get("id")]
    return [obj.get("id")]

@router.post("/webhook")
async def stripe_webhook(
    request: Request,
    db: Session = Depends(get_db),
    stripe_signature: str = Header(None, alias="Stripe-Signature")
):
    if stripe_signature is None:
        raise HTTPException(status_code=400, detail="Missing Stripe-Signature header")

    body = await request.body()

    if not verify_stripe_signature(stripe_signature, body):
        logger.warning("Stripe signature verification failed")
        raise HTTPException(status_code=403, detail="Signature verification failed")

    try:
        event = json.loads(body)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid JSON payload")

    event_type = event.get("type")
    new_status = STRIPE_EVENT_STATUS.get(event_type)
    if new_status is None:
        return {"status": "ignored"}

    obj = (event.get("data") or {}).get("object") or {}
    logger.info("Stripe event %s (%s) received", event.get("id"), event_type)

    details = {
        "stripe_event_id": event.get("id"),
        "stripe_event_type": event_type,
        "payment_intent_id": obj.get("payment_intent") or obj.get("id"),
    }
    if obj.get("latest_charge"):
        details["charge_id"] = obj["latest_charge"]
    if "amount_received" in obj:
        details["amount_received"] = obj["amount_received"]
    if "amount_refunded" in obj:
        details["amount_refunded"] = obj["amount_refunded"]

    try:
        payment = apply_provider_event(
            db, _event_references(event_type, obj), new_status,
            provider_details=details, ip=client_ip(request),
        )
    except InvalidStatusTransition as e:
        logger.warning("Stripe event %s not applied: %s", event.get("id"), e)
        return {"status": "ignored"}

    if payment is None:
        return {"status": "ignored"}
    return {"status": "ok", "payment_id": payment.id}
