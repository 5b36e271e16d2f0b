import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request

from ..config import settings
from ..db import async_session
from ..errors import NotFoundError, SignatureError, ValidationError
from ..models import Payment, PaymentStatus
from ..schemas import InitiatePaymentIn, InitiatePaymentOut, PaymentOut, WebhookAck
from ..services.initiator import PaymentInitiator
from ..services.paystack import PaystackClient
from ..services.reconciler import ReconciliationEngine
from ..signature import SIGNATURE_HEADER, verify_signature
from ..store import PaymentStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/paystack", tags=["payments"])

# remote transaction status -> local terminal status
REMOTE_STATUSES = {
    "success": PaymentStatus.paid,
    "failed": PaymentStatus.failed,
}


def get_store() -> PaymentStore:
    return PaymentStore(async_session, timeout=settings.db_timeout)


def get_gateway() -> PaystackClient:
    return PaystackClient(
        secret_key=settings.paystack_secret_key,
        base_url=settings.paystack_api_base,
        timeout=settings.gateway_timeout,
    )


def get_webhook_secret() -> Optional[str]:
    return settings.paystack_webhook_secret


def get_initiator(store: PaymentStore = Depends(get_store),
                  gateway: PaystackClient = Depends(get_gateway)) -> PaymentInitiator:
    return PaymentInitiator(store, gateway, default_email=settings.default_payer_email, currency=settings.currency)


def get_engine(store: PaymentStore = Depends(get_store)) -> ReconciliationEngine:
    return ReconciliationEngine(store)


def _payment_out(payment: Payment) -> PaymentOut:
    return PaymentOut(
        reference=payment.ref,
        appointment_id=payment.appointment_id,
        amount=payment.amount,
        currency=payment.currency,
        provider=payment.provider,
        status=payment.status,
        created_at=payment.created_at,
        updated_at=payment.updated_at,
    )


@router.post("/init", response_model=InitiatePaymentOut)
async def initiate_payment(payload: InitiatePaymentIn, initiator: PaymentInitiator = Depends(get_initiator)):
    """Create a Paystack checkout for an appointment. ``amount`` is in naira."""
    result = await initiator.initiate(payload.appointment_id, payload.amount, payload.patient_email)
    return InitiatePaymentOut(
        authorization_url=result.authorization_url,
        access_code=result.access_code,
        reference=result.reference,
    )


# Webhook (Paystack -> POST)
@router.post("/webhook", response_model=WebhookAck)
async def webhook(request: Request,
                  engine: ReconciliationEngine = Depends(get_engine),
                  secret: Optional[str] = Depends(get_webhook_secret)):
    """
    Paystack POSTs charge events here, signed with HMAC-SHA512 of the raw body.
    Once the signature checks out and the body parses we always answer 200;
    reconciliation problems are logged rather than returned to Paystack.
    """
    raw_body = await request.body()
    if not verify_signature(raw_body, request.headers.get(SIGNATURE_HEADER), secret):
        logger.warning("Rejected Paystack webhook with invalid signature")
        raise SignatureError("Invalid signature")

    try:
        event = json.loads(raw_body)
    except ValueError:
        raise ValidationError("Webhook body is not valid JSON")
    if not isinstance(event, dict):
        raise ValidationError("Webhook body must be a JSON object")

    try:
        result = await engine.reconcile(event)
    except Exception:
        logger.exception("Reconciliation crashed for Paystack event %r", event.get("event"))
    else:
        logger.info("Paystack webhook %s -> %s", event.get("event"), result.decision.value)
    return WebhookAck()


@router.get("/payments/{reference}", response_model=PaymentOut)
async def payment_status(reference: str,
                         refresh: bool = False,
                         store: PaymentStore = Depends(get_store),
                         gateway: PaystackClient = Depends(get_gateway),
                         engine: ReconciliationEngine = Depends(get_engine)):
    """Get the stored payment; with ``refresh`` ask Paystack first and reconcile."""
    payment = await store.get_payment(reference)
    if payment is None:
        raise NotFoundError(f"Payment {reference} not found")

    if refresh and payment.status == PaymentStatus.initiated.value:
        data = await gateway.verify_transaction(reference)
        target = REMOTE_STATUSES.get(data.get("status"))
        if target is not None:
            await engine.apply(reference, target, payment.appointment_id)
            payment = await store.get_payment(reference)
        else:
            logger.info("Paystack reports %r for %s; leaving it initiated", data.get("status"), reference)

    return _payment_out(payment)
