import logging
from dataclasses import dataclass
from typing import Optional

from ..errors import DatabaseError, PaymentError, ValidationError
from ..models import PaymentStatus
from ..store import PaymentStore
from ..utils import new_reference, to_minor_units
from .paystack import PaystackClient

logger = logging.getLogger(__name__)

# payments.amount is a BIGINT
MAX_AMOUNT_KOBO = 2 ** 63 - 1


@dataclass
class InitiatedPayment:
    authorization_url: str
    access_code: Optional[str]
    reference: str


class PaymentInitiator:
    def __init__(self, store: PaymentStore, gateway: PaystackClient,
                 default_email: str = "customer@example.com", currency: str = "NGN"):
        self.store = store
        self.gateway = gateway
        self.default_email = default_email
        self.currency = currency

    async def initiate(self, appointment_id: Optional[str], amount: Optional[int],
                       payer_email: Optional[str] = None) -> InitiatedPayment:
        """Record an ``initiated`` payment, then open a Paystack checkout for it.

        ``amount`` is in naira; kobo is what gets stored and charged. The row
        is committed before the gateway is called so an immediate webhook
        always finds it.
        """
        if not appointment_id or not amount:
            raise ValidationError("appointment_id and amount are required")
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise ValidationError("amount must be a positive integer", details={"amount": amount})
        amount_kobo = to_minor_units(amount)
        if amount_kobo > MAX_AMOUNT_KOBO:
            raise ValidationError("amount is too large", details={"amount": amount})

        reference = new_reference()
        await self.store.create_payment(appointment_id, amount_kobo, reference, currency=self.currency)

        try:
            data = await self.gateway.initialize_transaction(
                amount=amount_kobo,
                email=payer_email or self.default_email,
                reference=reference,
                metadata={"appointment_id": appointment_id},
                currency=self.currency,
            )
        except PaymentError as e:
            logger.warning("Paystack init failed for %s: %s", reference, e.message)
            await self._mark_failed(reference)
            raise

        authorization_url = data.get("authorization_url")
        if not authorization_url:
            await self._mark_failed(reference)
            raise PaymentError("Paystack did not return a checkout URL")

        logger.info("Payment %s initiated for appointment %s", reference, appointment_id)
        return InitiatedPayment(
            authorization_url=authorization_url,
            access_code=data.get("access_code"),
            reference=reference,
        )

    async def _mark_failed(self, reference: str) -> None:
        try:
            await self.store.transition_payment(reference, PaymentStatus.failed)
        except DatabaseError as e:
            logger.error("Could not mark payment %s as failed: %s", reference, e.message)
