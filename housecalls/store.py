"""Persistence for payments and the appointment field this service owns.

Terminal payment states are protected by the store itself: the status
update only matches rows that are still ``initiated``, so duplicate or
out-of-order webhook deliveries cannot overwrite ``paid``/``failed``.
"""
import asyncio
import enum
import logging
from typing import Optional

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select

from .errors import DatabaseError
from .models import Appointment, AppointmentStatus, Payment, PaymentProvider, PaymentStatus, utcnow

logger = logging.getLogger(__name__)


class TransitionOutcome(str, enum.Enum):
    applied = "applied"
    duplicate = "duplicate"  # already at the requested terminal state
    conflict = "conflict"  # already at the other terminal state
    missing = "missing"


class PaymentStore:
    def __init__(self, session_factory, timeout: float = 10.0):
        self._session_factory = session_factory
        self._timeout = timeout

    async def _run(self, op: str, coro):
        try:
            return await asyncio.wait_for(coro, timeout=self._timeout)
        except asyncio.TimeoutError:
            raise DatabaseError(f"{op} timed out after {self._timeout}s")
        except (SQLAlchemyError, OverflowError) as e:
            raise DatabaseError(f"{op} failed: {e.__class__.__name__}")

    async def create_payment(self,
                             appointment_id: str,
                             amount: int,
                             reference: str,
                             currency: str = "NGN",
                             provider: PaymentProvider = PaymentProvider.paystack,
                             ) -> Payment:
        async def _insert():
            async with self._session_factory() as session:
                payment = Payment(
                    appointment_id=appointment_id,
                    amount=amount,
                    currency=currency,
                    provider=provider.value,
                    ref=reference,
                    status=PaymentStatus.initiated.value,
                )
                session.add(payment)
                await session.commit()
                await session.refresh(payment)
                return payment

        return await self._run("create payment", _insert())

    async def get_payment(self, reference: str) -> Optional[Payment]:
        async def _get():
            async with self._session_factory() as session:
                res = await session.exec(select(Payment).where(Payment.ref == reference))
                return res.one_or_none()

        return await self._run("get payment", _get())

    async def transition_payment(self, reference: str, target: PaymentStatus) -> TransitionOutcome:
        """Move an ``initiated`` payment to ``target``.

        Compare-and-set: the row is only written while its status is still
        ``initiated``. When nothing matched, the current row is read back to
        tell a redelivery apart from a conflicting event or an unknown ref.
        """
        if not target.is_terminal:
            raise ValueError(f"not a terminal status: {target.value}")

        async def _transition():
            async with self._session_factory() as session:
                stmt = (
                    update(Payment)
                    .where(Payment.ref == reference)
                    .where(Payment.status == PaymentStatus.initiated.value)
                    .values(status=target.value, updated_at=utcnow())
                )
                res = await session.exec(stmt)
                await session.commit()
                if res.rowcount:
                    return TransitionOutcome.applied

                current = await session.exec(select(Payment.status).where(Payment.ref == reference))
                status = current.one_or_none()
                if status is None:
                    return TransitionOutcome.missing
                if status == target.value:
                    return TransitionOutcome.duplicate
                return TransitionOutcome.conflict

        return await self._run("update payment", _transition())

    async def confirm_appointment(self, appointment_id: str) -> bool:
        """Returns False when no appointment has that id."""
        async def _confirm():
            async with self._session_factory() as session:
                stmt = (
                    update(Appointment)
                    .where(Appointment.id == appointment_id)
                    .values(status=AppointmentStatus.confirmed.value, updated_at=utcnow())
                )
                res = await session.exec(stmt)
                await session.commit()
                return bool(res.rowcount)

        return await self._run("confirm appointment", _confirm())
