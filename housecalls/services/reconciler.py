"""Apply Paystack webhook events to local payment and appointment state.

Every delivery that got past signature verification is acknowledged, even
when the store fails: a 5xx would make Paystack retry indefinitely. Rows
left behind by such failures stay ``initiated`` and can be picked up with a
refreshed status lookup against Paystack.
"""
import enum
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..errors import DatabaseError
from ..models import PaymentStatus
from ..store import PaymentStore, TransitionOutcome

logger = logging.getLogger(__name__)

EVENT_TARGETS = {
    "charge.success": PaymentStatus.paid,
    "charge.failed": PaymentStatus.failed,
}

# appointment confirmation follows these payment outcomes
_CONFIRMABLE = {TransitionOutcome.applied, TransitionOutcome.duplicate, TransitionOutcome.missing}


def _scalar(value: Any) -> Optional[str]:
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        return None
    return str(value)


class ReconcileDecision(str, enum.Enum):
    applied = "applied"
    duplicate = "duplicate"
    conflict = "conflict"
    missing = "missing"
    ignored = "ignored"  # not a charge event
    invalid = "invalid"  # charge event without a usable reference
    error = "error"  # store failed; payment state unknown


@dataclass
class ReconcileResult:
    decision: ReconcileDecision
    reference: Optional[str] = None
    appointment_confirmed: bool = False


class ReconciliationEngine:
    def __init__(self, store: PaymentStore):
        self.store = store

    async def reconcile(self, event: Dict[str, Any]) -> ReconcileResult:
        event_type = event.get("event")
        target = EVENT_TARGETS.get(event_type) if isinstance(event_type, str) else None
        if target is None:
            logger.info("Ignoring Paystack event %r", event_type)
            return ReconcileResult(decision=ReconcileDecision.ignored)

        data = event.get("data") or {}
        if not isinstance(data, dict):
            data = {}
        reference = _scalar(data.get("reference"))
        metadata = data.get("metadata") or {}
        appointment_id = _scalar(metadata.get("appointment_id")) if isinstance(metadata, dict) else None

        if not reference:
            logger.warning("Paystack %s event without reference", event_type)
            return ReconcileResult(decision=ReconcileDecision.invalid)

        logger.info("Paystack %s received for %s", event_type, reference)
        return await self.apply(reference, target, appointment_id)

    async def apply(self, reference: str, target: PaymentStatus,
                    appointment_id: Optional[str] = None) -> ReconcileResult:
        """Guarded payment transition followed by best-effort appointment confirmation."""
        try:
            outcome = await self.store.transition_payment(reference, target)
        except DatabaseError as e:
            logger.error("Payment %s not updated to %s: %s", reference, target.value, e.message)
            return ReconcileResult(decision=ReconcileDecision.error, reference=reference)
        except Exception:
            logger.exception("Unexpected error updating payment %s", reference)
            return ReconcileResult(decision=ReconcileDecision.error, reference=reference)

        if outcome is TransitionOutcome.missing:
            logger.warning("No payment found for reference %s (event %s)", reference, target.value)
        elif outcome is TransitionOutcome.duplicate:
            logger.info("Payment %s already %s", reference, target.value)
        elif outcome is TransitionOutcome.conflict:
            logger.warning("Payment %s is terminal; ignoring late %s event", reference, target.value)

        result = ReconcileResult(decision=ReconcileDecision(outcome.value), reference=reference)
        if target is PaymentStatus.paid and appointment_id and outcome in _CONFIRMABLE:
            result.appointment_confirmed = await self._confirm_appointment(str(appointment_id))
        return result

    async def _confirm_appointment(self, appointment_id: str) -> bool:
        try:
            found = await self.store.confirm_appointment(appointment_id)
        except DatabaseError as e:
            logger.error("Appointment %s not confirmed: %s", appointment_id, e.message)
            return False
        except Exception:
            logger.exception("Unexpected error confirming appointment %s", appointment_id)
            return False
        if not found:
            logger.warning("Appointment %s not found; nothing to confirm", appointment_id)
        return found
