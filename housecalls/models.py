import enum
from typing import Optional
from datetime import datetime, timezone
from sqlalchemy import BigInteger, DateTime
from sqlmodel import SQLModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _timestamp():
    return Field(default_factory=utcnow, sa_type=DateTime(timezone=True))


class PaymentStatus(str, enum.Enum):
    initiated = "initiated"
    paid = "paid"
    failed = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not PaymentStatus.initiated


class PaymentProvider(str, enum.Enum):
    paystack = "paystack"


class AppointmentStatus(str, enum.Enum):
    pending = "pending"
    confirmed = "confirmed"
    cancelled = "cancelled"
    completed = "completed"


class Payment(SQLModel, table=True):
    __tablename__ = "payments"

    id: Optional[int] = Field(default=None, primary_key=True)
    appointment_id: str = Field(index=True)
    amount: int = Field(sa_type=BigInteger)  # minor units (kobo)
    currency: str = "NGN"
    provider: str = Field(default=PaymentProvider.paystack.value)
    ref: str = Field(unique=True, index=True)
    status: str = Field(default=PaymentStatus.initiated.value, index=True)  # initiated, paid, failed
    created_at: datetime = _timestamp()
    updated_at: datetime = _timestamp()


class Appointment(SQLModel, table=True):
    __tablename__ = "appointments"

    id: str = Field(primary_key=True)
    status: str = Field(default=AppointmentStatus.pending.value, index=True)
    created_at: datetime = _timestamp()
    updated_at: datetime = _timestamp()
