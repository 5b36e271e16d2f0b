from datetime import datetime
from pydantic import AliasChoices, BaseModel, Field, field_validator
from typing import Optional


class InitiatePaymentIn(BaseModel):
    appointment_id: Optional[str] = None
    # whole naira; "amount_ngn" is accepted for older clients
    amount: Optional[int] = Field(default=None, validation_alias=AliasChoices("amount", "amount_ngn"))
    patient_email: Optional[str] = None

    @field_validator("appointment_id", mode="before")
    @classmethod
    def numeric_appointment_id(cls, v):
        # appointment ids from the database may be integers
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v


class InitiatePaymentOut(BaseModel):
    authorization_url: str
    access_code: Optional[str] = None
    reference: str


class PaymentOut(BaseModel):
    reference: str
    appointment_id: str
    amount: int = Field(..., description="Amount in kobo")
    currency: str
    provider: str
    status: str
    created_at: datetime
    updated_at: datetime


class WebhookAck(BaseModel):
    status: str = "accepted"
