"""Shared fixtures.

- Settings come from env vars set here, before the app is imported.
- Each test gets its own SQLite file through aiosqlite.
- The Paystack client is replaced with FakeGateway via dependency_overrides.
"""
import hashlib
import hmac
import json
import os
from typing import Any, AsyncGenerator, Dict, List, Optional

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("PAYSTACK_SECRET_KEY", "sk_test_key")
os.environ.setdefault("PAYSTACK_WEBHOOK_SECRET", "whsec_test")

import httpx
import pytest
from httpx import ASGITransport

from housecalls.db import init_db, make_engine, make_session_factory
from housecalls.main import app
from housecalls.models import Appointment
from housecalls.routers import payments as payments_router
from housecalls.store import PaymentStore

WEBHOOK_SECRET = "whsec_test"


class FakeGateway:
    """Stands in for PaystackClient; records calls and what the store held at call time."""

    def __init__(self, store: Optional[PaymentStore] = None, fail_with: Optional[Exception] = None,
                 verify_data: Optional[dict] = None):
        self.store = store
        self.fail_with = fail_with
        self.verify_data = verify_data or {}
        self.calls: List[Dict[str, Any]] = []
        self.status_at_call: List[Optional[str]] = []
        self.verify_calls: List[str] = []

    async def initialize_transaction(self, amount, email, reference, metadata=None, currency=None):
        self.calls.append({
            "amount": amount,
            "email": email,
            "reference": reference,
            "metadata": metadata,
            "currency": currency,
        })
        if self.store is not None:
            payment = await self.store.get_payment(reference)
            self.status_at_call.append(payment.status if payment else None)
        if self.fail_with is not None:
            raise self.fail_with
        return {
            "authorization_url": f"https://checkout.paystack.com/{reference[-12:]}",
            "access_code": "ac_test_123",
            "reference": reference,
        }

    async def verify_transaction(self, reference):
        self.verify_calls.append(reference)
        if self.fail_with is not None:
            raise self.fail_with
        return dict(self.verify_data, reference=reference)


def sign(body: bytes, secret: str = WEBHOOK_SECRET) -> str:
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha512).hexdigest()


def charge_event(event: str, reference: str, appointment_id: Optional[str] = None) -> bytes:
    data: Dict[str, Any] = {"reference": reference, "status": "success" if event == "charge.success" else "failed"}
    if appointment_id is not None:
        data["metadata"] = {"appointment_id": appointment_id}
    return json.dumps({"event": event, "data": data}).encode("utf-8")


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
async def db_engine(tmp_path):
    engine = make_engine(f"sqlite+aiosqlite:///{tmp_path / 'housecalls_test.db'}")
    await init_db(engine)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return make_session_factory(db_engine)


@pytest.fixture
def store(session_factory) -> PaymentStore:
    return PaymentStore(session_factory, timeout=5.0)


@pytest.fixture
def gateway(store) -> FakeGateway:
    return FakeGateway(store=store)


@pytest.fixture
def add_appointment(session_factory):
    async def _add(appointment_id: str, status: str = "pending") -> None:
        async with session_factory() as session:
            session.add(Appointment(id=appointment_id, status=status))
            await session.commit()
    return _add


@pytest.fixture
def get_appointment(session_factory):
    async def _get(appointment_id: str) -> Optional[Appointment]:
        async with session_factory() as session:
            return await session.get(Appointment, appointment_id)
    return _get


@pytest.fixture
def app_with_overrides(store, gateway):
    app.dependency_overrides[payments_router.get_store] = lambda: store
    app.dependency_overrides[payments_router.get_gateway] = lambda: gateway
    app.dependency_overrides[payments_router.get_webhook_secret] = lambda: WEBHOOK_SECRET
    try:
        yield app
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
async def async_client(app_with_overrides) -> AsyncGenerator[httpx.AsyncClient, None]:
    transport = ASGITransport(app=app_with_overrides)
    async with httpx.AsyncClient(transport=transport, base_url="http://test", timeout=30.0) as client:
        yield client
