import logging
import httpx
from typing import Optional
from ..errors import PaymentError

logger = logging.getLogger(__name__)


class PaystackClient:
    """Thin async wrapper over the Paystack transaction API."""

    def __init__(self, secret_key: str, base_url: str = "https://api.paystack.co", timeout: float = 15.0,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._headers = {
            "Authorization": f"Bearer {secret_key}",
            "Content-Type": "application/json",
        }

    async def _request(self, method: str, path: str, json: Optional[dict] = None) -> dict:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.request(method, f"{self.base_url}{path}", json=json, headers=self._headers)
        except httpx.HTTPError as e:
            logger.error("Paystack %s %s failed: %r", method, path, e)
            raise PaymentError(f"Payment gateway unreachable: {e.__class__.__name__}")

        # Paystack reports errors as {"status": false, "message": ...} with a 4xx code
        try:
            body = resp.json()
        except ValueError:
            raise PaymentError("Payment gateway returned an invalid response",
                               details={"http_status": resp.status_code})
        if not isinstance(body, dict) or not body.get("status"):
            message = body.get("message") if isinstance(body, dict) else None
            raise PaymentError(f"Paystack request failed: {message or 'Unknown error'}",
                               details={"http_status": resp.status_code})
        return body.get("data") or {}

    async def initialize_transaction(self,
                                     amount: int,
                                     email: str,
                                     reference: str,
                                     metadata: Optional[dict] = None,
                                     currency: Optional[str] = None,
                                     ) -> dict:
        """
        Create a hosted checkout. ``amount`` is in minor units (kobo).
        Returns the ``data`` object: authorization_url, access_code, reference.
        """
        payload = {
            "amount": amount,
            "email": email,
            "reference": reference,
            "metadata": metadata or {},
        }
        if currency:
            payload["currency"] = currency
        return await self._request("POST", "/transaction/initialize", json=payload)

    async def verify_transaction(self, reference: str) -> dict:
        return await self._request("GET", f"/transaction/verify/{reference}")
