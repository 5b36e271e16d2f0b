import hashlib
import hmac
import logging
from typing import Optional

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "x-paystack-signature"


def compute_signature(raw_body: bytes, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha512).hexdigest()


def verify_signature(raw_body: bytes, header_signature: Optional[str], secret: Optional[str]) -> bool:
    """Check a Paystack webhook signature (HMAC-SHA512 over the raw body).

    Fails closed: with no secret configured nothing is accepted.
    """
    if not secret:
        logger.error("Paystack webhook secret is not configured; rejecting webhook")
        return False
    if not header_signature:
        return False
    expected = compute_signature(raw_body, secret)
    received = header_signature.strip().lower().encode("utf-8")
    return hmac.compare_digest(expected.encode("ascii"), received)
