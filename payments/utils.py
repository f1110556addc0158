"""Payment reference and webhook signature helpers."""

import hmac, hashlib, logging, time

logger = logging.getLogger(__name__)

REFERENCE_PREFIX = "GAB"
REFERENCE_SEP = "_"


def generate_reference(order_id: str) -> str:
    """Return a checkout reference of the form ``GAB_<orderId>_<epochMillis>``."""
    return f"{REFERENCE_PREFIX}{REFERENCE_SEP}{order_id}{REFERENCE_SEP}{int(time.time() * 1000)}"


def parse_order_id(reference: str | None) -> str | None:
    """Recover the order id embedded in a checkout reference.

    The prefix and the trailing timestamp are dropped and any middle
    segments rejoined, since order ids may themselves contain ``_``.
    Returns ``None`` when the reference is not one of ours.
    """
    if not isinstance(reference, str) or not reference.startswith(REFERENCE_PREFIX + REFERENCE_SEP):
        return None
    parts = reference.split(REFERENCE_SEP)
    if len(parts) < 3:
        return None
    return REFERENCE_SEP.join(parts[1:-1]) or None


def verify_signature(body: bytes, signature: str | None, secret: str | None) -> bool:
    """Check Paystack's ``x-paystack-signature``: hex HMAC-SHA512 of the raw body."""
    if not secret:
        logger.error("Paystack secret key missing; rejecting webhook signature")
        return False
    if not signature:
        return False
    if isinstance(body, str):
        body = body.encode("utf-8")
    expected = hmac.new(secret.encode("utf-8"), body, hashlib.sha512).hexdigest()
    return hmac.compare_digest(expected.encode("ascii"), signature.encode("utf-8"))
