import secrets
from functools import lru_cache

import razorpay
from razorpay.errors import SignatureVerificationError

from ..config import settings
from ..envelope import UpstreamError


class RazorpayGateway:
    """Thin wrapper over the Razorpay SDK client.

    The SDK is synchronous; callers run these methods in a threadpool.
    """

    def __init__(self, key_id: str, key_secret: str, currency: str = "INR"):
        self.client = razorpay.Client(auth=(key_id, key_secret))
        self.currency = currency

    def verify_signature(self, order_id: str, payment_id: str, signature: str) -> bool:
        # HMAC-SHA256 over "order_id|payment_id", compared in constant time by the SDK
        try:
            return bool(self.client.utility.verify_payment_signature({
                "razorpay_order_id": order_id,
                "razorpay_payment_id": payment_id,
                "razorpay_signature": signature,
            }))
        except SignatureVerificationError:
            return False

    def create_order(self, amount: float) -> dict:
        options = {
            "amount": int(round(amount * 100)),  # paise
            "currency": self.currency,
            "receipt": secrets.token_hex(10),
        }
        try:
            return self.client.order.create(data=options)
        except Exception as exc:
            raise UpstreamError("razorpay", f"order create failed: {exc}") from exc

    def fetch_payment(self, payment_id: str) -> dict:
        try:
            return self.client.payment.fetch(payment_id)
        except Exception as exc:
            raise UpstreamError("razorpay", f"payment fetch failed for {payment_id}: {exc}") from exc


@lru_cache
def get_gateway() -> RazorpayGateway:
    return RazorpayGateway(settings.RAZORPAY_KEY_ID, settings.RAZORPAY_KEY_SECRET, settings.PAYMENT_CURRENCY)
