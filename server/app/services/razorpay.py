from __future__ import annotations

import hashlib
import hmac
import logging
from dataclasses import dataclass
from typing import Any

import httpx

from app.core.config import AppSettings, get_settings
from app.core.exceptions import UpstreamError

logger = logging.getLogger("app.payments.gateway")


class PaymentGatewayError(UpstreamError):
    error_type = "PAYMENT_GATEWAY_ERROR"


def to_subunits(amount: float) -> int:
    """Rupees to paise."""
    return int(round(float(amount) * 100))


def order_signature(order_id: str, payment_id: str, secret: str) -> str:
    message = f"{order_id}|{payment_id}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def verify_order_signature(order_id: str, payment_id: str, signature: str, secret: str) -> bool:
    expected = order_signature(order_id, payment_id, secret)
    return hmac.compare_digest(expected, signature)


@dataclass
class RazorpayClient:
    key_id: str
    key_secret: str
    base_url: str = "https://api.razorpay.com/v1"
    timeout: float = 10.0

    @classmethod
    def from_settings(cls, settings: AppSettings | None = None) -> "RazorpayClient":
        settings = settings or get_settings()
        if not settings.razorpay_key_id or not settings.razorpay_key_secret:
            raise PaymentGatewayError("Payment gateway is not configured.")
        return cls(
            key_id=settings.razorpay_key_id,
            key_secret=settings.razorpay_key_secret,
            base_url=settings.razorpay_base_url.rstrip("/"),
            timeout=float(settings.razorpay_timeout_sec),
        )

    def create_order(
        self,
        *,
        amount: int,
        currency: str,
        receipt: str,
        notes: dict[str, str],
    ) -> dict[str, Any]:
        return self._post(
            "/orders",
            {
                "amount": amount,
                "currency": currency,
                "receipt": receipt,
                "payment_capture": 1,
                "notes": notes,
            },
        )

    def create_payment_link(
        self,
        *,
        amount: int,
        currency: str,
        description: str,
        reference_id: str,
        customer: dict[str, Any],
        notes: dict[str, str],
        callback_url: str,
    ) -> dict[str, Any]:
        return self._post(
            "/payment_links",
            {
                "amount": amount,
                "currency": currency,
                "accept_partial": False,
                "description": description,
                "reference_id": reference_id,
                "customer": customer,
                "notify": {"sms": True, "email": True},
                "reminder_enable": True,
                "notes": notes,
                "callback_url": callback_url,
                "callback_method": "get",
            },
        )

    def verify_signature(self, order_id: str, payment_id: str, signature: str) -> bool:
        return verify_order_signature(order_id, payment_id, signature, self.key_secret)

    def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            with httpx.Client(timeout=self.timeout, auth=(self.key_id, self.key_secret)) as client:
                response = client.post(url, json=payload)
        except httpx.RequestError as exc:
            raise PaymentGatewayError("Payment gateway is unavailable.") from exc

        if response.status_code >= 400:
            description = None
            try:
                body = response.json()
            except ValueError:
                body = None
            if isinstance(body, dict) and isinstance(body.get("error"), dict):
                description = body["error"].get("description")
            logger.error(
                "gateway.request_failed",
                extra={"path": path, "status_code": response.status_code, "description": description},
            )
            raise PaymentGatewayError("Payment gateway request failed.")

        try:
            body = response.json()
        except ValueError as exc:
            raise PaymentGatewayError("Payment gateway response was not valid JSON.") from exc
        if not isinstance(body, dict) or "id" not in body:
            raise PaymentGatewayError("Payment gateway response was missing an id.")
        return body
