from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import AppSettings, get_settings
from app.core.exceptions import NotFoundError, UpstreamError, ValidationError
from app.db.models import Booking, Payment
from app.models.payments import (
    OrderCreated,
    PaymentLinkCreated,
    PaymentRequest,
    PaymentVerified,
    PaymentVerifyRequest,
)
from app.services.razorpay import RazorpayClient, to_subunits

logger = logging.getLogger("app.payments")

SIGNATURE_MISMATCH = "Signature verification failed"


@dataclass
class PaymentService:
    session: Session
    gateway_factory: Callable[[], RazorpayClient]
    settings: AppSettings

    @classmethod
    def from_session(cls, session: Session, settings: AppSettings | None = None) -> "PaymentService":
        settings = settings or get_settings()
        return cls(
            session=session,
            gateway_factory=lambda: RazorpayClient.from_settings(settings),
            settings=settings,
        )

    def create_order(self, payload: PaymentRequest) -> OrderCreated:
        self._require_booking(payload.booking_id)
        gateway = self.gateway_factory()
        currency = self.settings.payment_currency
        order = gateway.create_order(
            amount=to_subunits(payload.amount),
            currency=currency,
            receipt=f"order_{payload.booking_id}_{int(time.time() * 1000)}",
            notes={
                "bookingId": payload.booking_id,
                "userId": payload.user_id,
                "serviceType": payload.service_type or "",
            },
        )

        payment = self._record_pending(
            payload,
            gateway_id=order["id"],
            currency=currency,
            payment_method="razorpay",
        )
        logger.info("payment.order_created", extra={"payment_id": payment.id, "order_id": order["id"]})
        return OrderCreated(
            order_id=order["id"],
            amount=int(order.get("amount", to_subunits(payload.amount))),
            currency=order.get("currency", currency),
            payment_id=payment.id,
            key_id=gateway.key_id,
        )

    def create_link(self, payload: PaymentRequest) -> PaymentLinkCreated:
        self._require_booking(payload.booking_id)
        gateway = self.gateway_factory()
        currency = self.settings.payment_currency
        service_label = payload.service_type or "Service"
        callback_url = (
            f"{self.settings.public_base_url.rstrip('/')}/booking-confirmation?bookingId={payload.booking_id}"
        )
        customer = {"name": payload.customer_name or "Customer", "email": payload.customer_email}
        if payload.customer_phone:
            customer["contact"] = payload.customer_phone

        link = gateway.create_payment_link(
            amount=to_subunits(payload.amount),
            currency=currency,
            description=f"Car Wash - {service_label}",
            reference_id=payload.booking_id,
            customer=customer,
            notes={
                "bookingId": payload.booking_id,
                "userId": payload.user_id,
                "serviceType": service_label,
            },
            callback_url=callback_url,
        )

        self._record_pending(
            payload,
            gateway_id=link["id"],
            currency=currency,
            payment_method="razorpay_link",
            link=link.get("short_url"),
        )
        return PaymentLinkCreated(
            link_id=link["id"],
            short_url=link.get("short_url"),
            amount=int(link.get("amount", to_subunits(payload.amount))),
            currency=link.get("currency", currency),
        )

    def verify(self, payload: PaymentVerifyRequest) -> PaymentVerified:
        gateway = self.gateway_factory()
        payment = self._find_by_order(payload.razorpay_order_id)

        if not gateway.verify_signature(
            payload.razorpay_order_id, payload.razorpay_payment_id, payload.razorpay_signature
        ):
            # settled payments keep their state; only a pending one can fail here
            if payment is not None and payment.status == "pending":
                payment.status = "failed"
                payment.failure_reason = SIGNATURE_MISMATCH
                self._commit("Failed to record payment failure")
            logger.warning("payment.signature_mismatch", extra={"order_id": payload.razorpay_order_id})
            raise ValidationError("Payment verification failed")

        if payment is None:
            raise NotFoundError("Payment record not found")

        payment.razorpay_payment_id = payload.razorpay_payment_id
        payment.razorpay_signature = payload.razorpay_signature
        payment.status = "completed"
        payment.transaction_id = payload.razorpay_payment_id

        booking = self.session.get(Booking, payment.booking_id)
        if booking is not None:
            booking.amount = payment.amount
            booking.payment_status = "completed"
            booking.booking_status = "confirmed"
            booking.is_paid = True

        self._commit("Failed to record payment")
        logger.info("payment.verified", extra={"payment_id": payment.id})
        return PaymentVerified(
            payment_id=payment.id,
            transaction_id=payment.transaction_id,
            amount=payment.amount,
            status=payment.status,
        )

    def get_payment(self, payment_id: str) -> Payment:
        payment = self.session.get(Payment, payment_id)
        if payment is None:
            raise NotFoundError("Payment not found", details={"paymentId": payment_id})
        return payment

    def _require_booking(self, booking_id: str) -> Booking:
        booking = self.session.get(Booking, booking_id)
        if booking is None:
            raise NotFoundError("Booking not found", details={"bookingId": booking_id})
        return booking

    def _find_by_order(self, order_id: str) -> Payment | None:
        stmt = select(Payment).where(Payment.razorpay_order_id == order_id)
        try:
            return self.session.execute(stmt).scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise UpstreamError("Failed to look up payment") from exc

    def _record_pending(
        self,
        payload: PaymentRequest,
        *,
        gateway_id: str,
        currency: str,
        payment_method: str,
        link: str | None = None,
    ) -> Payment:
        meta = {
            "customerName": payload.customer_name,
            "customerEmail": payload.customer_email,
            "customerPhone": payload.customer_phone,
            "serviceType": payload.service_type,
            "bookingDate": datetime.now(timezone.utc).isoformat(),
        }
        if link:
            meta["link"] = link
        payment = Payment(
            booking_id=payload.booking_id,
            user_id=payload.user_id,
            amount=payload.amount,
            currency=currency,
            razorpay_order_id=gateway_id,
            status="pending",
            payment_method=payment_method,
            meta=meta,
        )
        self.session.add(payment)
        self._commit("Failed to record payment")
        return payment

    def _commit(self, message: str) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise UpstreamError(message) from exc
