from __future__ import annotations

import respx
from httpx import Response

from app.db.models import Booking, Payment
from app.services.razorpay import order_signature

GATEWAY = "https://razorpay.test/v1"


def order_body(booking_id: str) -> dict:
    return {
        "amount": 899,
        "bookingId": booking_id,
        "userId": "user-1",
        "customerName": "Asha Rao",
        "customerEmail": "asha@example.com",
        "customerPhone": "9876543210",
        "serviceType": "SUV Deep Clean",
    }


@respx.mock
def test_order_then_verify_confirms_booking(client, session, make_booking, respx_mock) -> None:
    booking = make_booking()
    respx_mock.post(f"{GATEWAY}/orders").mock(
        return_value=Response(200, json={"id": "order_Q1", "amount": 89900, "currency": "INR"})
    )

    created = client.post("/payments/orders", json=order_body(booking.id))

    assert created.status_code == 201
    order = created.json()
    assert order == {
        "orderId": "order_Q1",
        "amount": 89900,
        "currency": "INR",
        "paymentId": order["paymentId"],
        "keyId": "rzp_test_key",
    }

    signature = order_signature("order_Q1", "pay_Q1", "rzp_test_secret")
    verified = client.post(
        "/payments/verify",
        json={"razorpayOrderId": "order_Q1", "razorpayPaymentId": "pay_Q1", "razorpaySignature": signature},
    )

    assert verified.status_code == 200
    assert verified.json()["data"]["status"] == "completed"

    session.expire_all()
    stored = session.get(Booking, booking.id)
    assert stored.booking_status == "confirmed"
    assert stored.is_paid is True

    detail = client.get(f"/payments/{order['paymentId']}")
    assert detail.json()["data"]["transactionId"] == "pay_Q1"
    assert detail.json()["data"]["metadata"]["customerEmail"] == "asha@example.com"


@respx.mock
def test_tampered_signature_is_rejected(client, session, make_booking, respx_mock) -> None:
    booking = make_booking()
    respx_mock.post(f"{GATEWAY}/orders").mock(
        return_value=Response(200, json={"id": "order_T1", "amount": 89900, "currency": "INR"})
    )
    payment_id = client.post("/payments/orders", json=order_body(booking.id)).json()["paymentId"]

    res = client.post(
        "/payments/verify",
        json={"razorpayOrderId": "order_T1", "razorpayPaymentId": "pay_T1", "razorpaySignature": "0" * 64},
    )

    assert res.status_code == 400
    assert res.json()["error"] == "Payment verification failed"
    session.expire_all()
    assert session.get(Payment, payment_id).status == "failed"


@respx.mock
def test_payment_link_records_pending_payment(client, make_booking, respx_mock) -> None:
    booking = make_booking()
    route = respx_mock.post(f"{GATEWAY}/payment_links").mock(
        return_value=Response(200, json={"id": "plink_9", "short_url": "https://rzp.io/i/9", "amount": 89900})
    )

    res = client.post("/payments/links", json=order_body(booking.id))

    assert res.status_code == 201
    assert res.json()["shortUrl"] == "https://rzp.io/i/9"
    assert route.called


@respx.mock
def test_gateway_failure_is_generic_500(client, make_booking, respx_mock) -> None:
    booking = make_booking()
    respx_mock.post(f"{GATEWAY}/orders").mock(
        return_value=Response(401, json={"error": {"description": "Authentication failed"}})
    )

    res = client.post("/payments/orders", json=order_body(booking.id))

    assert res.status_code == 500
    assert res.json()["errorType"] == "PAYMENT_GATEWAY_ERROR"
    assert "Authentication failed" not in res.json()["error"]


def test_order_for_unknown_booking_is_404(client) -> None:
    res = client.post("/payments/orders", json=order_body("missing"))

    assert res.status_code == 404


def test_order_missing_fields_is_400(client) -> None:
    res = client.post("/payments/orders", json={"amount": 100})

    assert res.status_code == 400


def test_unknown_payment_is_404(client) -> None:
    res = client.get("/payments/nope")

    assert res.status_code == 404
    assert res.json()["error"] == "Payment not found"
