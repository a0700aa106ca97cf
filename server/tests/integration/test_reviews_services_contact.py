from __future__ import annotations

import pytest


def review_body(booking_id: str, **overrides) -> dict:
    body = {
        "bookingId": booking_id,
        "userId": "user-1",
        "serviceId": "svc-suv",
        "rating": 5,
        "userName": "Asha",
        "serviceName": "SUV Deep Clean",
        "vehicleType": "suv",
        "comment": "Spotless.",
    }
    body.update(overrides)
    return body


def test_review_lifecycle(client, make_booking) -> None:
    first = make_booking()
    second = make_booking()

    created = client.post("/reviews", json=review_body(first.id))
    duplicate = client.post("/reviews", json=review_body(first.id, rating=1))
    client.post("/reviews", json=review_body(second.id, rating=4))

    assert created.status_code == 201
    assert created.json()["data"]["verified"] is True
    assert duplicate.status_code == 409
    assert duplicate.json()["error"] == "Review already exists for this booking"

    listing = client.get("/reviews", params={"serviceId": "svc-suv"}).json()
    assert listing["totalReviews"] == 2
    assert listing["averageRating"] == 4.5

    status = client.get(f"/reviews/booking/{first.id}").json()
    assert status["hasReview"] is True
    assert status["booking"]["status"] == "pending"
    assert status["review"]["rating"] == 5


@pytest.mark.parametrize("rating", [0, 6])
def test_review_rating_out_of_range(client, make_booking, rating) -> None:
    booking = make_booking()

    res = client.post("/reviews", json=review_body(booking.id, rating=rating))

    assert res.status_code == 400
    assert res.json()["error"] == "Rating must be between 1 and 5"


def test_review_for_unknown_booking_is_404(client) -> None:
    assert client.post("/reviews", json=review_body("missing")).status_code == 404
    assert client.get("/reviews/booking/missing").status_code == 404


def test_reviews_for_service_without_any(client) -> None:
    res = client.get("/reviews", params={"serviceId": "nothing"})

    assert res.json() == {"success": True, "data": [], "averageRating": 0.0, "totalReviews": 0}


def test_service_catalogue_admin_crud(client, auth_headers) -> None:
    admin = auth_headers(role="admin")
    body = {"name": "SUV Deep Clean", "price": 899, "prices": {"suv": 899, "luxury": 1199}, "durationMin": 40}

    assert client.post("/services", json=body).status_code == 401
    created = client.post("/services", json=body, headers=admin)
    assert created.status_code == 201
    service_id = created.json()["data"]["id"]

    updated = client.put(f"/services/{service_id}", json={"prices": {"suv": 949}}, headers=admin)
    assert updated.json()["data"]["prices"] == {"suv": 949, "luxury": 1199}

    listing = client.get("/services").json()["data"]
    assert [item["name"] for item in listing] == ["SUV Deep Clean"]

    deleted = client.delete(f"/services/{service_id}", headers=admin)
    assert deleted.json() == {"success": True, "message": "Service deleted successfully"}
    assert client.get(f"/services/{service_id}").status_code == 404


def test_service_create_requires_name_and_price(client, auth_headers) -> None:
    res = client.post("/services", json={"name": "  "}, headers=auth_headers(role="admin"))

    assert res.status_code == 400


def test_contact_message_is_stored(client) -> None:
    res = client.post(
        "/contact",
        json={"name": " Meera ", "email": "Meera@Example.com", "message": "Do you wash bikes?"},
    )

    assert res.status_code == 201
    body = res.json()
    assert body["contactId"] == body["data"]["id"]
    assert body["data"]["email"] == "meera@example.com"
    assert body["data"]["name"] == "Meera"


def test_contact_requires_all_fields(client) -> None:
    res = client.post("/contact", json={"name": "Meera", "email": "not-an-email", "message": "hi"})

    assert res.status_code == 400
    assert res.json()["errorType"] == "VALIDATION_ERROR"
