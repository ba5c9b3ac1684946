import re

from conftest import booking_payload
from eventbooking.domain.bookings import service as booking_service
from eventbooking.domain.bookings.repository import BookingRepository
from eventbooking.security_headers import build_security_headers


def test_public_booking_starts_as_inquiry(client, create_booking):
    booking = create_booking(totalAmount=99999, status="Confirmed")

    assert re.match(r"^BA-\d{4}-\d{4}$", booking["id"])
    assert booking["status"] == "Inquiry"
    assert booking["totalAmount"] is None
    assert booking["archived"] is False
    assert booking["email"] == "maria.santos@example.com"
    assert booking["contactNumber"] == "+639171234567"
    assert booking["services"] == ["Lights", "Sounds", "LED Wall"]


def test_missing_required_field_names_the_field(client):
    payload = booking_payload()
    del payload["customerName"]
    response = client.post("/bookings", json=payload)

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "validation_error"
    assert body["field"] == "customerName"


def test_blank_venue_is_rejected(client):
    response = client.post("/bookings", json=booking_payload(venue="   "))
    assert response.status_code == 400
    assert response.json()["field"] == "venue"


def test_invalid_email_is_rejected(client):
    response = client.post("/bookings", json=booking_payload(email="nope"))
    assert response.status_code == 400
    assert response.json()["field"] == "email"


def test_notes_are_escaped(client, create_booking):
    booking = create_booking(additionalNotes="<script>x</script>")
    assert booking["additionalNotes"] == "&lt;script&gt;x&lt;/script&gt;"


def test_listing_requires_authentication(client):
    response = client.get("/bookings")
    assert response.status_code == 401
    assert response.json()["error"] == "authentication_failed"


def test_invalid_token_is_rejected(client):
    response = client.get("/bookings", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401


def test_list_filters(client, create_booking, admin_headers):
    first = create_booking(customerName="Ana Reyes", email="ana@example.com")
    second = create_booking(customerName="Ben Cruz", email="ben@example.com")
    client.post(f"/bookings/{second['id']}/archive", headers=admin_headers)

    active = client.get("/bookings", headers=admin_headers).json()
    assert [b["id"] for b in active] == [first["id"]]

    archived = client.get("/bookings?archived=true", headers=admin_headers).json()
    assert [b["id"] for b in archived] == [second["id"]]

    everything = client.get("/bookings?archived=all", headers=admin_headers).json()
    assert {b["id"] for b in everything} == {first["id"], second["id"]}

    found = client.get("/bookings?archived=all&search=BEN", headers=admin_headers).json()
    assert [b["id"] for b in found] == [second["id"]]

    inquiries = client.get("/bookings?status=QuoteSent", headers=admin_headers).json()
    assert inquiries == []


def test_bad_archived_filter(client, admin_headers):
    response = client.get("/bookings?archived=maybe", headers=admin_headers)
    assert response.status_code == 400


def test_get_unknown_booking(client, viewer_headers):
    response = client.get("/bookings/BA-2025-0000", headers=viewer_headers)
    assert response.status_code == 404
    assert response.json()["error"] == "not_found"


def test_staff_updates_details_and_audit_fields(client, create_booking, staff_headers):
    booking = create_booking()
    response = client.patch(
        f"/bookings/{booking['id']}",
        json={"guestCount": 180, "venue": "Rooftop Garden", "ceremonyVenue": None},
        headers=staff_headers,
    )

    assert response.status_code == 200
    updated = response.json()
    assert updated["guestCount"] == 180
    assert updated["venue"] == "Rooftop Garden"
    assert updated["ceremonyVenue"] is None
    assert updated["lastEditedBy"] == "staff"
    assert updated["lastEditedAt"] is not None
    assert updated["customerName"] == booking["customerName"]


def test_viewer_cannot_update(client, create_booking, viewer_headers):
    booking = create_booking()
    response = client.patch(
        f"/bookings/{booking['id']}", json={"guestCount": 10}, headers=viewer_headers
    )
    assert response.status_code == 403
    assert response.json()["error"] == "forbidden"


def test_clearing_required_field_is_rejected(client, create_booking, staff_headers):
    booking = create_booking()
    response = client.patch(
        f"/bookings/{booking['id']}", json={"customerName": None}, headers=staff_headers
    )
    assert response.status_code == 400
    assert response.json()["field"] == "customerName"


def test_status_update_follows_lifecycle(client, create_booking, staff_headers):
    booking = create_booking()

    # An inquiry without a quote cannot be confirmed by editing it
    response = client.patch(
        f"/bookings/{booking['id']}", json={"status": "Confirmed"}, headers=staff_headers
    )
    assert response.status_code == 400

    response = client.patch(
        f"/bookings/{booking['id']}", json={"status": "Cancelled"}, headers=staff_headers
    )
    assert response.status_code == 200
    assert response.json()["status"] == "Cancelled"

    response = client.patch(
        f"/bookings/{booking['id']}", json={"status": "Inquiry"}, headers=staff_headers
    )
    assert response.status_code == 400
    assert response.json()["field"] == "status"


def test_cancel_booking(client, create_booking, staff_headers):
    booking = create_booking()
    response = client.post(f"/bookings/{booking['id']}/cancel", headers=staff_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "Cancelled"

    again = client.post(f"/bookings/{booking['id']}/cancel", headers=staff_headers)
    assert again.status_code == 400


def test_archive_and_restore_keep_status(client, create_booking, admin_headers):
    booking = create_booking()

    archived = client.post(f"/bookings/{booking['id']}/archive", headers=admin_headers).json()
    assert archived["archived"] is True
    assert archived["archivedBy"] == "admin"
    assert archived["archivedAt"] is not None
    assert archived["status"] == "Inquiry"

    restored = client.post(f"/bookings/{booking['id']}/restore", headers=admin_headers).json()
    assert restored["archived"] is False
    assert restored["archivedBy"] is None
    assert restored["status"] == "Inquiry"


def test_staff_cannot_archive(client, create_booking, staff_headers):
    booking = create_booking()
    response = client.post(f"/bookings/{booking['id']}/archive", headers=staff_headers)
    assert response.status_code == 403


def test_delete_booking_removes_payments(client, create_booking, admin_headers, staff_headers):
    booking = create_booking()
    client.post(
        "/payments",
        json={"bookingId": booking["id"], "amount": 1000, "paymentType": "reservation", "paymentMethod": "cash"},
        headers=staff_headers,
    )

    assert client.delete(f"/bookings/{booking['id']}", headers=staff_headers).status_code == 403

    response = client.delete(f"/bookings/{booking['id']}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["deleted"] is True

    assert client.get(f"/bookings/{booking['id']}", headers=admin_headers).status_code == 404
    assert client.get(f"/payments?bookingId={booking['id']}", headers=admin_headers).json() == []


def test_schedule_lists_active_events_in_month(client, create_booking, admin_headers):
    late = create_booking(eventDate="2025-12-28")
    early = create_booking(eventDate="2025-12-05")
    cancelled = create_booking(eventDate="2025-12-10")
    create_booking(eventDate="2026-01-02")
    client.post(f"/bookings/{cancelled['id']}/cancel", headers=admin_headers)

    response = client.get("/bookings/schedule?year=2025&month=12", headers=admin_headers)
    assert response.status_code == 200
    assert [b["id"] for b in response.json()] == [early["id"], late["id"]]


def test_schedule_rejects_bad_month(client, admin_headers):
    response = client.get("/bookings/schedule?year=2025&month=13", headers=admin_headers)
    assert response.status_code == 422


def test_security_headers_present(client, create_booking):
    response = client.post("/bookings", json=booking_payload())
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert "no-store" in response.headers["Cache-Control"]


def test_health_is_excluded_from_security_headers(client):
    response = client.get("/health")
    assert response.json() == {"status": "healthy", "database": True}
    assert "Content-Security-Policy" not in response.headers


def test_hsts_only_when_enforcing_https():
    assert "Strict-Transport-Security" not in build_security_headers("https://portal.example.com", False)
    headers = build_security_headers("https://portal.example.com", True)
    assert headers["Strict-Transport-Security"].startswith("max-age=31536000")
    assert "https://portal.example.com" in headers["Content-Security-Policy"]


def test_booking_id_taken_concurrently_is_redrawn(client, create_booking, monkeypatch):
    monkeypatch.setattr(booking_service.random, "randint", lambda low, high: 1234)
    first = create_booking()
    year = first["id"].split("-")[1]
    assert first["id"] == f"BA-{year}-1234"

    # Another request takes 1234 between the existence check and the insert
    draws = iter([1234, 5678])
    monkeypatch.setattr(booking_service.random, "randint", lambda low, high: next(draws))
    monkeypatch.setattr(BookingRepository, "booking_id_exists", staticmethod(lambda db, booking_id: False))

    response = client.post("/bookings", json=booking_payload(customerName="Jose Rizal"))
    assert response.status_code == 201, response.text
    assert response.json()["id"] == f"BA-{year}-5678"
    assert response.json()["customerName"] == "Jose Rizal"


def test_booking_id_space_exhausted_is_a_storage_error(client, create_booking, monkeypatch):
    monkeypatch.setattr(booking_service.random, "randint", lambda low, high: 4321)
    create_booking()

    response = client.post("/bookings", json=booking_payload())
    assert response.status_code == 500
    assert response.json()["error"] == "storage_error"
