import pytest

from eventbooking.domain.payments.repository import PaymentRepository


def generate(client, booking_id, headers, amount=40000, **extra):
    return client.post(f"/quotes/{booking_id}", json={"amount": amount, **extra}, headers=headers)


def validate(client, booking_id, headers, **overrides):
    body = {"referenceNumber": "GC-100200300", "amount": 3000, "paymentMethod": "GCash"}
    body.update(overrides)
    return client.post(f"/quotes/{booking_id}/validate-payment", json=body, headers=headers)


def test_generate_quote_sends_it(client, create_booking, admin_headers):
    booking = create_booking()
    response = generate(client, booking["id"], admin_headers, quoteContent="Package A <b>")

    assert response.status_code == 200
    quoted = response.json()
    assert quoted["status"] == "QuoteSent"
    assert quoted["totalAmount"] == 40000
    assert quoted["quoteContent"] == "Package A &lt;b&gt;"
    assert quoted["lastEditedBy"] == "admin"


def test_regenerating_quote_keeps_status(client, create_booking, admin_headers):
    booking = create_booking()
    generate(client, booking["id"], admin_headers)
    response = generate(client, booking["id"], admin_headers, amount=45000)

    assert response.status_code == 200
    assert response.json()["status"] == "QuoteSent"
    assert response.json()["totalAmount"] == 45000


def test_only_admin_generates_quotes(client, create_booking, staff_headers):
    booking = create_booking()
    response = generate(client, booking["id"], staff_headers)
    assert response.status_code == 403


def test_quote_amount_must_be_positive(client, create_booking, admin_headers):
    booking = create_booking()
    response = generate(client, booking["id"], admin_headers, amount=0)
    assert response.status_code == 400
    assert response.json()["field"] == "amount"


def test_quote_for_unknown_booking(client, admin_headers):
    assert generate(client, "BA-2025-0000", admin_headers).status_code == 404


def test_cannot_quote_cancelled_booking(client, create_booking, admin_headers):
    booking = create_booking()
    client.post(f"/bookings/{booking['id']}/cancel", headers=admin_headers)
    assert generate(client, booking["id"], admin_headers).status_code == 400


def test_edit_quote_text_on_inquiry(client, create_booking, admin_headers):
    booking = create_booking()
    response = client.patch(
        f"/quotes/{booking['id']}", json={"quoteContent": "Draft"}, headers=admin_headers
    )
    assert response.status_code == 200
    assert response.json()["quoteContent"] == "Draft"
    assert response.json()["status"] == "Inquiry"


def test_edit_total_on_inquiry_is_rejected(client, create_booking, admin_headers):
    booking = create_booking()
    response = client.patch(
        f"/quotes/{booking['id']}", json={"totalAmount": 30000}, headers=admin_headers
    )
    assert response.status_code == 400
    assert response.json()["field"] == "totalAmount"


def test_total_cannot_drop_below_paid(client, create_booking, admin_headers):
    booking = create_booking()
    generate(client, booking["id"], admin_headers)
    validate(client, booking["id"], admin_headers, amount=20000)

    response = client.patch(
        f"/quotes/{booking['id']}", json={"totalAmount": 15000}, headers=admin_headers
    )
    assert response.status_code == 400
    assert response.json()["field"] == "totalAmount"

    response = client.patch(
        f"/quotes/{booking['id']}",
        json={"totalAmount": 15000, "allowBelowPaid": True},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["totalAmount"] == 15000
    assert response.json()["status"] == "Confirmed"


def test_validate_small_payment_is_a_reservation(client, create_booking, staff_headers):
    booking = create_booking()
    response = validate(client, booking["id"], staff_headers, amount=3000)

    assert response.status_code == 201
    body = response.json()
    assert body["payment"]["paymentType"] == "reservation"
    assert body["payment"]["referenceNumber"] == "GC-100200300"
    assert body["payment"]["paidBy"] == "Maria Santos"
    assert body["payment"]["validatedBy"] == "staff"
    assert body["booking"]["status"] == "Confirmed"
    assert body["booking"]["totalAmount"] == 3000


def test_validate_large_payment_is_a_downpayment(client, create_booking, admin_headers):
    booking = create_booking()
    generate(client, booking["id"], admin_headers)
    response = validate(client, booking["id"], admin_headers, amount=10000)

    assert response.status_code == 201
    body = response.json()
    assert body["payment"]["paymentType"] == "downpayment"
    assert body["booking"]["status"] == "Confirmed"
    assert body["booking"]["totalAmount"] == 40000


def test_explicit_payment_type_wins(client, create_booking, staff_headers):
    booking = create_booking()
    response = validate(client, booking["id"], staff_headers, amount=1000, paymentType="partial")
    assert response.json()["payment"]["paymentType"] == "partial"


def test_duplicate_reference_is_rejected(client, create_booking, staff_headers):
    booking = create_booking()
    assert validate(client, booking["id"], staff_headers).status_code == 201

    response = validate(client, booking["id"], staff_headers, referenceNumber=" gc-100200300 ")
    assert response.status_code == 400
    assert response.json()["field"] == "referenceNumber"


def test_viewer_cannot_validate(client, create_booking, viewer_headers):
    booking = create_booking()
    assert validate(client, booking["id"], viewer_headers).status_code == 403


def test_cancelled_booking_takes_no_payments(client, create_booking, staff_headers):
    booking = create_booking()
    client.post(f"/bookings/{booking['id']}/cancel", headers=staff_headers)
    assert validate(client, booking["id"], staff_headers).status_code == 400


def test_client_quote_is_public(client, create_booking, admin_headers):
    booking = create_booking()
    generate(client, booking["id"], admin_headers)

    response = client.get(f"/quotes/{booking['id']}/client")
    assert response.status_code == 200
    body = response.json()
    assert body["booking"]["id"] == booking["id"]
    assert body["booking"]["totalAmount"] == 40000
    assert "email" not in body["booking"]
    assert "contactNumber" not in body["booking"]
    assert body["paymentSummary"]["downpaymentAmount"] == 20000
    assert body["paymentSummary"]["downpaymentDeadline"] == "2025-11-25"
    assert body["paymentSummary"]["finalPaymentDeadline"] == "2025-12-25"


def test_client_quote_hides_archived_bookings(client, create_booking, admin_headers):
    booking = create_booking()
    client.post(f"/bookings/{booking['id']}/archive", headers=admin_headers)
    assert client.get(f"/quotes/{booking['id']}/client").status_code == 404


def send_raw(client, method, url, body, headers):
    """Send JSON text as-is; NaN and Infinity are valid to Python's json parser"""
    return client.request(method, url, content=body, headers={**headers, "Content-Type": "application/json"})


@pytest.mark.parametrize("amount", ["NaN", "Infinity"])
def test_quote_amount_must_be_finite(client, create_booking, admin_headers, amount):
    booking = create_booking()
    response = send_raw(client, "POST", f"/quotes/{booking['id']}", f'{{"amount": {amount}}}', admin_headers)

    assert response.status_code == 400
    assert response.json()["field"] == "amount"
    current = client.get(f"/bookings/{booking['id']}", headers=admin_headers).json()
    assert current["status"] == "Inquiry"
    assert current["totalAmount"] is None


def test_edited_total_must_be_finite(client, create_booking, admin_headers):
    booking = create_booking()
    generate(client, booking["id"], admin_headers)

    response = send_raw(
        client, "PATCH", f"/quotes/{booking['id']}", '{"totalAmount": Infinity}', admin_headers
    )
    assert response.status_code == 400
    assert response.json()["field"] == "totalAmount"
    current = client.get(f"/bookings/{booking['id']}", headers=admin_headers).json()
    assert current["totalAmount"] == 40000


def test_validated_amount_must_be_finite(client, create_booking, staff_headers):
    booking = create_booking()
    body = '{"referenceNumber": "GC-1", "amount": NaN, "paymentMethod": "GCash"}'
    response = send_raw(client, "POST", f"/quotes/{booking['id']}/validate-payment", body, staff_headers)

    assert response.status_code == 400
    assert response.json()["field"] == "amount"
    assert client.get(f"/payments?bookingId={booking['id']}", headers=staff_headers).json() == []
    current = client.get(f"/bookings/{booking['id']}", headers=staff_headers).json()
    assert current["status"] == "Inquiry"
    assert current["totalAmount"] is None


def test_concurrent_duplicate_reference_is_rejected(client, create_booking, staff_headers, monkeypatch):
    # Both validations pass the lookup; the unique index decides
    monkeypatch.setattr(
        PaymentRepository, "reference_exists", staticmethod(lambda db, booking_id, reference_number: False)
    )
    booking = create_booking()
    assert validate(client, booking["id"], staff_headers).status_code == 201

    response = validate(client, booking["id"], staff_headers, referenceNumber="gc-100200300")
    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"
    assert response.json()["field"] == "referenceNumber"

    payments = client.get(f"/payments?bookingId={booking['id']}", headers=staff_headers).json()
    assert len(payments) == 1


def test_resaving_quote_text_does_not_escape_twice(client, create_booking, admin_headers):
    booking = create_booking()
    first = generate(client, booking["id"], admin_headers, quoteContent="Lights & Sounds <LED>")
    saved = first.json()["quoteContent"]
    assert saved == "Lights &amp; Sounds &lt;LED&gt;"

    # The portal sends back the text it was given
    response = client.patch(f"/quotes/{booking['id']}", json={"quoteContent": saved}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["quoteContent"] == saved
