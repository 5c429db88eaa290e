import pytest
from pydantic import ValidationError
from app.domain.orders.schemas import CheckoutRequestDTO, CheckInRequestDTO, OrderLookupQueryDTO
from app.domain.discounts.schemas import DiscountValidationRequestDTO


def _checkout(**overrides):
    values = dict(
        event_id=1,
        buyer_email=" Ana@Gmail.COM ",
        buyer_name="  Ana Rahman ",
        items=[{"ticket_type_id": 2, "quantity": 2}],
        discount_code="  save10 "
    )
    values.update(overrides)
    return CheckoutRequestDTO(**values)


def test_checkout_request_trimmed_and_email_lowercased():
    dto = _checkout()

    assert dto.buyer_email == "ana@gmail.com"
    assert dto.buyer_name == "Ana Rahman"
    assert dto.discount_code == "save10"


def test_checkout_request_blank_discount_code_becomes_none():
    assert _checkout(discount_code="   ").discount_code is None


@pytest.mark.parametrize("overrides", [
    {"items": []},
    {"items": [{"ticket_type_id": 2, "quantity": 0}]},
    {"items": [{"ticket_type_id": 2, "quantity": 21}]},
    {"items": [{"ticket_type_id": 0, "quantity": 1}]},
    {"buyer_email": "not-an-email"},
    {"buyer_name": " "},
    {"event_id": 0},
    {"coupon": "X"},
])
def test_checkout_request_invalid_input_raises(overrides):
    with pytest.raises(ValidationError):
        _checkout(**overrides)


def test_check_in_request_accepts_ticket_id():
    dto = CheckInRequestDTO(ticket_id=5)

    assert dto.qr_payload is None


def test_check_in_request_accepts_scanned_credential():
    dto = CheckInRequestDTO(qr_payload="{}", qr_signature="k1:abc")

    assert dto.ticket_id is None


@pytest.mark.parametrize("values", [
    {},
    {"qr_payload": "{}"},
    {"qr_signature": "k1:abc"},
    {"ticket_id": 5, "qr_payload": "", "qr_signature": "k1:abc"},
])
def test_check_in_request_incomplete_reference_raises(values):
    with pytest.raises(ValidationError):
        CheckInRequestDTO(**values)


def test_order_lookup_query_normalizes_email():
    assert OrderLookupQueryDTO(email=" Ana@Gmail.com ").email == "ana@gmail.com"


def test_discount_validation_request_requires_code():
    with pytest.raises(ValidationError):
        DiscountValidationRequestDTO(code="   ")


@pytest.mark.parametrize("overrides", [
    {"buyer_name": 123},
    {"buyer_email": 42},
    {"discount_code": 5},
])
def test_checkout_request_non_string_fields_raise_validation_error(overrides):
    with pytest.raises(ValidationError):
        _checkout(**overrides)


def test_discount_validation_request_non_string_code_raises_validation_error():
    with pytest.raises(ValidationError):
        DiscountValidationRequestDTO(code=5)
