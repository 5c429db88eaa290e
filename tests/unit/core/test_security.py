import pytest
import time_machine
from datetime import datetime, timezone
import app.core.security as security
from app.domain.exceptions import InvalidInput


def test_build_qr_payload_is_compact_and_sorted():
    payload = security.build_qr_payload(5, 3, 1, "Ana", 1735732800000)

    assert payload == '{"attendeeName":"Ana","eventId":1,"issuedAt":1735732800000,"orderId":3,"ticketId":5}'


def test_build_qr_payload_same_input_same_bytes():
    first = security.build_qr_payload(5, 3, 1, "Ana", 1)
    second = security.build_qr_payload(5, 3, 1, "Ana", 1)

    assert first == second


@time_machine.travel("2025-01-01 12:00:00", tick=False)
def test_epoch_millis_uses_utc_milliseconds():
    assert security.epoch_millis(datetime.now(timezone.utc)) == 1735732800000


def test_sign_qr_payload_prefixes_key_id():
    payload = security.build_qr_payload(5, 3, 1, "Ana", 1)

    signature = security.sign_qr_payload(payload)

    kid, _, digest = signature.partition(":")
    assert kid == "k1"
    assert len(digest) == 64


def test_verify_qr_payload_true_for_signed_payload():
    payload = security.build_qr_payload(5, 3, 1, "Ana", 1)

    assert security.verify_qr_payload(payload, security.sign_qr_payload(payload)) is True


def test_verify_qr_payload_false_for_tampered_payload():
    payload = security.build_qr_payload(5, 3, 1, "Ana", 1)
    signature = security.sign_qr_payload(payload)
    tampered = payload.replace('"ticketId":5', '"ticketId":6')

    assert security.verify_qr_payload(tampered, signature) is False


@pytest.mark.parametrize("signature", [None, "", "nokid", "k9:abcdef", "k1:"])
def test_verify_qr_payload_false_for_missing_or_unknown_signature(signature):
    payload = security.build_qr_payload(5, 3, 1, "Ana", 1)

    assert security.verify_qr_payload(payload, signature) is False


def test_verify_qr_payload_accepts_retired_key_after_rotation(monkeypatch, qr_signing_keys):
    payload = security.build_qr_payload(5, 3, 1, "Ana", 1)
    old_signature = security.sign_qr_payload(payload)

    monkeypatch.setattr(security, "QR_SIGNING_KEYS", {**qr_signing_keys, "k2": "rotated-secret"})
    monkeypatch.setattr(security, "QR_SIGNING_KEY_ID", "k2")
    new_signature = security.sign_qr_payload(payload)

    assert new_signature.startswith("k2:")
    assert security.verify_qr_payload(payload, old_signature) is True
    assert security.verify_qr_payload(payload, new_signature) is True


def test_sign_qr_payload_without_configured_key_raises(monkeypatch):
    monkeypatch.setattr(security, "QR_SIGNING_KEYS", {})
    monkeypatch.setattr(security, "QR_SIGNING_KEY_ID", None)

    with pytest.raises(RuntimeError):
        security.sign_qr_payload("{}")


def test_parse_qr_payload_returns_fields():
    payload = security.build_qr_payload(5, 3, 1, "Ana", 1)

    data = security.parse_qr_payload(payload)

    assert data["ticketId"] == 5
    assert data["orderId"] == 3


@pytest.mark.parametrize("payload, reason", [
    ("not-json", "not_json"),
    ("[1, 2]", "missing_fields"),
    ('{"ticketId": 5}', "missing_fields"),
    ('{"ticketId":"5","orderId":3,"eventId":1,"attendeeName":"Ana","issuedAt":1}', "ticket_id"),
])
def test_parse_qr_payload_malformed_raises_invalid_input(payload, reason):
    with pytest.raises(InvalidInput) as e:
        security.parse_qr_payload(payload)

    assert e.value.ctx["reason"] == reason


def test_generate_lookup_token_uses_unambiguous_alphabet():
    tokens = {security.generate_lookup_token() for _ in range(50)}

    for token in tokens:
        assert len(token) == 8
        assert not set(token) & set("0O1I")
        assert set(token) <= set(security.LOOKUP_TOKEN_ALPHABET)
    assert len(tokens) > 1
