import hmac, hashlib, json, secrets, string
from datetime import datetime
from typing import Any
from .config import QR_SIGNING_KEYS, QR_SIGNING_KEY_ID, LOOKUP_TOKEN_LENGTH
from app.domain.exceptions import InvalidInput

SIGNATURE_SEPARATOR = ":"
QR_PAYLOAD_FIELDS = ("ticketId", "orderId", "eventId", "attendeeName", "issuedAt")
# no 0/O/1/I so tokens survive being read aloud or retyped
LOOKUP_TOKEN_ALPHABET = "".join(c for c in string.ascii_uppercase + string.digits if c not in "0O1I")


def _current_key() -> tuple[str, str]:
    if not QR_SIGNING_KEY_ID or QR_SIGNING_KEY_ID not in QR_SIGNING_KEYS:
        raise RuntimeError("QR signing key is not configured")
    return QR_SIGNING_KEY_ID, QR_SIGNING_KEYS[QR_SIGNING_KEY_ID]


def _digest(secret: str, payload: str) -> str:
    return hmac.new(secret.encode(), payload.encode(), hashlib.sha256).hexdigest()


def epoch_millis(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


def build_qr_payload(ticket_id: int, order_id: int, event_id: int, attendee_name: str, issued_at_ms: int) -> str:
    """
    Serialize the ticket credential deterministically
    - Sorted keys and compact separators, so the same ticket always yields the same bytes
    - The ticket id must already be assigned, signing happens after the row is flushed
    """
    payload = {
        "ticketId": ticket_id,
        "orderId": order_id,
        "eventId": event_id,
        "attendeeName": attendee_name,
        "issuedAt": issued_at_ms,
    }
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def parse_qr_payload(payload: str) -> dict[str, Any]:
    try:
        data = json.loads(payload)
    except (TypeError, ValueError) as e:
        raise InvalidInput("Malformed ticket credential", ctx={"reason": "not_json"}) from e
    if not isinstance(data, dict) or any(field not in data for field in QR_PAYLOAD_FIELDS):
        raise InvalidInput("Malformed ticket credential", ctx={"reason": "missing_fields"})
    if not isinstance(data["ticketId"], int):
        raise InvalidInput("Malformed ticket credential", ctx={"reason": "ticket_id"})
    return data


def sign_qr_payload(payload: str) -> str:
    kid, secret = _current_key()
    return f"{kid}{SIGNATURE_SEPARATOR}{_digest(secret, payload)}"


def verify_qr_payload(payload: str | None, signature: str | None) -> bool:
    if not payload or not signature:
        return False
    kid, sep, digest = signature.partition(SIGNATURE_SEPARATOR)
    secret = QR_SIGNING_KEYS.get(kid)
    if not sep or not secret:
        return False
    return hmac.compare_digest(_digest(secret, payload), digest)


def generate_lookup_token(length: int = LOOKUP_TOKEN_LENGTH) -> str:
    return "".join(secrets.choice(LOOKUP_TOKEN_ALPHABET) for _ in range(length))
