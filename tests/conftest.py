import pytest
import importlib


AUDITED_SERVICES = (
    "app.services.checkout_service",
    "app.services.tickets_service",
)

SPAN_FIELDS = ("object_type", "object_id", "event_id", "order_id", "ticket_id")


class RecordingSpan:
    """Stands in for AuditSpan: keeps the fields a service fills in and how the block ended."""

    def __init__(self, *, scope: str, action: str, meta: dict | None = None, **fields):
        self.scope = scope
        self.action = action
        self.meta = dict(meta or {})
        for name in SPAN_FIELDS:
            setattr(self, name, fields.get(name))
        self.exit_args = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.exit_args = (exc_type, exc, tb)
        return False


@pytest.fixture(autouse=True)
def auditspan_stub(mocker):
    spans: list[RecordingSpan] = []

    def record(**kwargs):
        span = RecordingSpan(**kwargs)
        spans.append(span)
        return span

    for module in AUDITED_SERVICES:
        importlib.import_module(module)
        mocker.patch(f"{module}.AuditSpan", side_effect=record)
    return spans


@pytest.fixture(autouse=True)
def qr_signing_keys(monkeypatch):
    keys = {"k1": "test-signing-secret"}
    monkeypatch.setattr("app.core.security.QR_SIGNING_KEYS", keys)
    monkeypatch.setattr("app.core.security.QR_SIGNING_KEY_ID", "k1")
    return keys
