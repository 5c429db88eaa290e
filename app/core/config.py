import os

def get_secret(secret_name: str) -> str | None:
    secret_path = f'/run/secrets/{secret_name}'
    try:
        with open(secret_path, 'r', encoding='utf-8') as secret_file:
            return secret_file.read().strip()
    except IOError:
        return os.getenv(secret_name)


def parse_signing_keys(raw: str | None) -> dict[str, str]:
    """Parse ``kid=secret`` pairs separated by commas."""
    keys: dict[str, str] = {}
    for chunk in (raw or "").split(","):
        chunk = chunk.strip()
        if not chunk:
            continue
        kid, sep, secret = chunk.partition("=")
        if not sep or not kid.strip() or not secret.strip():
            raise ValueError(f"Malformed signing key entry: {kid.strip() or '?'}")
        keys[kid.strip()] = secret.strip()
    return keys


DB_PASSWORD = get_secret('db_password')
SECRET_KEY = get_secret('secret_key')

POSTGRES_DB = os.getenv("POSTGRES_DB")
POSTGRES_USER = os.getenv("POSTGRES_USER")
DB_HOST = os.getenv("DB_HOST", "localhost")
DB_PORT = os.getenv("DB_PORT", "5432")
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")
REDIS_SOCKET_TIMEOUT = float(os.getenv("REDIS_SOCKET_TIMEOUT", "2"))
DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "10"))

if POSTGRES_USER and DB_PASSWORD and POSTGRES_DB:
    DATABASE_URL = f"postgresql+asyncpg://{POSTGRES_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{POSTGRES_DB}"
else:
    DATABASE_URL = os.getenv("DATABASE_URL", "postgresql+asyncpg://ticketing@localhost:5432/ticketing")

ALGORITHM = "HS256"
JWT_ISSUER = os.getenv("JWT_ISSUER", "identity-provider")
JWT_AUDIENCE = os.getenv("JWT_AUDIENCE", "ticketing-api")

AUDIT_STREAM = os.getenv("AUDIT_STREAM", "audit:events")
ORDERS_STREAM = os.getenv("ORDERS_STREAM", "orders:facts")

# Ticket credentials; keys are "kid=secret" pairs so old tickets verify after rotation
QR_SIGNING_KEYS = parse_signing_keys(get_secret('qr_signing_keys'))
QR_SIGNING_KEY_ID = os.getenv("QR_SIGNING_KEY_ID") or next(iter(QR_SIGNING_KEYS), None)

CANCELLATION_CUTOFF_HOURS = int(os.getenv("CANCELLATION_CUTOFF_HOURS", "24"))
# "immediate": orders complete at checkout, "deferred": wait for the payment callback
ORDER_SETTLEMENT = os.getenv("ORDER_SETTLEMENT", "immediate").lower()
DEFAULT_CURRENCY = os.getenv("DEFAULT_CURRENCY", "BDT")
MAX_TICKETS_PER_LINE = int(os.getenv("MAX_TICKETS_PER_LINE", "20"))
LOOKUP_TOKEN_LENGTH = 8
