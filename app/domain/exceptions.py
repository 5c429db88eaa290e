from app.core.utils.serialization import normalize_ctx


class AppError(Exception):
    """Base for errors the API renders as problem+json; ``ctx`` is flattened to JSON-safe values."""
    status_code = 400
    title = "Application Error"

    def __init__(self, message: str = "", *, ctx: dict | None = None) -> None:
        super().__init__(message or self.__class__.__name__)
        self.ctx = normalize_ctx(ctx or {})


class InvalidInput(AppError):
    status_code = 400
    title = "Bad Request"


class Unauthorized(AppError):
    status_code = 401
    title = "Unauthorized"


class Forbidden(AppError):
    status_code = 403
    title = "Forbidden"


class NotFound(AppError):
    status_code = 404
    title = "Not Found"


class Conflict(AppError):
    status_code = 409
    title = "Conflict"


class Unprocessable(AppError):
    status_code = 422
    title = "Unprocessable Entity"


class InsufficientInventory(InvalidInput):
    """Conditional stock update matched no row: fewer units left than requested."""
    title = "Insufficient Inventory"

    def __init__(self, ticket_type_name: str, *, ticket_type_id: int, requested: int, available: int) -> None:
        super().__init__(
            f"Insufficient inventory for {ticket_type_name}. Available: {available}, Requested: {requested}",
            ctx={"ticket_type_id": ticket_type_id, "requested": requested, "available": available}
        )
        self.available = available
