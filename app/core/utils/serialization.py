from datetime import datetime
from enum import Enum
from typing import Any


def normalize(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (list, tuple, set)):
        return str(sorted(value) if isinstance(value, set) else list(value))
    return str(value) if not isinstance(value, (str, int, float, bool, type(None))) else value


def normalize_ctx(ctx: dict[str, Any]) -> dict[str, Any]:
    return {k: normalize(v) for k, v in ctx.items()}
