from contextvars import ContextVar, Token
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Actor:
    user_id: int
    roles: tuple[str, ...] = ()
    tenant_id: int | None = None


REQUEST_ID_CTX: ContextVar[str | None] = ContextVar("request_id", default=None)
ROUTE_CTX: ContextVar[str | None] = ContextVar("route", default=None)
CLIENT_IP_CTX: ContextVar[str | None] = ContextVar("client_ip", default=None)
REDIS_CTX: ContextVar[Any] = ContextVar("redis", default=None)
ACTOR_CTX: ContextVar[Actor | None] = ContextVar("actor", default=None)


def bind_actor(user_id: int, roles, tenant_id: int | None) -> Token:
    return ACTOR_CTX.set(Actor(user_id=user_id, roles=tuple(sorted(roles)), tenant_id=tenant_id))


def current_actor() -> Actor | None:
    return ACTOR_CTX.get()


def get_request_id() -> str | None:
    return REQUEST_ID_CTX.get()


def get_route() -> str | None:
    return ROUTE_CTX.get()


def get_client_ip() -> str | None:
    return CLIENT_IP_CTX.get()


def get_redis() -> Any:
    return REDIS_CTX.get()
