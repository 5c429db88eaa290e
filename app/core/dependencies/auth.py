from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from typing import Annotated
from jose import JWTError, jwt
from pydantic import ValidationError
from app.core.config import SECRET_KEY, ALGORITHM, JWT_ISSUER, JWT_AUDIENCE
from app.domain.auth.schemas import TokenPayload, Identity
from app.domain.exceptions import Unauthorized, Forbidden
from app.core.ctx import bind_actor


oauth2_bearer = OAuth2PasswordBearer(tokenUrl="/auth/login")
optional_oauth2_bearer = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


def _decode_token(token: str) -> TokenPayload:
    try:
        raw_payload = jwt.decode(
            token,
            SECRET_KEY,
            algorithms=[ALGORITHM],
            issuer=JWT_ISSUER,
            audience=JWT_AUDIENCE,
            options={"verify_aud": True, "leeway": 5}
        )
    except JWTError:
        raise Unauthorized("Invalid authentication credentials", ctx={"reason": "invalid_token"})
    if raw_payload.get("typ") != "access":
        raise Unauthorized("Invalid token type", ctx={"reason": "invalid_type"})
    try:
        return TokenPayload.model_validate(raw_payload)
    except ValidationError:
        raise Unauthorized("Invalid authentication credentials", ctx={"reason": "invalid_claims"})


def _identity_from_payload(payload: TokenPayload) -> Identity:
    try:
        user_id = int(payload.sub)
    except ValueError:
        raise Unauthorized("Invalid authentication credentials", ctx={"reason": "invalid_subject"})

    identity = Identity(
        user_id=user_id,
        email=payload.email.lower(),
        tenant_id=payload.tenant_id,
        roles=frozenset(payload.roles),
    )
    bind_actor(identity.user_id, identity.roles, identity.tenant_id)
    return identity


async def get_token_payload(token: Annotated[str, Depends(oauth2_bearer)]) -> TokenPayload:
    return _decode_token(token)


async def get_optional_identity(token: Annotated[str | None, Depends(optional_oauth2_bearer)]) -> Identity | None:
    if not token:
        return None
    return _identity_from_payload(_decode_token(token))


def get_current_identity_with_roles(*allowed_roles: str):
    allowed = set(allowed_roles)

    async def _inner(payload: Annotated[TokenPayload, Depends(get_token_payload)]) -> Identity:
        identity = _identity_from_payload(payload)
        if allowed and identity.roles.isdisjoint(allowed):
            raise Forbidden(
                "Permission denied",
                ctx={"required": sorted(allowed), "user_roles": sorted(identity.roles)}
            )
        return identity
    return _inner
