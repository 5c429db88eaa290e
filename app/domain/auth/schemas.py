from pydantic import BaseModel, ConfigDict, Field, EmailStr
from typing import Literal


class TokenPayload(BaseModel):
    """Claims of an access token minted by the identity provider."""
    model_config = ConfigDict(from_attributes=True)

    sub: str
    email: EmailStr
    tenant_id: int | None = None
    roles: list[str] = Field(default_factory=list)
    iat: int
    nbf: int | None = None
    exp: int
    jti: str | None = None
    typ: Literal["access", "refresh"] | None = None
    iss: str | None = None
    aud: str | list[str] | None = None


class Identity(BaseModel):
    model_config = ConfigDict(frozen=True, extra='forbid')

    user_id: int
    email: str
    tenant_id: int | None = None
    roles: frozenset[str] = frozenset()

    def has_role(self, *names: str) -> bool:
        return not self.roles.isdisjoint(names)
